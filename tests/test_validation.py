# =============================================================================
# TESTS - Quiz content validation
# =============================================================================

import pytest


def q(text="What?", options=("a", "b", "c"), correct=0):
    return {"question_text": text, "options": [{"text": o} for o in options], "correct_option": correct}


class TestValidateQuestions:
    def test_all_valid(self):
        from quizapp.validation import validate_questions

        result = validate_questions([q(), q(correct=2)])

        assert len(result.accepted) == 2
        assert result.rejected_count == 0
        assert result.accepted[1].correct_option == 2
        assert result.accepted[0].options == ({"text": "a"}, {"text": "b"}, {"text": "c"})

    def test_preserves_option_order(self):
        from quizapp.validation import validate_questions

        result = validate_questions([q(options=("z", "y", "x"), correct=1)])

        assert [o["text"] for o in result.accepted[0].options] == ["z", "y", "x"]

    @pytest.mark.parametrize("correct", [-1, 3, 10])
    def test_out_of_range_index_is_dropped(self, correct):
        from quizapp.validation import validate_questions

        result = validate_questions([q(), q(correct=correct)])

        assert len(result.accepted) == 1
        assert result.rejected_count == 1
        assert "out of range" in result.rejections[0].reason

    @pytest.mark.parametrize(
        "record",
        [
            {"options": [{"text": "a"}, {"text": "b"}], "correct_option": 0},
            {"question_text": "", "options": [{"text": "a"}, {"text": "b"}], "correct_option": 0},
            {"question_text": 7, "options": [{"text": "a"}, {"text": "b"}], "correct_option": 0},
            {"question_text": "Q", "options": [{"text": "a"}], "correct_option": 0},
            {"question_text": "Q", "options": "ab", "correct_option": 0},
            {"question_text": "Q", "options": [{"text": "a"}, {"text": "b"}]},
            {"question_text": "Q", "options": [{"text": "a"}, {"text": "b"}], "correct_option": "0"},
            {"question_text": "Q", "options": [{"text": "a"}, {"text": "b"}], "correct_option": True},
            {"question_text": "Q", "options": [{"text": "a"}, {"text": "b"}], "correct_option": 0.5},
            "not a record",
            None,
        ],
    )
    def test_malformed_records_are_dropped(self, record):
        from quizapp.validation import validate_questions

        result = validate_questions([q(), record])

        assert len(result.accepted) == 1
        assert result.rejected_count == 1
        assert result.rejections[0].position == 1

    def test_integral_float_index_is_accepted(self):
        from quizapp.validation import validate_questions

        result = validate_questions([q(correct=1.0)])

        assert result.accepted[0].correct_option == 1
        assert type(result.accepted[0].correct_option) is int

    def test_plain_string_options_are_normalized(self):
        from quizapp.validation import validate_questions

        result = validate_questions([{"question_text": "Q", "options": ["yes", "no"], "correct_option": 1}])

        assert result.accepted[0].options == ({"text": "yes"}, {"text": "no"})

    def test_whitespace_question_text_is_accepted(self):
        from quizapp.validation import validate_questions

        result = validate_questions([q(), q(text=" ")])

        assert len(result.accepted) == 2
        assert result.rejected_count == 0

    def test_other_option_shapes_are_kept_as_given(self):
        from quizapp.validation import validate_questions

        record = {"question_text": "Q", "options": [{"label": "a"}, {"label": "b"}], "correct_option": 1}

        result = validate_questions([record])

        assert result.rejected_count == 0
        assert result.accepted[0].options == ({"label": "a"}, {"label": "b"})

    def test_two_options_is_enough(self):
        from quizapp.validation import validate_questions

        result = validate_questions([q(options=("t", "f"), correct=1)])

        assert len(result.accepted) == 1

    def test_all_malformed_raises(self):
        from quizapp.errors import EmptyQuizError
        from quizapp.validation import validate_questions

        with pytest.raises(EmptyQuizError):
            validate_questions([q(correct=9), {"question_text": ""}])

    @pytest.mark.parametrize("raw", [[], None, {}, {"questions": []}, "text", 42])
    def test_non_list_or_empty_input_raises(self, raw):
        from quizapp.errors import EmptyQuizError
        from quizapp.validation import validate_questions

        with pytest.raises(EmptyQuizError):
            validate_questions(raw)


class TestParseQuestionPayload:
    def test_plain_json(self):
        from quizapp.validation import parse_question_payload

        assert parse_question_payload('[{"a": 1}]') == [{"a": 1}]

    def test_fenced_json(self):
        from quizapp.validation import parse_question_payload

        text = 'Here you go:\n```json\n[{"a": 1}]\n```'

        assert parse_question_payload(text) == [{"a": 1}]

    def test_garbage_raises(self):
        from quizapp.errors import MalformedResponseError
        from quizapp.validation import parse_question_payload

        with pytest.raises(MalformedResponseError):
            parse_question_payload("definitely not json")
