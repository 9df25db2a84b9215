from __future__ import annotations
from datetime import datetime
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
from .db import Base


class User(Base):
	__tablename__ = "users"
	__table_args__ = (CheckConstraint("role IN ('student', 'admin')", name="ck_users_role"),)
	id = Column(Integer, primary_key=True, index=True)
	username = Column(String(100), unique=True, nullable=False, index=True)
	password_hash = Column(String(255), nullable=False)
	role = Column(String(10), nullable=False)

	scores = relationship("Score", back_populates="user", passive_deletes=True)


class Quiz(Base):
	__tablename__ = "quizzes"
	id = Column(Integer, primary_key=True, index=True)
	title = Column(String(255), nullable=False)
	created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	creator = relationship("User")
	# Questions cannot outlive their quiz; scores go with it too
	questions = relationship(
		"Question",
		back_populates="quiz",
		cascade="all",
		passive_deletes=True,
		order_by="Question.id",
	)
	scores = relationship("Score", back_populates="quiz", cascade="all", passive_deletes=True)


class Question(Base):
	__tablename__ = "questions"
	id = Column(Integer, primary_key=True, index=True)
	quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
	question_text = Column(Text, nullable=False)
	# Ordered list of {"text": ...}; position is the option's identity
	options = Column(JSON, nullable=False)
	correct_option = Column(Integer, nullable=False)

	quiz = relationship("Quiz", back_populates="questions")


class Score(Base):
	__tablename__ = "scores"
	__table_args__ = (CheckConstraint("score >= 0 AND score <= total", name="ck_scores_range"),)
	id = Column(Integer, primary_key=True, index=True)
	user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
	quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
	score = Column(Integer, nullable=False)
	total = Column(Integer, nullable=False)
	taken_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	user = relationship("User", back_populates="scores")
	quiz = relationship("Quiz", back_populates="scores")
