from __future__ import annotations
from fastapi import Depends

from .db import SessionFactory, get_session_factory
from .generation import QuizGenerationPipeline
from .grading import GradingEngine
from .security import TokenService
from .settings import Settings, get_settings


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
	return TokenService(settings)


def get_generation_pipeline(
	settings: Settings = Depends(get_settings),
	session_factory: SessionFactory = Depends(get_session_factory),
) -> QuizGenerationPipeline:
	return QuizGenerationPipeline(settings, session_factory)


def get_grading_engine(session_factory: SessionFactory = Depends(get_session_factory)) -> GradingEngine:
	return GradingEngine(session_factory)
