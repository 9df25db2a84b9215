from __future__ import annotations
import logging
from typing import Optional

from sqlalchemy.orm import Session

from .db import Base
from .models import User
from .security import hash_password
from .settings import Settings

logger = logging.getLogger(__name__)


def _ensure_user(db: Session, username: Optional[str], password: Optional[str], role: str) -> bool:
	if not username or not password:
		return False
	if db.query(User).filter(User.username == username).first() is not None:
		return False
	db.add(User(username=username, password_hash=hash_password(password), role=role))
	logger.info("Seeded %s account %r", role, username)
	return True


def seed_users(db: Session, settings: Settings) -> int:
	created = 0
	created += _ensure_user(db, settings.seed_admin_username, settings.seed_admin_password, "admin")
	created += _ensure_user(db, settings.seed_student_username, settings.seed_student_password, "student")
	db.commit()
	return created


def init_db(db: Session, settings: Settings) -> None:
	Base.metadata.create_all(bind=db.get_bind())
	logger.info("Database tables checked/created.")
	seed_users(db, settings)
