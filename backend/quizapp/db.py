from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Callable, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from .errors import PersistenceError, QuizAppError
from .settings import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url or "sqlite:///./quiz.db"

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=_connect_args, future=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()

SessionFactory = Callable[[], Session]


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
	# SQLite ignores ON DELETE CASCADE unless this is switched on per connection
	if type(dbapi_connection).__module__.startswith("sqlite3"):
		cursor = dbapi_connection.cursor()
		cursor.execute("PRAGMA foreign_keys=ON")
		cursor.close()


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


def get_session_factory() -> SessionFactory:
	return SessionLocal


@contextmanager
def unit_of_work(session_factory: SessionFactory) -> Iterator[Session]:
	"""Open a session scoped to one logical write.

	Commits when the block finishes, rolls back on any exception. Errors that
	are not already part of the application taxonomy surface as
	PersistenceError so callers never see driver exceptions.
	"""
	session = session_factory()
	try:
		yield session
		session.commit()
	except QuizAppError:
		session.rollback()
		raise
	except Exception as exc:
		session.rollback()
		logger.exception("Transaction rolled back")
		raise PersistenceError() from exc
	finally:
		session.close()
