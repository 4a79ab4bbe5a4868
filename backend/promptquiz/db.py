from __future__ import annotations
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .settings import settings


DATABASE_URL = settings.database_url or "sqlite:///./promptquiz.db"


def make_engine(url: str) -> Engine:
	# SQLite connections are shared across FastAPI's worker threads
	connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
	return create_engine(url, connect_args=connect_args, future=True)


engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def init_db(bind: Engine = engine) -> None:
	"""Create the questions and scores tables if they do not exist yet."""
	from . import models  # noqa: F401  registers the tables on Base

	Base.metadata.create_all(bind=bind)


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()
