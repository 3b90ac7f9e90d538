"""
Engine, session factory and declarative base for the certification tables.
"""
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import settings


def _connect_args(url: str) -> dict:
    # 요청 스레드와 세션 스레드가 다를 수 있음
    if make_url(url).get_backend_name() == "sqlite":
        return {"check_same_thread": False}
    return {}


def build_engine(url: str):
    """SQLite 외의 DB는 pool_pre_ping으로 끊긴 연결을 걸러낸다."""
    options = {"connect_args": _connect_args(url), "echo": settings.DEBUG}
    if make_url(url).get_backend_name() != "sqlite":
        options["pool_pre_ping"] = True
    return create_engine(url, **options)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False)
Base = declarative_base()


def get_db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
