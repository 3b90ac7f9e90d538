"""
Shared pytest fixtures — in‑memory SQLite + FastAPI TestClient.
"""
import os
import tempfile

# Point the app at throwaway locations before settings are read
_SCRATCH = tempfile.mkdtemp(prefix="certifications-tests-")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("DATA_DIR", _SCRATCH)
os.environ.setdefault("UPLOAD_DIR", os.path.join(_SCRATCH, "uploads"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.certifications.database import Base, get_db  # noqa: E402
from app.certifications.models import CertificationModel  # noqa: E402,F401  — register model
from app.certifications.storage import LocalObjectStore, get_object_store  # noqa: E402
from app.main import app  # noqa: E402

# StaticPool ensures all connections share the same in-memory database
_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_Session = sessionmaker(autocommit=False, autoflush=False, bind=_ENGINE)


@pytest.fixture(autouse=True)
def _reset_tables():
    Base.metadata.create_all(bind=_ENGINE)
    yield
    Base.metadata.drop_all(bind=_ENGINE)


@pytest.fixture()
def db():
    session = _Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(tmp_path):
    return LocalObjectStore(tmp_path / "uploads")


@pytest.fixture()
def client(db, store):
    def _override():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = _override
    app.dependency_overrides[get_object_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
