import os
import pathlib
import sys
import tempfile

import pytest


REPO_ROOT = pathlib.Path(__file__).resolve().parents[2]
sys.path.append(str(REPO_ROOT))


def pytest_configure():
    if os.getenv("DATABASE_URL") or os.getenv("SQLALCHEMY_DATABASE_URL"):
        return
    temp_dir = tempfile.mkdtemp(prefix="intake-tests-")
    db_path = pathlib.Path(temp_dir) / "pytest.db"
    os.environ["DATABASE_URL"] = f"sqlite:///{db_path}"


@pytest.fixture()
def db_session():
    from backend.app import models  # noqa: F401
    from backend.app.db import Base, SessionLocal, engine
    from backend.app.services import view_cache

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    view_cache.reset()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def company(db_session):
    from backend.app.services import company_service

    row = company_service.ensure_company(db_session, "iMotorbike")
    db_session.commit()
    return row


@pytest.fixture()
def api_client(db_session):
    from backend.app.db import get_db
    from backend.app.main import app
    from fastapi.testclient import TestClient

    def _get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db
    client = TestClient(app)
    try:
        yield client
    finally:
        app.dependency_overrides.pop(get_db, None)
