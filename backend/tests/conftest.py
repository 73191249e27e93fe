import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ["DISABLE_DOTENV"] = "1"
os.environ["GEMINI_API_KEY"] = ""


@pytest.fixture()
def engine(tmp_path: Path):
    from backend.jobboard import database as db
    from backend.jobboard import models  # noqa: F401

    test_engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'backend.sqlite3'}",
        connect_args={"check_same_thread": False},
    )
    db.enable_sqlite_foreign_keys(test_engine)
    db.Base.metadata.create_all(bind=test_engine)
    yield test_engine
    db.Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def main_client(engine, session_factory, monkeypatch):
    """
    The real application object with get_db pointed at the temporary database.

    Used without a `with` block so the startup hook never runs against dev.db.
    """
    from backend.jobboard import main
    from backend.jobboard.database import get_db

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    main.app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setattr(main, "engine", engine)
    try:
        yield TestClient(main.app)
    finally:
        main.app.dependency_overrides.pop(get_db, None)
