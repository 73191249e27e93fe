import os
import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


# Ensure `import backend.jobboard...` works regardless of where pytest is run from.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# config.py reads the environment once at import; a developer's .env must not leak in.
os.environ["DISABLE_DOTENV"] = "1"
# Ensure tests never call external AI providers even if developer machine has keys set.
os.environ["GEMINI_API_KEY"] = ""


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite3"


@pytest.fixture()
def app(test_db_path: Path) -> FastAPI:
    """
    Create a FastAPI app wired to a temporary SQLite DB.

    We intentionally do NOT import `jobboard.main` so its startup hook never touches
    the developer database.
    """
    os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{test_db_path}"
    os.environ["UPLOAD_DIR"] = str(test_db_path.parent / "uploads")

    from backend.jobboard import database as db

    engine = create_engine(
        os.environ["DATABASE_URL"],
        connect_args={"check_same_thread": False},
    )
    db.enable_sqlite_foreign_keys(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Patch the shared database module so router dependencies use the test DB.
    db.engine = engine
    db.SessionLocal = TestingSessionLocal

    # Import models so Base metadata is populated, then create tables.
    from backend.jobboard import models  # noqa: F401

    db.Base.metadata.drop_all(bind=engine)
    db.Base.metadata.create_all(bind=engine)

    from backend.jobboard.api import applications as applications_api
    from backend.jobboard.api import ats as ats_api
    from backend.jobboard.api import auth as auth_api
    from backend.jobboard.api import jobs as jobs_api
    from backend.jobboard.api import messages as messages_api
    from backend.jobboard.api import users as users_api
    from backend.jobboard.utils.error_handlers import register_exception_handlers

    fastapi_app = FastAPI()
    fastapi_app.include_router(auth_api.router)
    fastapi_app.include_router(users_api.router)
    fastapi_app.include_router(jobs_api.router)
    fastapi_app.include_router(applications_api.router)
    fastapi_app.include_router(messages_api.router)
    fastapi_app.include_router(ats_api.router)
    register_exception_handlers(fastapi_app)

    return fastapi_app


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db_session(app: FastAPI):
    """
    Direct SQLAlchemy session bound to the same temporary SQLite DB used by the test app.
    """
    from backend.jobboard import database as db

    session = db.SessionLocal()
    try:
        yield session
    finally:
        session.close()


# ---------------------------------------------------------------- helpers


def _auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _register(client, *, email: str, role: str, name: str = "Test User", password: str = "Testpass123!") -> dict:
    r = client.post(
        "/auth/register",
        json={"email": email, "password": password, "role": role, "name": name},
    )
    assert r.status_code == 201, r.text
    data = r.json()
    return {"id": data["user"]["id"], "token": data["access_token"], "headers": _auth_headers(data["access_token"])}


@pytest.fixture()
def recruiter(client) -> dict:
    return _register(client, email="recruiter@example.com", role="recruiter", name="Rita Recruiter")


@pytest.fixture()
def candidate(client) -> dict:
    return _register(client, email="candidate@example.com", role="candidate", name="Carl Candidate")


@pytest.fixture()
def skills(client, recruiter) -> dict:
    """Creates Python, React, SQL, Go; returns name -> id."""
    r = client.post(
        "/users/skills/create",
        headers=recruiter["headers"],
        json={"names": ["Python", "React", "SQL", "Go"]},
    )
    assert r.status_code == 201, r.text
    return {s["name"]: s["id"] for s in r.json()["added"]}
