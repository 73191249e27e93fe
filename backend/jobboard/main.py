import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .api import applications as applications_api
from .api import ats as ats_api
from .api import auth as auth_api
from .api import jobs as jobs_api
from .api import messages as messages_api
from .api import users as users_api
from .config import FRONTEND_ORIGINS
from .database import engine, init_db
from .utils.error_handlers import register_exception_handlers

app = FastAPI(title="Job Board API")

app.include_router(auth_api.router)
app.include_router(users_api.router)
app.include_router(jobs_api.router)
app.include_router(applications_api.router)
app.include_router(messages_api.router)
app.include_router(ats_api.router)

register_exception_handlers(app)

logger = logging.getLogger(__name__)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "Backend running",
        "service": "Job Board API"
    }


_default_origins = ["http://localhost:5173", "http://127.0.0.1:5173"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=[*_default_origins, *FRONTEND_ORIGINS],
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    try:
        init_db()
        app.state.db_init_error = None
    except Exception as e:
        # Keep booting; /db/health reports the failure.
        logger.exception("Database initialisation failed: %s", e)
        app.state.db_init_error = str(e)


@app.get("/db/health")
def db_health():
    if getattr(app.state, "db_init_error", None):
        raise HTTPException(
            status_code=503,
            detail=f"DB init failed: {app.state.db_init_error}",
        )

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        raise HTTPException(
            status_code=503,
            detail=f"DB connection failed: {e}",
        )

    return {"status": "ok"}
