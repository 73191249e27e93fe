import os
from pathlib import Path
from dotenv import load_dotenv

# Override=True so changes in backend/.env take effect on process reload.
#
# Tests point DATABASE_URL at a temporary SQLite file and must not be overridden by
# a developer's .env. Set DISABLE_DOTENV=1 to skip loading .env.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)

_raw_database_url = (os.getenv("DATABASE_URL") or "").strip()
# Local SQLite file by default so the API can start out-of-the-box.
_default_sqlite_path = (Path(__file__).resolve().parent.parent / "dev.db").as_posix()
DATABASE_URL = _raw_database_url or f"sqlite:///{_default_sqlite_path}"

# Auth / JWT
# NOTE: keep a default for local dev so the server can boot even if SECRET_KEY isn't set.
SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret_change_me")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)) or "10080")

# -------------------- AI (Gemini) for ATS checks --------------------
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-pro")
GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com")
GEMINI_API_VERSION = os.getenv("GEMINI_API_VERSION", "v1beta")

AI_TIMEOUT_S = float(os.getenv("AI_TIMEOUT_S", "30") or "30")
AI_MAX_RETRIES = int(os.getenv("AI_MAX_RETRIES", "1") or "1")
AI_LOG_PAYLOADS = (os.getenv("AI_LOG_PAYLOADS", "0") or "0").strip() in {"1", "true", "True", "yes", "YES"}

# File uploads
# Absolute path; override with UPLOAD_DIR in env (useful for tests).
UPLOAD_DIR = os.getenv("UPLOAD_DIR") or (Path(__file__).resolve().parent.parent / "uploads").as_posix()
MAX_CV_BYTES = int(os.getenv("MAX_CV_BYTES", str(5 * 1024 * 1024)) or str(5 * 1024 * 1024))
MAX_ATS_BYTES = int(os.getenv("MAX_ATS_BYTES", str(10 * 1024 * 1024)) or str(10 * 1024 * 1024))

# Comma-separated extra CORS origins for the SPA (e.g. a deployed frontend URL).
FRONTEND_ORIGINS = [
    origin.strip()
    for origin in os.getenv("FRONTEND_ORIGINS", "").split(",")
    if origin.strip()
]
