from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..models.user import User
from ..utils.jwt import create_access_token
from ..utils.security import hash_password, verify_password
from ..utils.validation import validate_email, validate_password, validate_role, validate_string_field
from ..utils.error_handlers import get_error_message, handle_database_error
from .payloads import user_public

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


class RegisterRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = None  # candidate (default) / recruiter


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None
    role: str | None = None  # optional role gate (frontend-selected role)


def _token_for(user: User) -> str:
    try:
        return create_access_token({"sub": str(user.id), "role": user.role, "email": user.email})
    except Exception as e:
        logger.error(f"Token creation error: {e}")
        raise HTTPException(status_code=500, detail=get_error_message("server_error"))


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    if not payload.name or not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail=get_error_message("missing_registration_fields"))

    name = validate_string_field(payload.name, "Name", max_length=255)
    email = validate_email(payload.email)
    validate_password(payload.password)
    role = validate_role(payload.role)

    try:
        existing = db.query(User).filter(User.email == email).first()
    except SQLAlchemyError as e:
        raise handle_database_error(e, "checking existing user")
    if existing:
        raise HTTPException(status_code=400, detail=get_error_message("email_exists"))

    try:
        hashed = hash_password(payload.password)
    except ValueError:
        raise HTTPException(status_code=400, detail=get_error_message("weak_password"))

    user = User(name=name, email=email, password=hashed, role=role)
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        # Lost a race with a concurrent signup for the same email.
        db.rollback()
        raise HTTPException(status_code=400, detail=get_error_message("email_exists"))
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "creating user")

    logger.info("Registered user id=%s role=%s", user.id, user.role)
    return {
        "message": "User registered successfully",
        "user": user_public(user),
        "access_token": _token_for(user),
        "token_type": "bearer",
    }


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    email = validate_email(payload.email)

    try:
        user = db.query(User).filter(User.email == email).first()
    except SQLAlchemyError as e:
        raise handle_database_error(e, "login")

    if not user or not verify_password(payload.password, user.password):
        raise HTTPException(status_code=401, detail=get_error_message("invalid_credentials"))

    # Check role match if provided
    if payload.role and user.role != payload.role.strip().lower():
        raise HTTPException(status_code=403, detail=get_error_message("role_mismatch"))

    return {
        "message": "Login successful",
        "user": user_public(user),
        "access_token": _token_for(user),
        "token_type": "bearer",
    }


@router.post("/logout")
def logout():
    # Tokens are stateless; the client discards its copy.
    return {"message": "Logged out successfully"}
