from pathlib import Path
from uuid import uuid4
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..config import MAX_CV_BYTES, UPLOAD_DIR
from ..database import get_db
from ..models.user import User
from ..services.skills import create_skills, list_skills, replace_user_skills
from ..utils.dependencies import current_user_id, get_current_user
from ..utils.error_handlers import (
    FileUploadError,
    NotFoundError,
    ValidationError,
    get_error_message,
    handle_file_upload_error,
)
from ..utils.validation import sanitize_filename, validate_id_list, validate_string_field
from .payloads import skill_public, user_public

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

ALLOWED_CV_EXTENSIONS = {".pdf", ".doc", ".docx"}
ALLOWED_CV_CONTENT_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/octet-stream",
}


class ProfileUpdate(BaseModel):
    name: str | None = None
    phone: str | None = None
    location: str | None = None
    bio: str | None = None


class SkillNamesRequest(BaseModel):
    names: list | None = None


class SkillIdsRequest(BaseModel):
    skillIds: list | None = None


def _load_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError(get_error_message("user_not_found"))
    return user


def _remove_stored_cv(cv_url: str | None) -> None:
    if not cv_url:
        return
    base = Path(UPLOAD_DIR).resolve()
    path = (base / cv_url).resolve()
    # Only ever delete inside the upload root.
    if base not in path.parents:
        logger.warning("Refusing to delete CV outside upload dir: %s", cv_url)
        return
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Failed to delete old CV %s: %s", cv_url, e)


@router.get("/profile")
def get_profile(db: Session = Depends(get_db), user=Depends(get_current_user)):
    me = _load_user(db, current_user_id(user))
    return user_public(me, include_skills=True)


@router.put("/profile")
def update_profile(payload: ProfileUpdate, db: Session = Depends(get_db), user=Depends(get_current_user)):
    me = _load_user(db, current_user_id(user))

    # Blank values leave the field unchanged.
    name = validate_string_field(payload.name, "Name", max_length=255, required=False)
    phone = validate_string_field(payload.phone, "Phone", max_length=20, required=False)
    location = validate_string_field(payload.location, "Location", max_length=255, required=False)
    bio = validate_string_field(payload.bio, "Bio", max_length=5000, required=False)

    if name is not None:
        me.name = name
    if phone is not None:
        me.phone = phone
    if location is not None:
        me.location = location
    if bio is not None:
        me.bio = bio

    db.commit()
    db.refresh(me)
    return {"message": "Profile updated successfully", "user": user_public(me)}


@router.post("/cv/upload")
async def upload_cv(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    me = _load_user(db, current_user_id(user))

    if not file or not file.filename:
        raise FileUploadError(get_error_message("no_file"))

    original_filename = sanitize_filename(Path(file.filename).name)
    ext = Path(original_filename).suffix.lower()
    if ext not in ALLOWED_CV_EXTENSIONS:
        raise FileUploadError(get_error_message("invalid_cv_type"))
    if file.content_type and file.content_type not in ALLOWED_CV_CONTENT_TYPES:
        raise FileUploadError(get_error_message("invalid_cv_type"))

    stored_filename = f"{uuid4().hex}{ext}"
    rel_path = Path("cvs") / str(me.id) / stored_filename
    dest = Path(UPLOAD_DIR) / rel_path
    dest.parent.mkdir(parents=True, exist_ok=True)

    size = 0
    try:
        with open(dest, "wb") as out:
            while True:
                chunk = await file.read(1024 * 1024)
                if not chunk:
                    break
                size += len(chunk)
                if size > MAX_CV_BYTES:
                    raise FileUploadError(
                        get_error_message("file_too_large", limit=MAX_CV_BYTES // (1024 * 1024)),
                        status_code=413,
                    )
                out.write(chunk)
    except Exception as e:
        dest.unlink(missing_ok=True)
        raise handle_file_upload_error(e, original_filename)
    finally:
        await file.close()

    previous = me.cv_url
    me.cv_url = rel_path.as_posix()
    db.commit()
    db.refresh(me)

    if previous and previous != me.cv_url:
        _remove_stored_cv(previous)

    logger.info("Stored CV for user %s (%d bytes)", me.id, size)
    return {"message": "CV uploaded successfully", "cvUrl": me.cv_url, "user": user_public(me)}


@router.get("/skills")
def get_all_skills(db: Session = Depends(get_db)):
    return [skill_public(s) for s in list_skills(db)]


@router.post("/skills/create", status_code=201)
def create_skill_names(payload: SkillNamesRequest, db: Session = Depends(get_db), user=Depends(get_current_user)):
    if not isinstance(payload.names, list) or not payload.names:
        raise HTTPException(status_code=400, detail=get_error_message("skill_names_required"))

    added, existing = create_skills(db, payload.names)
    if not added:
        raise ValidationError(
            get_error_message("skills_exist"),
            details={"existing": [skill_public(s) for s in existing]},
        )

    logger.info("Created %d skills", len(added))
    return {
        "message": "Skills created successfully",
        "added": [skill_public(s) for s in added],
        "existing": [skill_public(s) for s in existing],
    }


@router.post("/skills")
def set_my_skills(payload: SkillIdsRequest, db: Session = Depends(get_db), user=Depends(get_current_user)):
    if not isinstance(payload.skillIds, list) or not payload.skillIds:
        raise HTTPException(status_code=400, detail=get_error_message("skill_ids_required"))

    skill_ids = validate_id_list(payload.skillIds, "skillIds")
    me = _load_user(db, current_user_id(user))
    replace_user_skills(db, user_id=me.id, skill_ids=skill_ids)
    db.commit()
    db.refresh(me)

    return {"message": "Skills added successfully", "skills": [skill_public(s) for s in me.skills]}
