import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from ..database import get_db
from ..models.application import Application
from ..models.job import Job
from ..models.user import User
from ..services.application_status import apply_status_change
from ..utils.dependencies import current_user_id
from ..utils.error_handlers import get_error_message
from ..utils.roles import candidate_only, recruiter_only
from ..utils.validation import validate_application_status
from .payloads import application_for_candidate, application_for_recruiter, application_public

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Applications"])


class StatusUpdate(BaseModel):
    status: str | None = None


def _with_candidate(q):
    return q.options(joinedload(Application.candidate).selectinload(User.skills))


@router.post("/jobs/{job_id:int}/apply", status_code=201)
def apply_to_job(job_id: int, db: Session = Depends(get_db), user=Depends(candidate_only)):
    candidate_id = current_user_id(user)

    job = db.query(Job).filter(Job.id == job_id, Job.is_active.is_(True)).first()
    if not job:
        raise HTTPException(status_code=404, detail=get_error_message("job_not_found"))

    existing = (
        db.query(Application)
        .filter(Application.job_id == job_id, Application.candidate_id == candidate_id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=400, detail=get_error_message("already_applied"))

    application = Application(job_id=job_id, candidate_id=candidate_id, status="pending")
    try:
        db.add(application)
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the same (job, candidate) pair first.
        db.rollback()
        raise HTTPException(status_code=400, detail=get_error_message("already_applied"))
    db.refresh(application)

    logger.info("Candidate %s applied to job %s", candidate_id, job_id)
    return {"message": "Application submitted successfully", "application": application_public(application)}


@router.get("/my-applications")
def my_applications(db: Session = Depends(get_db), user=Depends(candidate_only)):
    rows = (
        db.query(Application)
        .options(joinedload(Application.job))
        .filter(Application.candidate_id == current_user_id(user))
        .order_by(Application.created_at.asc(), Application.id.asc())
        .all()
    )
    return [application_for_candidate(a) for a in rows]


@router.get("/jobs/{job_id:int}/applications")
def job_applications(job_id: int, db: Session = Depends(get_db), user=Depends(recruiter_only)):
    job = db.query(Job).filter(Job.id == job_id, Job.recruiter_id == current_user_id(user)).first()
    if not job:
        raise HTTPException(status_code=404, detail=get_error_message("job_view_denied"))

    rows = (
        _with_candidate(db.query(Application))
        .filter(Application.job_id == job_id)
        .order_by(Application.created_at.asc(), Application.id.asc())
        .all()
    )
    return [application_for_recruiter(a) for a in rows]


@router.get("/applications")
def recruiter_applications(db: Session = Depends(get_db), user=Depends(recruiter_only)):
    rows = (
        _with_candidate(db.query(Application))
        .options(joinedload(Application.job))
        .join(Job, Application.job_id == Job.id)
        .filter(Job.recruiter_id == current_user_id(user))
        .order_by(Application.created_at.asc(), Application.id.asc())
        .all()
    )
    return [application_for_recruiter(a, include_job=True) for a in rows]


@router.put("/applications/{application_id:int}/status")
def update_application_status(
    application_id: int,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    user=Depends(recruiter_only),
):
    status = validate_application_status(payload.status)

    application = (
        db.query(Application)
        .join(Job, Application.job_id == Job.id)
        .filter(Application.id == application_id, Job.recruiter_id == current_user_id(user))
        .first()
    )
    if not application:
        raise HTTPException(status_code=404, detail=get_error_message("application_denied"))

    changed = apply_status_change(application, status)
    if changed:
        db.commit()
        db.refresh(application)
        logger.info("Application %s moved to %s", application.id, application.status)

    return {"message": "Application status updated successfully", "application": application_public(application)}
