import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.job import Job
from ..services.job_filters import JobFilters, search_jobs, with_listing_relations
from ..services.relevance import find_relevant_jobs
from ..services.salary import normalize_salary
from ..services.skills import replace_job_skills
from ..utils.dependencies import current_user_id
from ..utils.error_handlers import get_error_message
from ..utils.roles import candidate_only, recruiter_only
from ..utils.validation import validate_id_list, validate_string_field
from .payloads import job_to_public

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


class JobCreate(BaseModel):
    title: str | None = None
    description: str | None = None
    company: str | None = None
    location: str | None = None
    salary: str | int | float | None = None
    salaryAmount: int | str | None = None
    salaryCurrency: str | None = None
    employmentType: str | None = None
    skillIds: list | None = None


class JobUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    company: str | None = None
    location: str | None = None
    salary: str | int | float | None = None
    salaryAmount: int | str | None = None
    salaryCurrency: str | None = None
    employmentType: str | None = None
    isActive: bool | None = None
    skillIds: list | None = None


def _filters_from_query(
    search: str | None,
    location: str | None,
    company: str | None,
    employment_type: str | None,
    min_salary: str | None,
    max_salary: str | None,
    skill_ids: list[str] | None,
) -> JobFilters:
    return JobFilters.from_query(
        search=search,
        location=location,
        company=company,
        employment_type=employment_type,
        min_salary=min_salary,
        max_salary=max_salary,
        skill_ids=skill_ids,
    )


def _salary_fields(salary, amount, currency):
    try:
        return normalize_salary(salary, amount=amount, currency=currency)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _owned_job(db: Session, *, job_id: int, recruiter_id: int, denied_key: str) -> Job:
    # Missing and not-yours look the same to the caller.
    job = db.query(Job).filter(Job.id == job_id, Job.recruiter_id == recruiter_id).first()
    if not job:
        raise HTTPException(status_code=404, detail=get_error_message(denied_key))
    return job


def _reload_for_listing(db: Session, job_id: int) -> Job:
    return with_listing_relations(db.query(Job).filter(Job.id == job_id)).one()


@router.get("")
def list_jobs(
    search: str | None = Query(default=None),
    location: str | None = Query(default=None),
    company: str | None = Query(default=None),
    employment_type: str | None = Query(default=None, alias="employmentType"),
    min_salary: str | None = Query(default=None, alias="minSalary"),
    max_salary: str | None = Query(default=None, alias="maxSalary"),
    skill_ids: list[str] | None = Query(default=None, alias="skillIds"),
    db: Session = Depends(get_db),
):
    filters = _filters_from_query(search, location, company, employment_type, min_salary, max_salary, skill_ids)
    return [job_to_public(j) for j in search_jobs(db, filters)]


@router.get("/relevant")
def relevant_jobs(
    search: str | None = Query(default=None),
    location: str | None = Query(default=None),
    company: str | None = Query(default=None),
    employment_type: str | None = Query(default=None, alias="employmentType"),
    min_salary: str | None = Query(default=None, alias="minSalary"),
    max_salary: str | None = Query(default=None, alias="maxSalary"),
    skill_ids: list[str] | None = Query(default=None, alias="skillIds"),
    db: Session = Depends(get_db),
    user=Depends(candidate_only),
):
    filters = _filters_from_query(search, location, company, employment_type, min_salary, max_salary, skill_ids)
    ranked = find_relevant_jobs(db, candidate_id=current_user_id(user), filters=filters)
    return [job_to_public(r.job, match_count=r.match_count) for r in ranked]


@router.get("/mine")
def my_jobs(db: Session = Depends(get_db), user=Depends(recruiter_only)):
    q = db.query(Job).filter(Job.recruiter_id == current_user_id(user))
    jobs = with_listing_relations(q).order_by(Job.created_at.desc(), Job.id.desc()).all()
    return [job_to_public(j) for j in jobs]


@router.get("/{job_id:int}")
def get_job(job_id: int, db: Session = Depends(get_db)):
    q = db.query(Job).filter(Job.id == job_id, Job.is_active.is_(True))
    job = with_listing_relations(q).first()
    if not job:
        raise HTTPException(status_code=404, detail=get_error_message("job_not_found"))
    return job_to_public(job)


@router.post("", status_code=201)
def create_job(payload: JobCreate, db: Session = Depends(get_db), user=Depends(recruiter_only)):
    if not (payload.title and payload.description and payload.company and payload.location):
        raise HTTPException(status_code=400, detail=get_error_message("job_required_fields"))

    title = validate_string_field(payload.title, "Title", max_length=255)
    description = validate_string_field(payload.description, "Description", max_length=20000)
    company = validate_string_field(payload.company, "Company", max_length=255)
    location = validate_string_field(payload.location, "Location", max_length=255)
    employment_type = validate_string_field(payload.employmentType, "Employment type", max_length=50, required=False)
    skill_ids = validate_id_list(payload.skillIds, "skillIds") if payload.skillIds is not None else []
    salary = _salary_fields(payload.salary, payload.salaryAmount, payload.salaryCurrency)

    job = Job(
        title=title,
        description=description,
        company=company,
        location=location,
        salary=salary.text,
        salary_amount=salary.amount,
        salary_currency=salary.currency,
        employment_type=employment_type,
        recruiter_id=current_user_id(user),
        is_active=True,
    )
    try:
        db.add(job)
        db.flush()
        if skill_ids:
            replace_job_skills(db, job_id=job.id, skill_ids=skill_ids)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Recruiter %s created job %s", job.recruiter_id, job.id)
    return {"message": "Job created successfully", "job": job_to_public(_reload_for_listing(db, job.id))}


@router.put("/{job_id:int}")
def update_job(job_id: int, payload: JobUpdate, db: Session = Depends(get_db), user=Depends(recruiter_only)):
    job = _owned_job(db, job_id=job_id, recruiter_id=current_user_id(user), denied_key="job_update_denied")
    fields = payload.model_fields_set

    if "title" in fields:
        job.title = validate_string_field(payload.title, "Title", max_length=255)
    if "description" in fields:
        job.description = validate_string_field(payload.description, "Description", max_length=20000)
    if "company" in fields:
        job.company = validate_string_field(payload.company, "Company", max_length=255)
    if "location" in fields:
        job.location = validate_string_field(payload.location, "Location", max_length=255)
    if "employmentType" in fields:
        job.employment_type = validate_string_field(
            payload.employmentType, "Employment type", max_length=50, required=False
        )
    if fields & {"salary", "salaryAmount", "salaryCurrency"}:
        # Fields not sent keep their stored value; new salary text re-derives
        # whichever of amount/currency was not sent alongside it.
        text_changed = "salary" in fields
        text = payload.salary if text_changed else job.salary
        if "salaryAmount" in fields:
            amount = payload.salaryAmount
        else:
            amount = None if text_changed else job.salary_amount
        if "salaryCurrency" in fields:
            currency = payload.salaryCurrency
        else:
            currency = None if text_changed else job.salary_currency
        salary = _salary_fields(text, amount, currency)
        job.salary = salary.text
        job.salary_amount = salary.amount
        job.salary_currency = salary.currency
    if "isActive" in fields and payload.isActive is not None:
        job.is_active = payload.isActive

    try:
        if "skillIds" in fields:
            skill_ids = validate_id_list(payload.skillIds or [], "skillIds")
            replace_job_skills(db, job_id=job.id, skill_ids=skill_ids)
        job.updated_at = datetime.now(timezone.utc)
        db.commit()
    except Exception:
        db.rollback()
        raise

    return {"message": "Job updated successfully", "job": job_to_public(_reload_for_listing(db, job.id))}


@router.delete("/{job_id:int}", status_code=200)
def delete_job(job_id: int, db: Session = Depends(get_db), user=Depends(recruiter_only)):
    job = _owned_job(db, job_id=job_id, recruiter_id=current_user_id(user), denied_key="job_delete_denied")

    # Skill links and applications go with the job; messages keep their row.
    try:
        db.delete(job)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Recruiter %s deleted job %s", current_user_id(user), job_id)
    return {"message": "Job deleted successfully", "deletedJobId": job_id}
