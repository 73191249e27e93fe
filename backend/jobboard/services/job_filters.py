"""
Job listing filters.

Query parameters are parsed leniently: anything that does not parse becomes
"no constraint" instead of an error. The resulting :class:`JobFilters` turns into
a conjunction of SQLAlchemy predicates; active-only is always part of it.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable

from sqlalchemy import or_, select
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from ..models.job import Job
from ..models.job_skill import JobSkill

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"^\s*\d+(?:\.\d+)?\s*$")


def parse_salary_bound(value: Any) -> int | None:
    """Positive whole amount, or None for missing, malformed, zero or negative input."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        bound = int(value)
    else:
        s = str(value)
        if not _NUMBER_RE.match(s):
            return None
        bound = int(float(s))
    return bound if bound > 0 else None


def parse_skill_ids(values: Iterable[Any] | Any | None) -> tuple[int, ...]:
    """
    Accept ``skillIds=1&skillIds=2`` and ``skillIds=1,2`` (or a mix).

    Non-numeric and non-positive entries are dropped; order is kept, duplicates removed.
    """
    if values is None:
        return ()
    if isinstance(values, (str, int)):
        values = [values]

    out: list[int] = []
    for raw in values:
        for part in str(raw).split(","):
            part = part.strip()
            if not part.isdigit():
                continue
            skill_id = int(part)
            if skill_id > 0 and skill_id not in out:
                out.append(skill_id)
    return tuple(out)


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


@dataclass(frozen=True)
class JobFilters:
    search: str | None = None
    location: str | None = None
    company: str | None = None
    employment_type: str | None = None
    min_salary: int | None = None
    max_salary: int | None = None
    skill_ids: tuple[int, ...] = ()

    @classmethod
    def from_query(
        cls,
        *,
        search: Any = None,
        location: Any = None,
        company: Any = None,
        employment_type: Any = None,
        min_salary: Any = None,
        max_salary: Any = None,
        skill_ids: Any = None,
    ) -> "JobFilters":
        return cls(
            search=_clean_text(search),
            location=_clean_text(location),
            company=_clean_text(company),
            employment_type=_clean_text(employment_type),
            min_salary=parse_salary_bound(min_salary),
            max_salary=parse_salary_bound(max_salary),
            skill_ids=parse_skill_ids(skill_ids),
        )

    @property
    def has_salary_bound(self) -> bool:
        return self.min_salary is not None or self.max_salary is not None


def build_job_conditions(filters: JobFilters) -> list:
    """Predicates for ``filters``; always includes the active-only constraint."""
    conditions = [Job.is_active.is_(True)]

    if filters.search:
        conditions.append(
            or_(
                Job.title.icontains(filters.search, autoescape=True),
                Job.description.icontains(filters.search, autoescape=True),
                Job.company.icontains(filters.search, autoescape=True),
            )
        )

    if filters.location:
        conditions.append(Job.location.icontains(filters.location, autoescape=True))

    if filters.company:
        conditions.append(Job.company.icontains(filters.company, autoescape=True))

    if filters.employment_type:
        conditions.append(Job.employment_type == filters.employment_type)

    # A requested bound excludes jobs whose salary could not be normalized.
    if filters.has_salary_bound:
        conditions.append(Job.salary_amount.is_not(None))
    if filters.min_salary is not None:
        conditions.append(Job.salary_amount >= filters.min_salary)
    if filters.max_salary is not None:
        conditions.append(Job.salary_amount <= filters.max_salary)

    # Any one of the listed skills qualifies a job.
    if filters.skill_ids:
        conditions.append(
            Job.id.in_(select(JobSkill.job_id).where(JobSkill.skill_id.in_(filters.skill_ids)))
        )

    return conditions


def apply_job_filters(query: Query, filters: JobFilters) -> Query:
    return query.filter(*build_job_conditions(filters))


def with_listing_relations(query: Query) -> Query:
    # Every listing payload renders recruiter + skills; load them up front.
    return query.options(joinedload(Job.recruiter), selectinload(Job.skills))


def search_jobs(db: Session, filters: JobFilters) -> list[Job]:
    """Public job listing, newest first."""
    q = apply_job_filters(db.query(Job), filters)
    jobs = with_listing_relations(q).order_by(Job.created_at.desc(), Job.id.desc()).all()
    logger.debug("Job search %s matched %d jobs", filters, len(jobs))
    return jobs
