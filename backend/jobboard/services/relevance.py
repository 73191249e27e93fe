"""
Skill-based job relevance for a candidate.

A job's match count is the number of its skills the candidate also has. Only
active jobs that pass the listing filters and share at least one skill are
returned, ordered by match count desc, then newest first, then id desc. A
candidate without skills gets nothing.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.job import Job
from ..models.job_skill import JobSkill
from .job_filters import JobFilters, apply_job_filters, with_listing_relations
from .skills import candidate_skill_ids

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankedJob:
    job: Any
    match_count: int


def _created_ts(job: Any) -> float:
    created = getattr(job, "created_at", None)
    return created.timestamp() if isinstance(created, datetime) else 0.0


def match_count(job: Any, candidate_skills: set[int]) -> int:
    return len(candidate_skills & {s.id for s in (job.skills or [])})


def rank_jobs(jobs: Iterable[Any], candidate_skills: Iterable[int]) -> list[RankedJob]:
    """
    Order ``jobs`` by how many of the candidate's skills each one requires.

    Jobs sharing no skill are dropped. Equal counts fall back to newest first,
    then the higher id, so the order does not depend on how rows were fetched.
    A candidate without skills gets an empty list.
    """
    wanted = set(candidate_skills)
    if not wanted:
        return []

    ranked = []
    for job in jobs:
        count = match_count(job, wanted)
        if count > 0:
            ranked.append(RankedJob(job=job, match_count=count))

    ranked.sort(key=lambda r: (r.match_count, _created_ts(r.job), r.job.id), reverse=True)
    return ranked


def find_relevant_jobs(db: Session, *, candidate_id: int, filters: JobFilters) -> list[RankedJob]:
    skill_ids = candidate_skill_ids(db, candidate_id)
    if not skill_ids:
        return []

    overlapping = select(JobSkill.job_id).where(JobSkill.skill_id.in_(skill_ids))
    q = apply_job_filters(db.query(Job).filter(Job.id.in_(overlapping)), filters)
    jobs = with_listing_relations(q).all()

    ranked = rank_jobs(jobs, skill_ids)
    logger.info("Relevant jobs for candidate %s: %d", candidate_id, len(ranked))
    return ranked
