"""
Skill catalog: named skills plus the user/job association rows that point at them.
"""
import logging
from typing import Any, Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.job_skill import JobSkill
from ..models.skill import Skill
from ..models.user_skill import UserSkill
from ..utils.error_handlers import ValidationError, get_error_message

logger = logging.getLogger(__name__)


def list_skills(db: Session) -> list[Skill]:
    return db.query(Skill).order_by(Skill.name.asc()).all()


def clean_skill_names(names: Iterable[Any]) -> list[str]:
    out: list[str] = []
    for name in names:
        if not isinstance(name, str):
            continue
        name = name.strip()
        if name and len(name) <= 100 and name not in out:
            out.append(name)
    return out


def create_skills(db: Session, names: Iterable[Any]) -> tuple[list[Skill], list[Skill]]:
    """
    Create the skills in ``names`` that do not exist yet.

    Returns ``(added, existing)``. The unique index on ``skills.name`` is the
    source of truth: a name inserted concurrently by another request ends up in
    ``existing`` rather than failing the call.
    """
    skill_names = clean_skill_names(names)
    if not skill_names:
        raise ValidationError(get_error_message("valid_skill_names_required"))

    existing = db.query(Skill).filter(Skill.name.in_(skill_names)).all()
    existing_names = {s.name for s in existing}
    new_names = [n for n in skill_names if n not in existing_names]
    if not new_names:
        return [], existing

    added = [Skill(name=n) for n in new_names]
    try:
        db.add_all(added)
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Concurrent skill insert detected; retrying names one by one")
        added = []
        for n in new_names:
            skill = Skill(name=n)
            db.add(skill)
            try:
                db.commit()
                added.append(skill)
            except IntegrityError:
                db.rollback()
                existing.append(db.query(Skill).filter(Skill.name == n).one())

    for s in added:
        db.refresh(s)
    return added, existing


def resolve_skill_ids(db: Session, skill_ids: Iterable[int]) -> list[int]:
    """Return ``skill_ids`` de-duplicated; every id must name an existing skill."""
    ids: list[int] = []
    for i in skill_ids:
        if i not in ids:
            ids.append(i)
    if not ids:
        return []

    found = {row[0] for row in db.query(Skill.id).filter(Skill.id.in_(ids)).all()}
    missing = [i for i in ids if i not in found]
    if missing:
        raise ValidationError(get_error_message("unknown_skills"), details={"missing_skill_ids": missing})
    return ids


def replace_user_skills(db: Session, *, user_id: int, skill_ids: Iterable[int]) -> None:
    """Delete-then-reinsert the user's skill set. Caller commits."""
    ids = resolve_skill_ids(db, skill_ids)
    db.query(UserSkill).filter(UserSkill.user_id == user_id).delete(synchronize_session=False)
    db.add_all([UserSkill(user_id=user_id, skill_id=i) for i in ids])
    db.flush()


def replace_job_skills(db: Session, *, job_id: int, skill_ids: Iterable[int]) -> None:
    """Delete-then-reinsert the job's skill set; an empty list clears it. Caller commits."""
    ids = resolve_skill_ids(db, skill_ids)
    db.query(JobSkill).filter(JobSkill.job_id == job_id).delete(synchronize_session=False)
    db.add_all([JobSkill(job_id=job_id, skill_id=i) for i in ids])
    db.flush()


def candidate_skill_ids(db: Session, user_id: int) -> set[int]:
    rows = db.query(UserSkill.skill_id).filter(UserSkill.user_id == user_id).all()
    return {r[0] for r in rows}
