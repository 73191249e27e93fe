"""
JSON shapes returned by the routers.

Keys are camelCase to match what the SPA reads; timestamps are ISO-8601 strings.
"""
from datetime import datetime
from typing import Any

from ..models.application import Application
from ..models.job import Job
from ..models.message import Message
from ..models.skill import Skill
from ..models.user import User


def to_iso(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


def skill_public(skill: Skill) -> dict:
    return {"id": skill.id, "name": skill.name}


def user_brief(user: User | None) -> dict | None:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email, "role": user.role}


def user_public(user: User, *, include_skills: bool = False) -> dict:
    # Never expose the password hash.
    payload = {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "cvUrl": user.cv_url,
        "phone": user.phone,
        "location": user.location,
        "bio": user.bio,
        "createdAt": to_iso(user.created_at),
        "updatedAt": to_iso(user.updated_at),
    }
    if include_skills:
        payload["skills"] = [skill_public(s) for s in user.skills]
    return payload


def candidate_profile(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "location": user.location,
        "bio": user.bio,
        "cvUrl": user.cv_url,
        "skills": [skill_public(s) for s in user.skills],
    }


def job_to_public(job: Job, *, match_count: int | None = None) -> dict:
    recruiter = job.recruiter
    payload = {
        "id": job.id,
        "title": job.title,
        "description": job.description,
        "company": job.company,
        "location": job.location,
        "salary": job.salary,
        "salaryAmount": job.salary_amount,
        "salaryCurrency": job.salary_currency,
        "employmentType": job.employment_type,
        "isActive": bool(job.is_active),
        "createdAt": to_iso(job.created_at),
        "updatedAt": to_iso(job.updated_at),
        "recruiter": (
            {"id": recruiter.id, "name": recruiter.name, "email": recruiter.email} if recruiter else None
        ),
        "skills": [skill_public(s) for s in job.skills],
    }
    if match_count is not None:
        payload["matchCount"] = match_count
    return payload


def job_summary(job: Job | None) -> dict | None:
    if job is None:
        return None
    return {"id": job.id, "title": job.title, "company": job.company}


def application_public(application: Application) -> dict:
    return {
        "id": application.id,
        "jobId": application.job_id,
        "candidateId": application.candidate_id,
        "status": application.status,
        "createdAt": to_iso(application.created_at),
        "updatedAt": to_iso(application.updated_at),
    }


def application_for_candidate(application: Application) -> dict:
    job = application.job
    payload = application_public(application)
    payload["job"] = {
        "id": job.id,
        "title": job.title,
        "company": job.company,
        "location": job.location,
        "salary": job.salary,
        "employmentType": job.employment_type,
        "isActive": bool(job.is_active),
    }
    return payload


def application_for_recruiter(application: Application, *, include_job: bool = False) -> dict:
    payload = application_public(application)
    payload["candidate"] = candidate_profile(application.candidate)
    if include_job:
        payload["job"] = job_summary(application.job)
    return payload


def message_public(message: Message) -> dict:
    return {
        "id": message.id,
        "senderId": message.sender_id,
        "receiverId": message.receiver_id,
        "jobId": message.job_id,
        "content": message.content,
        "isRead": bool(message.is_read),
        "createdAt": to_iso(message.created_at),
        "sender": user_brief(message.sender),
        "receiver": user_brief(message.receiver),
        "job": job_summary(message.job),
    }
