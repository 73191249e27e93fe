# Importing every model registers its table on Base.metadata.
from .application import Application
from .job import Job
from .job_skill import JobSkill
from .message import Message
from .skill import Skill
from .user import User
from .user_skill import UserSkill

__all__ = [
    "Application",
    "Job",
    "JobSkill",
    "Message",
    "Skill",
    "User",
    "UserSkill",
]
