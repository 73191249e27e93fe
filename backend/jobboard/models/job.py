from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    company = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    # Display text as entered by the recruiter ("₹50,000", "Competitive").
    salary = Column(String(100), nullable=True)
    # Normalized at write time; salary filters compare against this column only.
    salary_amount = Column(Integer, nullable=True, index=True)
    salary_currency = Column(String(5), nullable=True)
    employment_type = Column(String(50), nullable=True)  # full-time, part-time, contract, ...
    recruiter_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    recruiter = relationship("User", back_populates="jobs")
    # A job owns its skill associations and applications; deleting it removes both.
    job_skills = relationship("JobSkill", back_populates="job", cascade="all, delete-orphan")
    skills = relationship("Skill", secondary="job_skills", viewonly=True, order_by="Skill.name")
    applications = relationship("Application", back_populates="job", cascade="all, delete-orphan")
    messages = relationship("Message", back_populates="job")
