from sqlalchemy import JSON, Column, DateTime, Integer, String

from .base import Base


class PlacementJob(Base):
    __tablename__ = "placement_jobs"

    job_id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False, default="")
    company = Column(String(255), nullable=False, default="")

    eligibility = Column(JSON, nullable=False, default=dict)
    required_skills = Column(JSON, nullable=False, default=list)
    custom_requirements = Column(JSON, nullable=False, default=list)

    application_deadline = Column(DateTime(timezone=True))
    version = Column(Integer, nullable=False, default=0)
