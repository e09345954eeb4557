from sqlalchemy import JSON, Column, DateTime, Integer, String, UniqueConstraint

from .base import Base


class PlacementApplication(Base):
    __tablename__ = "placement_applications"
    # A withdrawn application is reused when the student applies again
    __table_args__ = (UniqueConstraint("student_id", "job_id", name="uq_placement_application_student_job"),)

    id = Column(Integer, primary_key=True)
    student_id = Column(String(64), nullable=False, index=True)
    job_id = Column(String(64), nullable=False, index=True)
    status = Column(String(32), nullable=False, default="applied")
    mode = Column(String(32), nullable=False, default="application")
    custom_responses = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True))
