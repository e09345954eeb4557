from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text, UniqueConstraint

from .base import Base


class PlacementReadiness(Base):
    __tablename__ = "placement_readiness"
    __table_args__ = (UniqueConstraint("student_id", "school", name="uq_placement_readiness_student_school"),)

    id = Column(Integer, primary_key=True)
    student_id = Column(String(64), nullable=False, index=True)
    school = Column(String(128), nullable=False)

    # One entry per criterion: status, submission and PoC review fields
    criteria_status = Column(JSON, nullable=False, default=list)
    readiness_percentage = Column(Integer, nullable=False, default=0)

    is_job_ready = Column(Boolean, nullable=False, default=False)
    approved_by = Column(String(64))
    approved_at = Column(DateTime(timezone=True))
    approval_notes = Column(Text)
