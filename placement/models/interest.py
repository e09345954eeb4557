from sqlalchemy import JSON, Column, DateTime, Integer, String, Text, UniqueConstraint

from .base import Base


class PlacementInterestRequest(Base):
    __tablename__ = "placement_interest_requests"
    # One request per (student, job); a rejected request is overwritten in place
    __table_args__ = (UniqueConstraint("student_id", "job_id", name="uq_placement_interest_student_job"),)

    id = Column(Integer, primary_key=True)
    student_id = Column(String(64), nullable=False, index=True)
    job_id = Column(String(64), nullable=False, index=True)
    status = Column(String(32), nullable=False, default="pending")

    reason = Column(Text, nullable=False)
    acknowledged_gaps = Column(JSON, nullable=False, default=list)
    improvement_plan = Column(Text)
    match_percentage = Column(Integer)

    reviewed_by = Column(String(64))
    reviewed_at = Column(DateTime(timezone=True))
    review_notes = Column(Text)
    rejection_reason = Column(Text)
    created_at = Column(DateTime(timezone=True))
