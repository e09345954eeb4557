from sqlalchemy import JSON, Column, Date, DateTime, Float, Integer, String, Text

from .base import Base


class PlacementStudentProfile(Base):
    __tablename__ = "placement_student_profiles"

    student_id = Column(String(64), primary_key=True)

    # Eligibility attributes
    school = Column(String(128))
    campus = Column(String(128))
    current_module = Column(String(128))
    cgpa = Column(Float)
    gender = Column(String(32))
    house = Column(String(64))
    attendance_percentage = Column(Float)
    date_of_joining = Column(Date)

    # Approval
    profile_status = Column(String(32), nullable=False, default="draft")
    revision_notes = Column(Text)
    reviewed_by = Column(String(64))
    reviewed_at = Column(DateTime(timezone=True))
    submitted_at = Column(DateTime(timezone=True))

    skills = Column(JSON, nullable=False, default=list)
    version = Column(Integer, nullable=False, default=0)
