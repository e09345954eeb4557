from sqlalchemy import Boolean, Column, Integer, String, Text, UniqueConstraint

from .base import Base


class PlacementCriterion(Base):
    __tablename__ = "placement_criteria"
    __table_args__ = (UniqueConstraint("school", "criteria_id", name="uq_placement_criteria_school_criteria"),)

    id = Column(Integer, primary_key=True)
    school = Column(String(128), nullable=False, index=True)
    criteria_id = Column(String(128), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    name = Column(String(255), nullable=False)
    description = Column(Text, default="")
    input_type = Column(String(32), nullable=False, default="answer")
    category = Column(String(32), nullable=False, default="other")
    is_mandatory = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # PoC review settings
    poc_comment_required = Column(Boolean, nullable=False, default=False)
    poc_comment_template = Column(Text)
    poc_rating_required = Column(Boolean, nullable=False, default=False)
    poc_rating_scale = Column(Integer, nullable=False, default=4)
