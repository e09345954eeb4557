from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, String

from db import Base


class User(Base):
    """Platform account; `role` is the server-side source of truth for authorization."""
    __tablename__ = "users"
    id = Column(String(64), primary_key=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255))
    role = Column(String(32), nullable=False, default="student")
    campus = Column(String(128))
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=False), default=datetime.utcnow, nullable=False)
