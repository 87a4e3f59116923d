"""
Profile document model - one row per user holding the whole profile as JSON
"""
from sqlalchemy import Column, String, Text, DateTime, Integer, BigInteger, JSON
from sqlalchemy.sql import func
from ..database import Base


class Profile(Base):
    """Profile document keyed by user id, populated manually or from resume parsing"""
    __tablename__ = "profiles"

    user_id = Column(String(64), primary_key=True, index=True)

    name = Column(String(200), nullable=False, default="")
    email = Column(String(320), nullable=False, default="")
    phone = Column(String(50), nullable=False, default="")
    location = Column(String(200), nullable=False, default="")
    personal_summary = Column(Text, nullable=False, default="")

    # Arrays of camelCase records, replaced wholesale on update
    work_experience = Column(JSON, nullable=False, default=list)
    education = Column(JSON, nullable=False, default=list)
    skills = Column(JSON, nullable=False, default=list)

    # Optimistic concurrency: every write bumps version
    version = Column(Integer, nullable=False, default=1)
    # Highest record id issued for this profile
    id_sequence = Column(BigInteger, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
