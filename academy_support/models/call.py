"""
Voice call model
"""
from sqlalchemy import Column, String, DateTime, Boolean, Integer, Uuid
from datetime import datetime
import uuid
import enum
from academy_support.core.database import Base, value_enum


class CallDirection(str, enum.Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class CallStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class Call(Base):
    __tablename__ = "calls"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    vapi_call_id = Column(String, nullable=False, unique=True, index=True)
    provider = Column(String, nullable=False, default="vapi")
    direction = Column(value_enum(CallDirection), nullable=False, default=CallDirection.INBOUND)
    status = Column(value_enum(CallStatus), nullable=False, default=CallStatus.IN_PROGRESS, index=True)
    phone_number = Column(String, nullable=True)
    started_at = Column(DateTime, nullable=True)
    ended_at = Column(DateTime, nullable=True)
    duration_seconds = Column(Integer, nullable=True)
    transcript = Column(String, nullable=True)
    recording_url = Column(String, nullable=True)
    consent_confirmed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
