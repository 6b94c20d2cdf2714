"""
Telemetry event model
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid
import enum
from academy_support.core.database import Base, JSONType, value_enum


class TelemetrySource(str, enum.Enum):
    TELEGRAM = "telegram"
    VAPI = "vapi"
    DISPATCHER = "dispatcher"
    ADMIN = "admin"


class TelemetryLevel(str, enum.Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    CRITICAL = "critical"


class TelemetryEvent(Base):
    __tablename__ = "telemetry_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    source = Column(value_enum(TelemetrySource), nullable=False, index=True)
    level = Column(value_enum(TelemetryLevel), nullable=False, default=TelemetryLevel.INFO)
    event_key = Column(String, nullable=False, index=True)  # e.g., "call_started", "send_failed"
    payload = Column(JSONType, nullable=True)
    case_id = Column(Uuid, ForeignKey("support_cases.id"), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    # Relationships
    case = relationship("SupportCase", back_populates="telemetry_events")
