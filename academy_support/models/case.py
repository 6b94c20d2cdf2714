"""
Support case and case message models
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, BigInteger, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid
import enum
from academy_support.core.database import Base, JSONType, value_enum


class Channel(str, enum.Enum):
    TELEGRAM = "telegram"
    VAPI_VOICE = "vapi_voice"


class CaseType(str, enum.Enum):
    ONBOARDING = "onboarding"
    BILLING = "billing"
    TRUST = "trust"
    TECH = "tech"
    GENERAL = "general"


class CasePriority(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class CaseStatus(str, enum.Enum):
    ACTIVE = "active"
    ESCALATED = "escalated"
    WAITING_ON_USER = "waiting_on_user"
    CLOSED = "closed"


# Statuses that count as the identity's open conversation
OPEN_STATUSES = (CaseStatus.ACTIVE, CaseStatus.ESCALATED)


class AgentPersona(str, enum.Enum):
    MORPHEUS = "morpheus"  # calm expert, text support
    TRINITY = "trinity"  # warm onboarding, voice hand-off


class MessageSender(str, enum.Enum):
    USER = "user"
    MORPHEUS = "morpheus"
    TRINITY = "trinity"
    SYSTEM = "system"
    OPERATOR = "operator"


class MessageType(str, enum.Enum):
    TEXT = "text"
    COMMAND = "command"
    SYSTEM_NOTE = "system_note"


class SupportCase(Base):
    __tablename__ = "support_cases"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    channel = Column(value_enum(Channel), nullable=False, index=True)
    external_id = Column(String, nullable=False, index=True)  # chat id or call id
    user_id = Column(String, nullable=True, index=True)  # learning platform user, if linked
    telegram_user_id = Column(BigInteger, nullable=True)
    telegram_username = Column(String, nullable=True)
    vapi_call_id = Column(String, nullable=True, index=True)
    case_type = Column(value_enum(CaseType), nullable=True)
    priority = Column(value_enum(CasePriority), nullable=False, default=CasePriority.NORMAL)
    status = Column(value_enum(CaseStatus), nullable=False, default=CaseStatus.ACTIVE, index=True)
    current_agent = Column(value_enum(AgentPersona), nullable=False, default=AgentPersona.MORPHEUS)
    summary = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    messages = relationship("CaseMessage", back_populates="case", order_by="CaseMessage.created_at")
    telemetry_events = relationship("TelemetryEvent", back_populates="case")

    @property
    def short_id(self) -> str:
        return self.id.hex[:8]


class CaseMessage(Base):
    __tablename__ = "case_messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("support_cases.id"), nullable=False, index=True)
    sender = Column(value_enum(MessageSender), nullable=False)
    content = Column(String, nullable=False)
    channel_message_id = Column(String, nullable=True)  # e.g. Telegram message_id
    message_type = Column(value_enum(MessageType), nullable=False, default=MessageType.TEXT)
    message_metadata = Column("metadata", JSONType, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    # Relationships
    case = relationship("SupportCase", back_populates="messages")
