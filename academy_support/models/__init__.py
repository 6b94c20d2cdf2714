"""
SQLAlchemy models
"""
from academy_support.models.case import (
    SupportCase,
    CaseMessage,
    Channel,
    CaseType,
    CasePriority,
    CaseStatus,
    AgentPersona,
    MessageSender,
    MessageType,
    OPEN_STATUSES,
)
from academy_support.models.telemetry import TelemetryEvent, TelemetrySource, TelemetryLevel
from academy_support.models.call import Call, CallDirection, CallStatus

__all__ = [
    "SupportCase",
    "CaseMessage",
    "Channel",
    "CaseType",
    "CasePriority",
    "CaseStatus",
    "AgentPersona",
    "MessageSender",
    "MessageType",
    "OPEN_STATUSES",
    "TelemetryEvent",
    "TelemetrySource",
    "TelemetryLevel",
    "Call",
    "CallDirection",
    "CallStatus",
]
