"""
Telemetry logging service
"""
from sqlalchemy.orm import Session
from typing import Optional, Dict, Any
from academy_support.models.telemetry import TelemetryEvent, TelemetrySource, TelemetryLevel
import uuid


def log_telemetry(
    db: Session,
    source: TelemetrySource,
    event_key: str,
    payload: Optional[Dict[str, Any]] = None,
    level: TelemetryLevel = TelemetryLevel.INFO,
    case_id: Optional[uuid.UUID] = None
) -> TelemetryEvent:
    """Log a telemetry event"""
    event = TelemetryEvent(
        source=source,
        level=level,
        event_key=event_key,
        payload=payload or {},
        case_id=case_id
    )
    db.add(event)
    db.commit()
    return event
