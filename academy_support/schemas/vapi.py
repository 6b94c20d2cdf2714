"""
Vapi server event payloads
"""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, Dict, Any

# Events that must identify the call they belong to
CALL_SCOPED_EVENTS = {
    "call.started", "call-start",
    "call.ended", "call-end",
    "function-call",
    "error",
}


class VapiCustomer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    number: Optional[str] = None


class VapiCall(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    direction: Optional[str] = None
    customer: Optional[VapiCustomer] = None
    duration: Optional[float] = None
    transcript: Optional[str] = None
    recordingUrl: Optional[str] = None


class VapiFunctionCall(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    parameters: Dict[str, Any] = Field(default_factory=dict)


class VapiEvent(BaseModel):
    """
    A Vapi webhook event

    Accepts both the enveloped form ({"message": {...}}) and a flat body,
    and "event" as an alias of "type".
    """
    model_config = ConfigDict(extra="ignore")

    type: str = Field(min_length=1, max_length=64)
    call: Optional[VapiCall] = None
    callId: Optional[str] = None
    functionCall: Optional[VapiFunctionCall] = None
    transcript: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None
    error: Optional[Any] = None
    durationSeconds: Optional[float] = None
    recordingUrl: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def unwrap_envelope(cls, data: Any) -> Any:
        if isinstance(data, dict):
            if isinstance(data.get("message"), dict):
                data = data["message"]
            if "type" not in data and "event" in data:
                data = {**data, "type": data["event"]}
        return data

    @model_validator(mode="after")
    def require_call_id(self) -> "VapiEvent":
        if self.type in CALL_SCOPED_EVENTS and not self.call_id:
            raise ValueError("call id is required")
        return self

    @property
    def call_id(self) -> Optional[str]:
        return (self.call.id if self.call else None) or self.callId
