"""
Agent routing state machine

The per-case agent state (status + persona) is a value object; channel
commands move it through pure transitions, and AgentRouter commits the
result to the case row.
"""
import enum
import html
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from academy_support.core.errors import InvalidTransition
from academy_support.models.case import SupportCase, CaseStatus, AgentPersona, MessageSender, OPEN_STATUSES
from academy_support.services.case_resolver import find_open_case
from academy_support.services.personas import get_persona

logger = logging.getLogger(__name__)


class Command(str, enum.Enum):
    START = "/start"
    HELP = "/help"
    STATUS = "/status"
    CLOSE = "/close"
    SWITCH_TO_TRINITY = "/trinity"
    SWITCH_TO_MORPHEUS = "/morpheus"
    UNKNOWN = "unknown"


def parse_command(text: Optional[str]) -> Optional[Command]:
    """
    Parse a channel command from inbound text

    Returns None for free text. The first whitespace-delimited token is
    matched case-insensitively; a Telegram "@botname" suffix is ignored.
    """
    if not text or not text.startswith("/"):
        return None
    token = text.split()[0].lower().split("@", 1)[0]
    try:
        return Command(token)
    except ValueError:
        return Command.UNKNOWN


@dataclass(frozen=True)
class AgentState:
    status: CaseStatus
    persona: AgentPersona

    @classmethod
    def of(cls, case: SupportCase) -> "AgentState":
        return cls(status=CaseStatus(case.status), persona=AgentPersona(case.current_agent))

    @property
    def is_closed(self) -> bool:
        return self.status == CaseStatus.CLOSED


def transition(state: AgentState, command: Command) -> AgentState:
    """Next agent state for a command; closed is absorbing"""
    if state.is_closed:
        return state
    if command == Command.SWITCH_TO_TRINITY:
        return AgentState(status=CaseStatus.ESCALATED, persona=AgentPersona.TRINITY)
    if command == Command.SWITCH_TO_MORPHEUS:
        return AgentState(status=CaseStatus.ACTIVE, persona=AgentPersona.MORPHEUS)
    if command == Command.CLOSE:
        return AgentState(status=CaseStatus.CLOSED, persona=state.persona)
    return state


# command -> (template key, reply sender, system note)
_COMMAND_REPLIES = {
    Command.START: ("welcome", MessageSender.MORPHEUS, "User started a conversation"),
    Command.HELP: ("help", MessageSender.SYSTEM, None),
    Command.STATUS: ("status", MessageSender.SYSTEM, None),
    Command.CLOSE: ("close", MessageSender.SYSTEM, "Case closed by user"),
    Command.SWITCH_TO_TRINITY: ("handoff_trinity", MessageSender.TRINITY, "User requested Trinity (voice) escalation"),
    Command.SWITCH_TO_MORPHEUS: ("return_morpheus", MessageSender.MORPHEUS, "User returned to Morpheus (text)"),
    Command.UNKNOWN: ("unknown_command", MessageSender.SYSTEM, None),
}


@dataclass
class RouteOutcome:
    """Result of applying a command to a case"""
    command: Command
    previous: AgentState
    state: AgentState
    template_key: str
    reply_sender: MessageSender
    note: Optional[str] = None
    template_context: Dict[str, Any] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return self.previous != self.state


class AgentRouter:
    """Applies agent state transitions to support cases"""

    def __init__(self, db: Session):
        self.db = db

    def apply(self, case: SupportCase, command: Command, display_name: Optional[str] = None) -> RouteOutcome:
        """
        Apply a channel command to the case and commit the new state

        Store errors propagate; each commit is a single-row update.
        """
        previous = AgentState.of(case)
        state = transition(previous, command)
        if state != previous:
            self._commit(case, state)
            logger.info(
                "Case %s: %s/%s -> %s/%s via %s",
                case.id, previous.status.value, previous.persona.value,
                state.status.value, state.persona.value, command.value
            )

        template_key, sender, note = _COMMAND_REPLIES[command]
        return RouteOutcome(
            command=command,
            previous=previous,
            state=state,
            template_key=template_key,
            reply_sender=sender,
            note=note,
            template_context=self._template_context(case, state, display_name),
        )

    def assign(
        self,
        case: SupportCase,
        persona: Optional[AgentPersona] = None,
        status: Optional[CaseStatus] = None
    ) -> AgentState:
        """
        Operator override of persona and/or status

        Closed cases stay closed, and a case cannot reopen while another
        case for the same identity is open.
        """
        previous = AgentState.of(case)
        if previous.is_closed:
            raise InvalidTransition("Case is closed")
        state = AgentState(
            status=CaseStatus(status) if status else previous.status,
            persona=AgentPersona(persona) if persona else previous.persona,
        )
        if state.status in OPEN_STATUSES and previous.status not in OPEN_STATUSES:
            open_case = find_open_case(self.db, case.channel, case.external_id)
            if open_case is not None and open_case.id != case.id:
                raise InvalidTransition("Another case is open for this identity")
        if state != previous:
            self._commit(case, state)
        return state

    def _commit(self, case: SupportCase, state: AgentState) -> None:
        case.status = state.status
        case.current_agent = state.persona
        self.db.commit()

    @staticmethod
    def _template_context(case: SupportCase, state: AgentState, display_name: Optional[str]) -> Dict[str, Any]:
        return {
            "name": html.escape(display_name) if display_name else "Neo",
            "case_id": case.short_id,
            "agent": get_persona(state.persona).channel_label,
            "status": state.status.value.replace("_", " ").capitalize(),
        }
