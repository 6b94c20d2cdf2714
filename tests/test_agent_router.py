"""
Tests for the agent routing state machine
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from academy_support.core.database import Base
from academy_support.core.errors import InvalidTransition
from academy_support.models.case import Channel, CaseStatus, AgentPersona, MessageSender
from academy_support.services.agent_router import (
    AgentRouter,
    AgentState,
    Command,
    parse_command,
    transition,
)
from academy_support.services.case_resolver import resolve_case

ACTIVE_MORPHEUS = AgentState(CaseStatus.ACTIVE, AgentPersona.MORPHEUS)
ESCALATED_TRINITY = AgentState(CaseStatus.ESCALATED, AgentPersona.TRINITY)


@pytest.fixture
def db_session():
    """Create test database session"""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def test_case(db_session):
    return resolve_case(db_session, Channel.TELEGRAM, "555", display_name="neo")


@pytest.mark.parametrize("text,command", [
    ("/start", Command.START),
    ("/HELP", Command.HELP),
    ("/status please", Command.STATUS),
    ("/close", Command.CLOSE),
    ("/trinity@AcademyBot", Command.SWITCH_TO_TRINITY),
    ("/morpheus", Command.SWITCH_TO_MORPHEUS),
    ("/foo", Command.UNKNOWN),
    ("/", Command.UNKNOWN),
])
def test_parse_command(text, command):
    """Test command parsing"""
    assert parse_command(text) == command


@pytest.mark.parametrize("text", ["hello", "", None, " /start", "what is /help"])
def test_parse_free_text(text):
    """Test free text is not a command"""
    assert parse_command(text) is None


def test_trinity_escalates():
    """Test /trinity hands off to Trinity and escalates"""
    assert transition(ACTIVE_MORPHEUS, Command.SWITCH_TO_TRINITY) == ESCALATED_TRINITY


def test_morpheus_returns_to_active():
    """Test /morpheus returns to Morpheus and reactivates"""
    assert transition(ESCALATED_TRINITY, Command.SWITCH_TO_MORPHEUS) == ACTIVE_MORPHEUS


def test_close_keeps_persona():
    """Test /close closes without changing persona"""
    closed = transition(ESCALATED_TRINITY, Command.CLOSE)
    assert closed == AgentState(CaseStatus.CLOSED, AgentPersona.TRINITY)


@pytest.mark.parametrize("command", [Command.START, Command.HELP, Command.STATUS, Command.UNKNOWN])
def test_informational_commands_leave_state(command):
    """Test informational commands never change state"""
    assert transition(ACTIVE_MORPHEUS, command) == ACTIVE_MORPHEUS
    assert transition(ESCALATED_TRINITY, command) == ESCALATED_TRINITY


@pytest.mark.parametrize("command", list(Command))
def test_transitions_are_idempotent(command):
    """Test applying the same command twice equals applying it once"""
    for state in (ACTIVE_MORPHEUS, ESCALATED_TRINITY):
        once = transition(state, command)
        assert transition(once, command) == once


@pytest.mark.parametrize("command", list(Command))
def test_closed_is_absorbing(command):
    """Test no command leaves the closed state"""
    closed = AgentState(CaseStatus.CLOSED, AgentPersona.MORPHEUS)
    assert transition(closed, command) == closed


def test_apply_commits_transition(db_session, test_case):
    """Test router persists the new state"""
    outcome = AgentRouter(db_session).apply(test_case, Command.SWITCH_TO_TRINITY)

    assert outcome.changed
    assert outcome.state == ESCALATED_TRINITY
    assert outcome.template_key == "handoff_trinity"
    assert outcome.reply_sender == MessageSender.TRINITY

    db_session.expire_all()
    assert test_case.status == CaseStatus.ESCALATED
    assert test_case.current_agent == AgentPersona.TRINITY


def test_apply_status_context(db_session, test_case):
    """Test status reply context reflects the case"""
    outcome = AgentRouter(db_session).apply(test_case, Command.STATUS)

    assert not outcome.changed
    assert outcome.reply_sender == MessageSender.SYSTEM
    assert outcome.template_context["case_id"] == test_case.short_id
    assert outcome.template_context["agent"] == "Morpheus (Text)"
    assert outcome.template_context["status"] == "Active"


def test_apply_escapes_display_name(db_session, test_case):
    """Test display names are HTML-escaped for templates"""
    outcome = AgentRouter(db_session).apply(test_case, Command.START, display_name="<b>neo</b>")
    assert outcome.template_context["name"] == "&lt;b&gt;neo&lt;/b&gt;"

    anonymous = AgentRouter(db_session).apply(test_case, Command.START)
    assert anonymous.template_context["name"] == "Neo"


def test_assign_overrides_state(db_session, test_case):
    """Test operator assignment"""
    state = AgentRouter(db_session).assign(test_case, status=CaseStatus.WAITING_ON_USER)

    assert state == AgentState(CaseStatus.WAITING_ON_USER, AgentPersona.MORPHEUS)
    assert test_case.status == CaseStatus.WAITING_ON_USER


def test_assign_rejects_closed_case(db_session, test_case):
    """Test closed cases cannot be reassigned"""
    router = AgentRouter(db_session)
    router.apply(test_case, Command.CLOSE)

    with pytest.raises(InvalidTransition):
        router.assign(test_case, persona=AgentPersona.TRINITY)


def test_assign_rejects_second_open_case(db_session, test_case):
    """Test a parked case cannot reopen beside a newer open case"""
    router = AgentRouter(db_session)
    router.assign(test_case, status=CaseStatus.WAITING_ON_USER)
    newer = resolve_case(db_session, Channel.TELEGRAM, "555")
    assert newer.id != test_case.id

    with pytest.raises(InvalidTransition):
        router.assign(test_case, status=CaseStatus.ACTIVE)

    db_session.expire_all()
    assert test_case.status == CaseStatus.WAITING_ON_USER


def test_assign_persona_on_parked_case(db_session, test_case):
    """Test persona changes on a non-open case do not need the open check"""
    router = AgentRouter(db_session)
    router.assign(test_case, status=CaseStatus.WAITING_ON_USER)
    resolve_case(db_session, Channel.TELEGRAM, "555")

    state = router.assign(test_case, persona=AgentPersona.TRINITY)
    assert state == AgentState(CaseStatus.WAITING_ON_USER, AgentPersona.TRINITY)
