"""
Tests for case resolution service
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from academy_support.core.database import Base
from academy_support.models.case import SupportCase, Channel, CaseStatus, AgentPersona
from academy_support.services.case_resolver import find_open_case, resolve_case, touch_case


@pytest.fixture
def db_session():
    """Create test database session"""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()


def test_resolve_creates_case(db_session):
    """Test first contact creates an active Morpheus case"""
    case = resolve_case(db_session, Channel.TELEGRAM, "1001", display_name="neo", telegram_user_id=77)

    assert case.id is not None
    assert case.channel == Channel.TELEGRAM
    assert case.external_id == "1001"
    assert case.status == CaseStatus.ACTIVE
    assert case.current_agent == AgentPersona.MORPHEUS
    assert case.telegram_username == "neo"
    assert case.telegram_user_id == 77


def test_resolve_returns_existing_open_case(db_session):
    """Test repeated contact reuses the open case"""
    first = resolve_case(db_session, Channel.TELEGRAM, "1001")
    second = resolve_case(db_session, Channel.TELEGRAM, "1001")

    assert first.id == second.id
    assert db_session.query(SupportCase).count() == 1


def test_resolve_reuses_escalated_case(db_session):
    """Test escalated cases still count as open"""
    case = resolve_case(db_session, Channel.TELEGRAM, "1001")
    case.status = CaseStatus.ESCALATED
    case.current_agent = AgentPersona.TRINITY
    db_session.commit()

    resolved = resolve_case(db_session, Channel.TELEGRAM, "1001")
    assert resolved.id == case.id
    assert resolved.current_agent == AgentPersona.TRINITY


@pytest.mark.parametrize("status", [CaseStatus.CLOSED, CaseStatus.WAITING_ON_USER])
def test_resolve_ignores_non_open_cases(db_session, status):
    """Test closed and waiting cases are not resumed"""
    old = resolve_case(db_session, Channel.TELEGRAM, "1001")
    old.status = status
    db_session.commit()

    new = resolve_case(db_session, Channel.TELEGRAM, "1001")
    assert new.id != old.id
    assert new.status == CaseStatus.ACTIVE
    assert db_session.query(SupportCase).count() == 2


def test_resolve_is_scoped_by_channel(db_session):
    """Test identical ids on different channels are distinct identities"""
    telegram_case = resolve_case(db_session, Channel.TELEGRAM, "abc")
    voice_case = resolve_case(db_session, Channel.VAPI_VOICE, "abc")

    assert telegram_case.id != voice_case.id
    assert find_open_case(db_session, Channel.VAPI_VOICE, "abc").id == voice_case.id


def test_find_open_case_unknown_identity(db_session):
    """Test unknown identity has no open case"""
    assert find_open_case(db_session, Channel.TELEGRAM, "nobody") is None


def test_touch_case_bumps_updated_at(db_session):
    """Test inbound activity refreshes updated_at"""
    case = resolve_case(db_session, Channel.TELEGRAM, "1001")
    before = case.updated_at

    touch_case(db_session, case)
    assert case.updated_at >= before
