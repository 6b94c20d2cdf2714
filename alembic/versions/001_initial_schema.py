"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


ENUMS = {
    'channel': ['telegram', 'vapi_voice'],
    'casetype': ['onboarding', 'billing', 'trust', 'tech', 'general'],
    'casepriority': ['low', 'normal', 'high', 'urgent'],
    'casestatus': ['active', 'escalated', 'waiting_on_user', 'closed'],
    'agentpersona': ['morpheus', 'trinity'],
    'messagesender': ['user', 'morpheus', 'trinity', 'system', 'operator'],
    'messagetype': ['text', 'command', 'system_note'],
    'telemetrysource': ['telegram', 'vapi', 'dispatcher', 'admin'],
    'telemetrylevel': ['info', 'warn', 'error', 'critical'],
    'calldirection': ['inbound', 'outbound'],
    'callstatus': ['in_progress', 'completed', 'failed'],
}


def create_enum_if_not_exists(enum_name, enum_values):
    """Create PostgreSQL ENUM type if it doesn't exist"""
    enum_name_escaped = enum_name.replace('"', '""')
    values_str = ", ".join("'" + v.replace("'", "''") + "'" for v in enum_values)
    op.execute(f"""
        DO $$ BEGIN
            IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = '{enum_name_escaped}') THEN
                CREATE TYPE "{enum_name_escaped}" AS ENUM ({values_str});
            END IF;
        END $$;
    """)


def enum(name):
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def upgrade() -> None:
    for name, values in ENUMS.items():
        create_enum_if_not_exists(name, values)

    # Support cases
    op.create_table(
        'support_cases',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('channel', enum('channel'), nullable=False, index=True),
        sa.Column('external_id', sa.String(), nullable=False, index=True),
        sa.Column('user_id', sa.String(), nullable=True, index=True),
        sa.Column('telegram_user_id', sa.BigInteger(), nullable=True),
        sa.Column('telegram_username', sa.String(), nullable=True),
        sa.Column('vapi_call_id', sa.String(), nullable=True, index=True),
        sa.Column('case_type', enum('casetype'), nullable=True),
        sa.Column('priority', enum('casepriority'), nullable=False),
        sa.Column('status', enum('casestatus'), nullable=False, index=True),
        sa.Column('current_agent', enum('agentpersona'), nullable=False),
        sa.Column('summary', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    # Case messages
    op.create_table(
        'case_messages',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('case_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('support_cases.id'), nullable=False, index=True),
        sa.Column('sender', enum('messagesender'), nullable=False),
        sa.Column('content', sa.String(), nullable=False),
        sa.Column('channel_message_id', sa.String(), nullable=True),
        sa.Column('message_type', enum('messagetype'), nullable=False),
        sa.Column('metadata', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
    )

    # Telemetry events
    op.create_table(
        'telemetry_events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('source', enum('telemetrysource'), nullable=False, index=True),
        sa.Column('level', enum('telemetrylevel'), nullable=False),
        sa.Column('event_key', sa.String(), nullable=False, index=True),
        sa.Column('payload', postgresql.JSONB(), nullable=True),
        sa.Column('case_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('support_cases.id'), nullable=True, index=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
    )

    # Voice calls
    op.create_table(
        'calls',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('vapi_call_id', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('provider', sa.String(), nullable=False),
        sa.Column('direction', enum('calldirection'), nullable=False),
        sa.Column('status', enum('callstatus'), nullable=False, index=True),
        sa.Column('phone_number', sa.String(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('ended_at', sa.DateTime(), nullable=True),
        sa.Column('duration_seconds', sa.Integer(), nullable=True),
        sa.Column('transcript', sa.String(), nullable=True),
        sa.Column('recording_url', sa.String(), nullable=True),
        sa.Column('consent_confirmed', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('calls')
    op.drop_table('telemetry_events')
    op.drop_table('case_messages')
    op.drop_table('support_cases')
    for name in reversed(list(ENUMS)):
        op.execute(f'DROP TYPE IF EXISTS "{name}"')
