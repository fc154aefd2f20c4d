"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    # Services (tenants)
    services = op.create_table(
        'services',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('domain_hint', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Entitlements
    op.create_table(
        'user_service_access',
        sa.Column('user_id', sa.String(64), primary_key=True),
        sa.Column('service_id', sa.String(64), sa.ForeignKey('services.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('status', sa.String(20), server_default='active', nullable=False),
        sa.Column('role', sa.String(20), server_default='member', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Push devices, one row per endpoint
    op.create_table(
        'push_devices',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('endpoint', sa.Text(), nullable=False),
        sa.Column('p256dh', sa.String(255), nullable=False),
        sa.Column('auth', sa.String(255), nullable=False),
        sa.Column('user_agent', sa.String(500), nullable=True),
        sa.Column('platform', sa.String(20), server_default='web', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('last_seen_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('endpoint', name='uq_push_devices_endpoint'),
    )
    op.create_index('ix_push_devices_user_id', 'push_devices', ['user_id'])

    # Per-service subscriptions
    op.create_table(
        'push_device_services',
        sa.Column('device_id', sa.Uuid(), sa.ForeignKey('push_devices.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('service_id', sa.String(64), sa.ForeignKey('services.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('topics', JSON_TYPE, nullable=False),
        sa.Column('enabled_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('disabled_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.bulk_insert(services, [
        {'id': 'algopilotx', 'name': 'AlgoPilotX', 'domain_hint': 'algopilotx.com'},
        {'id': 'strategyfundamentals', 'name': 'Strategy Fundamentals', 'domain_hint': 'strategyfundamentals.com'},
    ])


def downgrade() -> None:
    op.drop_table('push_device_services')
    op.drop_index('ix_push_devices_user_id', table_name='push_devices')
    op.drop_table('push_devices')
    op.drop_table('user_service_access')
    op.drop_table('services')
