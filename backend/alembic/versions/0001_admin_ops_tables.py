"""create profiles, user_roles, notifications and admin_audit_log

Revision ID: 0001_admin_ops_tables
Revises:
Create Date: 2026-10-19 00:00:00.000000

Tags: members, roles, audit, notifications
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_admin_ops_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the relations written by the admin endpoint. Hosted deployments may
    already have them, so each table is only created when missing.
    """
    connection = op.get_bind()
    inspector = sa.inspect(connection)
    existing = set(inspector.get_table_names())

    if 'profiles' not in existing:
        op.create_table(
            'profiles',
            sa.Column('id', sa.Uuid(), nullable=False),
            sa.Column('membership_number', sa.String(), nullable=True),
            sa.Column('full_name', sa.String(), nullable=False),
            sa.Column('phone', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=True),
            sa.Column('id_number', sa.String(), nullable=True),
            sa.Column('location', sa.String(), nullable=True),
            sa.Column('occupation', sa.String(), nullable=True),
            sa.Column('photo_url', sa.String(), nullable=True),
            sa.Column('status', sa.String(), nullable=False, server_default='pending'),
            sa.Column('registration_fee_paid', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('soft_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('deleted_by', sa.Uuid(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint('id', name='pk_profiles'),
            sa.UniqueConstraint('membership_number', name='uq_profiles_membership_number'),
            sa.UniqueConstraint('phone', name='uq_profiles_phone'),
        )

    if 'user_roles' not in existing:
        op.create_table(
            'user_roles',
            sa.Column('id', sa.Uuid(), nullable=False),
            sa.Column('user_id', sa.Uuid(), nullable=False),
            sa.Column('role', sa.String(), nullable=False),
            sa.Column('assigned_by', sa.Uuid(), nullable=True),
            sa.Column('assigned_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.PrimaryKeyConstraint('id', name='pk_user_roles'),
            sa.ForeignKeyConstraint(
                ['user_id'], ['profiles.id'],
                name='fk_user_roles_user_id_profiles',
                ondelete='CASCADE',
            ),
            sa.UniqueConstraint('user_id', 'role', name='uq_user_roles_user_id'),
        )
        op.create_index('ix_user_roles_user_id', 'user_roles', ['user_id'], unique=False)

    if 'notifications' not in existing:
        op.create_table(
            'notifications',
            sa.Column('id', sa.Uuid(), nullable=False),
            sa.Column('user_id', sa.Uuid(), nullable=True),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('message', sa.Text(), nullable=False),
            sa.Column('type', sa.String(), nullable=False),
            sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('action_url', sa.String(), nullable=True),
            sa.Column('sent_via', sa.JSON(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.PrimaryKeyConstraint('id', name='pk_notifications'),
        )
        op.create_index('ix_notifications_user_id', 'notifications', ['user_id'], unique=False)

    if 'admin_audit_log' not in existing:
        op.create_table(
            'admin_audit_log',
            sa.Column('id', sa.Uuid(), nullable=False),
            sa.Column('actor_id', sa.Uuid(), nullable=True),
            sa.Column('actor_role', sa.String(), nullable=False),
            sa.Column('action', sa.String(), nullable=False),
            sa.Column('entity_type', sa.String(), nullable=False),
            sa.Column('entity_id', sa.String(), nullable=True),
            sa.Column('details', sa.JSON(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.PrimaryKeyConstraint('id', name='pk_admin_audit_log'),
        )
        op.create_index('ix_admin_audit_log_actor_id', 'admin_audit_log', ['actor_id'], unique=False)
        op.create_index('ix_admin_audit_log_action', 'admin_audit_log', ['action'], unique=False)


def downgrade() -> None:
    """Drop the admin tables in reverse dependency order."""
    op.drop_table('admin_audit_log')
    op.drop_table('notifications')
    op.drop_table('user_roles')
    op.drop_table('profiles')
