"""Initial schema for DocVault

Revision ID: 3f1c9a7e2b10
Revises:
Create Date: 2026-10-18

Tables Created:
- roles, role_base_functions: roles and the capabilities they grant
- users: accounts, credentials, quota and two-factor state
- groups, user_groups: groups and memberships
- authentication_tokens: cookie sessions
- password_recoveries: password reset keys
- documents, files: ownership and storage accounting
- route_models: workflow templates referencing users and groups
- audit_logs: audit trail
- outbox_events: side-effect events awaiting delivery

Seed Data:
- roles "admin" (ADMIN capability) and "user"
- user "admin" with the configured default administrator password
- user "guest" with a random, never used password
"""
import secrets
from datetime import UTC, datetime
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from docvault.core.config import settings
from docvault.core.security import hash_password

# revision identifiers, used by Alembic.
revision: str = '3f1c9a7e2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create the complete schema and seed reference data."""
    # =========================================================================
    # STEP 1: Roles
    # =========================================================================
    op.create_table(
        'roles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=36), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_roles')),
    )

    op.create_table(
        'role_base_functions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('role_id', sa.String(length=36), nullable=False),
        sa.Column('base_function', sa.String(length=20), nullable=False),
        sa.ForeignKeyConstraint(
            ['role_id'], ['roles.id'],
            name=op.f('fk_role_base_functions_role_id_roles'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_role_base_functions')),
        sa.UniqueConstraint('role_id', 'base_function', name='uq_role_base_functions_pair'),
    )
    op.create_index(
        op.f('ix_role_base_functions_role_id'), 'role_base_functions', ['role_id']
    )

    # =========================================================================
    # STEP 2: Users and groups
    # =========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=100), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('default_password', sa.Boolean(), nullable=False),
        sa.Column('role_id', sa.String(length=36), nullable=False),
        sa.Column('storage_quota', sa.BigInteger(), nullable=False),
        sa.Column('storage_current', sa.BigInteger(), nullable=False),
        sa.Column('totp_key', sa.String(length=100), nullable=True),
        sa.Column('disabled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('onboarding', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id'], name=op.f('fk_users_role_id_roles')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'])
    op.create_index(op.f('ix_users_created_at'), 'users', ['created_at'])
    op.create_index(op.f('ix_users_deleted_at'), 'users', ['deleted_at'])
    # One active user per username; deleted rows keep their username
    op.create_index(
        'uq_users_username_active',
        'users',
        ['username'],
        unique=True,
        postgresql_where=sa.text('deleted_at IS NULL'),
        sqlite_where=sa.text('deleted_at IS NULL'),
    )

    op.create_table(
        'groups',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('parent_id', sa.String(length=36), nullable=True),
        sa.Column('role_id', sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ['parent_id'], ['groups.id'], name=op.f('fk_groups_parent_id_groups')
        ),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id'], name=op.f('fk_groups_role_id_roles')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_groups')),
    )
    op.create_index(op.f('ix_groups_created_at'), 'groups', ['created_at'])
    op.create_index(op.f('ix_groups_deleted_at'), 'groups', ['deleted_at'])
    op.create_index(
        'uq_groups_name_active',
        'groups',
        ['name'],
        unique=True,
        postgresql_where=sa.text('deleted_at IS NULL'),
        sqlite_where=sa.text('deleted_at IS NULL'),
    )

    op.create_table(
        'user_groups',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('group_id', sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'], name=op.f('fk_user_groups_user_id_users')
        ),
        sa.ForeignKeyConstraint(
            ['group_id'], ['groups.id'], name=op.f('fk_user_groups_group_id_groups')
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_user_groups')),
        sa.UniqueConstraint('user_id', 'group_id', name='uq_user_groups_pair'),
    )
    op.create_index(op.f('ix_user_groups_user_id'), 'user_groups', ['user_id'])
    op.create_index(op.f('ix_user_groups_group_id'), 'user_groups', ['group_id'])

    # =========================================================================
    # STEP 3: Sessions and password recovery
    # =========================================================================
    op.create_table(
        'authentication_tokens',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('long_lasted', sa.Boolean(), nullable=False),
        sa.Column('ip', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=1000), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_connection_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name=op.f('fk_authentication_tokens_user_id_users'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_authentication_tokens')),
    )
    op.create_index(
        'ix_authentication_tokens_user_created',
        'authentication_tokens',
        ['user_id', 'created_at'],
    )

    op.create_table(
        'password_recoveries',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_password_recoveries')),
    )
    op.create_index(
        op.f('ix_password_recoveries_username'), 'password_recoveries', ['username']
    )

    # =========================================================================
    # STEP 4: Documents, files and route models
    # =========================================================================
    op.create_table(
        'documents',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'], name=op.f('fk_documents_user_id_users')
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_documents')),
    )
    op.create_index(op.f('ix_documents_user_id'), 'documents', ['user_id'])
    op.create_index(op.f('ix_documents_created_at'), 'documents', ['created_at'])
    op.create_index(op.f('ix_documents_deleted_at'), 'documents', ['deleted_at'])

    op.create_table(
        'files',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('document_id', sa.String(length=36), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=True),
        sa.Column('mime_type', sa.String(length=100), nullable=False),
        sa.Column('size', sa.BigInteger(), nullable=False),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_files_user_id_users')),
        sa.ForeignKeyConstraint(
            ['document_id'], ['documents.id'], name=op.f('fk_files_document_id_documents')
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_files')),
    )
    op.create_index(op.f('ix_files_user_id'), 'files', ['user_id'])
    op.create_index(op.f('ix_files_document_id'), 'files', ['document_id'])
    op.create_index(op.f('ix_files_created_at'), 'files', ['created_at'])
    op.create_index(op.f('ix_files_deleted_at'), 'files', ['deleted_at'])

    op.create_table(
        'route_models',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('steps', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_route_models')),
    )
    op.create_index(op.f('ix_route_models_created_at'), 'route_models', ['created_at'])
    op.create_index(op.f('ix_route_models_deleted_at'), 'route_models', ['deleted_at'])

    # =========================================================================
    # STEP 5: Audit trail and outbox
    # =========================================================================
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column('action', sa.String(length=30), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=1000), nullable=True),
        sa.Column('request_id', sa.String(length=36), nullable=True),
        sa.Column('status', sa.String(length=10), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_audit_logs')),
    )
    op.create_index(op.f('ix_audit_logs_user_id'), 'audit_logs', ['user_id'])
    op.create_index(op.f('ix_audit_logs_action'), 'audit_logs', ['action'])
    op.create_index(op.f('ix_audit_logs_entity_type'), 'audit_logs', ['entity_type'])
    op.create_index(op.f('ix_audit_logs_entity_id'), 'audit_logs', ['entity_id'])
    op.create_index(op.f('ix_audit_logs_request_id'), 'audit_logs', ['request_id'])
    op.create_index(op.f('ix_audit_logs_created_at'), 'audit_logs', ['created_at'])
    op.create_index(
        'ix_audit_logs_entity', 'audit_logs', ['entity_type', 'entity_id', 'created_at']
    )

    op.create_table(
        'outbox_events',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('event_type', sa.String(length=100), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('dispatched_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('attempts', sa.Integer(), nullable=False),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_outbox_events')),
    )
    op.create_index(
        'ix_outbox_events_pending', 'outbox_events', ['dispatched_at', 'created_at']
    )

    # =========================================================================
    # STEP 6: Seed reference data
    # =========================================================================
    now = datetime.now(UTC)

    roles = sa.table('roles', sa.column('id', sa.String), sa.column('name', sa.String))
    op.bulk_insert(roles, [
        {'id': 'admin', 'name': 'Admin'},
        {'id': 'user', 'name': 'User'},
    ])

    role_base_functions = sa.table(
        'role_base_functions',
        sa.column('id', sa.String),
        sa.column('role_id', sa.String),
        sa.column('base_function', sa.String),
    )
    op.bulk_insert(role_base_functions, [
        {'id': 'admin-ADMIN', 'role_id': 'admin', 'base_function': 'ADMIN'},
    ])

    users = sa.table(
        'users',
        sa.column('id', sa.String),
        sa.column('username', sa.String),
        sa.column('email', sa.String),
        sa.column('password_hash', sa.String),
        sa.column('default_password', sa.Boolean),
        sa.column('role_id', sa.String),
        sa.column('storage_quota', sa.BigInteger),
        sa.column('storage_current', sa.BigInteger),
        sa.column('onboarding', sa.Boolean),
        sa.column('created_at', sa.DateTime(timezone=True)),
        sa.column('updated_at', sa.DateTime(timezone=True)),
    )
    op.bulk_insert(users, [
        {
            'id': 'admin',
            'username': 'admin',
            'email': 'admin@localhost',
            'password_hash': hash_password(settings.default_admin_password),
            'default_password': True,
            'role_id': 'admin',
            'storage_quota': settings.default_storage_quota,
            'storage_current': 0,
            'onboarding': True,
            'created_at': now,
            'updated_at': now,
        },
        {
            'id': 'guest',
            'username': 'guest',
            'email': 'guest@localhost',
            'password_hash': hash_password(secrets.token_urlsafe(32)),
            'default_password': False,
            'role_id': 'user',
            'storage_quota': 0,
            'storage_current': 0,
            'onboarding': False,
            'created_at': now,
            'updated_at': now,
        },
    ])


def downgrade() -> None:
    """Drop every table, dependents first."""
    op.drop_table('outbox_events')
    op.drop_table('audit_logs')
    op.drop_table('route_models')
    op.drop_table('files')
    op.drop_table('documents')
    op.drop_table('password_recoveries')
    op.drop_table('authentication_tokens')
    op.drop_table('user_groups')
    op.drop_table('groups')
    op.drop_table('users')
    op.drop_table('role_base_functions')
    op.drop_table('roles')
