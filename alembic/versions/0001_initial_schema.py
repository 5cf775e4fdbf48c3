"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'tenants',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('stages', sa.JSON(), nullable=False),
        sa.Column('team_members', sa.JSON(), nullable=False),
        sa.Column('spam_keywords', sa.JSON(), nullable=False),
        sa.Column('sla_hours', sa.Integer(), nullable=True),
        sa.Column('allowed_origins', sa.JSON(), nullable=False),
        sa.Column('meta_access_token', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_tenants_id', 'tenants', ['id'])
    op.create_index('ix_tenants_slug', 'tenants', ['slug'], unique=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_tenant_id', 'users', ['tenant_id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'leads',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('interest', sa.String(length=255), nullable=True),
        sa.Column('have_children', sa.Boolean(), nullable=True),
        sa.Column('planning_to_foster', sa.Boolean(), nullable=True),
        sa.Column('stage', sa.String(length=50), nullable=False),
        sa.Column('source', sa.String(length=100), nullable=True),
        sa.Column('campaign_name', sa.String(length=255), nullable=True),
        sa.Column('office', sa.String(length=100), nullable=True),
        sa.Column('assigned_to', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('consent', sa.Boolean(), nullable=True),
        sa.Column('spam_flag', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('original_payload', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('latest_activity_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_leads_id', 'leads', ['id'])
    op.create_index('ix_leads_tenant_id', 'leads', ['tenant_id'])
    op.create_index('ix_leads_tenant_created_at', 'leads', ['tenant_id', 'created_at'])
    op.create_index('ix_leads_tenant_stage_latest', 'leads', ['tenant_id', 'stage', 'latest_activity_at'])
    # Partial unique indexes: one lead per email / phone within a tenant
    op.create_index(
        'uq_leads_tenant_email', 'leads', ['tenant_id', 'email'], unique=True,
        postgresql_where=sa.text('email IS NOT NULL'),
        sqlite_where=sa.text('email IS NOT NULL'),
    )
    op.create_index(
        'uq_leads_tenant_phone', 'leads', ['tenant_id', 'phone'], unique=True,
        postgresql_where=sa.text('phone IS NOT NULL'),
        sqlite_where=sa.text('phone IS NOT NULL'),
    )

    op.create_table(
        'activities',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lead_id', sa.Integer(), sa.ForeignKey('leads.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('content', sa.JSON(), nullable=True),
        sa.Column('stage', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_activities_id', 'activities', ['id'])
    op.create_index('ix_activities_tenant_id', 'activities', ['tenant_id'])
    op.create_index('ix_activities_lead_id', 'activities', ['lead_id'])
    op.create_index('ix_activities_tenant_lead_created_at', 'activities', ['tenant_id', 'lead_id', 'created_at'])

    op.create_table(
        'api_keys',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('key_hash', sa.String(length=64), nullable=False),
        sa.Column('encrypted_key', sa.Text(), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('last_used_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_api_keys_id', 'api_keys', ['id'])
    op.create_index('ix_api_keys_tenant_id', 'api_keys', ['tenant_id'])
    op.create_index('ix_api_keys_key_hash', 'api_keys', ['key_hash'])

    op.create_table(
        'meta_lead_refs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('leadgen_id', sa.String(length=64), nullable=False),
        sa.Column('form_id', sa.String(length=64), nullable=True),
        sa.Column('ad_id', sa.String(length=64), nullable=True),
        sa.Column('adgroup_id', sa.String(length=64), nullable=True),
        sa.Column('page_id', sa.String(length=64), nullable=True),
        sa.Column('created_time', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('lead_id', sa.Integer(), sa.ForeignKey('leads.id', ondelete='SET NULL'), nullable=True),
        sa.Column('received_at', sa.DateTime(), nullable=False),
        sa.Column('fetched_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('tenant_id', 'leadgen_id', name='uq_meta_lead_refs_tenant_leadgen'),
    )
    op.create_index('ix_meta_lead_refs_id', 'meta_lead_refs', ['id'])
    op.create_index('ix_meta_lead_refs_tenant_id', 'meta_lead_refs', ['tenant_id'])
    op.create_index('ix_meta_lead_refs_status', 'meta_lead_refs', ['status'])


def downgrade() -> None:
    op.drop_table('meta_lead_refs')
    op.drop_table('api_keys')
    op.drop_table('activities')
    op.drop_index('uq_leads_tenant_phone', table_name='leads')
    op.drop_index('uq_leads_tenant_email', table_name='leads')
    op.drop_table('leads')
    op.drop_table('users')
    op.drop_table('tenants')
