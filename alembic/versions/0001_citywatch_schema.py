"""citywatch schema

Creates the full CityWatch schema: regions, categories, users, issues with
evidence, status history and upvotes, audit logs and OTP verifications.

Revision ID: 0001_citywatch_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_citywatch_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USER_ROLE = sa.Enum(
    'CITIZEN', 'VERIFIED_CONTRIBUTOR', 'MODERATOR', 'CITY_ADMIN', 'AUTHORITY', 'SUPER_ADMIN',
    name='userrole',
)
ISSUE_STATUS = sa.Enum(
    'REPORTED', 'UNDER_REVIEW', 'VERIFIED', 'ESCALATED', 'ACTION_TAKEN', 'CLOSED', 'RESOLVED', 'REJECTED',
    name='issuestatus',
)
ISSUE_SEVERITY = sa.Enum('LOW', 'MEDIUM', 'HIGH', 'CRITICAL', name='issueseverity')
EVIDENCE_TYPE = sa.Enum('IMAGE', 'VIDEO', name='evidencetype')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'states',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('code', sa.String(length=3), nullable=False),
    )
    op.create_index('ix_states_code', 'states', ['code'], unique=True)

    op.create_table(
        'cities',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('state_id', sa.Integer(), sa.ForeignKey('states.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('pilot_start_date', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_cities_name', 'cities', ['name'])
    op.create_index('ix_cities_state_id', 'cities', ['state_id'])

    op.create_table(
        'wards',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('number', sa.String(length=20), nullable=True),
        sa.Column('city_id', sa.Integer(), sa.ForeignKey('cities.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('city_id', 'name', name='uq_ward_city_name'),
    )
    op.create_index('ix_wards_city_id', 'wards', ['city_id'])

    op.create_table(
        'departments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=160), nullable=False),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('city_id', sa.Integer(), sa.ForeignKey('cities.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('city_id', 'code', name='uq_department_city_code'),
    )
    op.create_index('ix_departments_city_id', 'departments', ['city_id'])

    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('slug', sa.String(length=140), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('icon', sa.String(length=60), nullable=True),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
    )
    op.create_index('ix_categories_name', 'categories', ['name'], unique=True)
    op.create_index('ix_categories_slug', 'categories', ['slug'], unique=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('phone', sa.String(length=15), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', USER_ROLE, nullable=False),
        sa.Column('is_verified', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('is_phone_verified', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('is_suspended', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('credibility_score', sa.Integer(), server_default='50', nullable=False),
        sa.Column('assigned_city_id', sa.Integer(), sa.ForeignKey('cities.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_login', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_phone', 'users', ['phone'], unique=True)
    op.create_index('ix_users_assigned_city_id', 'users', ['assigned_city_id'])
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    op.create_table(
        'issues',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('expected_outcome', sa.String(length=500), nullable=True),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id'), nullable=False),
        sa.Column('city_id', sa.Integer(), sa.ForeignKey('cities.id'), nullable=False),
        sa.Column('ward_id', sa.Integer(), sa.ForeignKey('wards.id', ondelete='SET NULL'), nullable=True),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reporter_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('moderator_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('moderator_notes', sa.Text(), nullable=True),
        sa.Column('rejection_reason', sa.String(length=500), nullable=True),
        sa.Column('rejected_by_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('address', sa.String(length=300), nullable=True),
        sa.Column('severity', ISSUE_SEVERITY, nullable=False),
        sa.Column('status', ISSUE_STATUS, nullable=False),
        sa.Column('is_verified', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('upvote_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('view_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_issues_title', 'issues', ['title'])
    op.create_index('ix_issues_category_id', 'issues', ['category_id'])
    op.create_index('ix_issues_city_id', 'issues', ['city_id'])
    op.create_index('ix_issues_ward_id', 'issues', ['ward_id'])
    op.create_index('ix_issues_reporter_id', 'issues', ['reporter_id'])
    op.create_index('ix_issues_severity', 'issues', ['severity'])
    op.create_index('ix_issues_status', 'issues', ['status'])
    op.create_index('ix_issues_created_at', 'issues', ['created_at'])
    op.create_index('ix_issues_lat_lng', 'issues', ['latitude', 'longitude'])
    op.create_index('ix_issues_city_status', 'issues', ['city_id', 'status'])

    op.create_table(
        'evidence',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('issue_id', sa.Integer(), sa.ForeignKey('issues.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', EVIDENCE_TYPE, nullable=False),
        sa.Column('file_path', sa.String(length=500), nullable=False),
        sa.Column('file_name', sa.String(length=255), nullable=True),
        sa.Column('file_size', sa.Integer(), nullable=True),
        sa.Column('mime_type', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_evidence_issue_id', 'evidence', ['issue_id'])

    op.create_table(
        'issue_status_updates',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('issue_id', sa.Integer(), sa.ForeignKey('issues.id', ondelete='CASCADE'), nullable=False),
        sa.Column('from_status', ISSUE_STATUS, nullable=True),
        sa.Column('to_status', ISSUE_STATUS, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('user_role', USER_ROLE, nullable=True),
        sa.Column('reason', sa.String(length=500), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_public', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_issue_status_updates_issue_id', 'issue_status_updates', ['issue_id'])
    op.create_index('ix_issue_status_updates_created_at', 'issue_status_updates', ['created_at'])

    op.create_table(
        'issue_upvotes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('issue_id', sa.Integer(), sa.ForeignKey('issues.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('issue_id', 'user_id', name='uq_issue_upvote'),
    )
    op.create_index('ix_issue_upvotes_issue_id', 'issue_upvotes', ['issue_id'])
    op.create_index('ix_issue_upvotes_user_id', 'issue_upvotes', ['user_id'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('user_role', USER_ROLE, nullable=True),
        sa.Column('action', sa.String(length=60), nullable=False),
        sa.Column('entity_type', sa.String(length=60), nullable=True),
        sa.Column('entity_id', sa.String(length=60), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])

    op.create_table(
        'otp_verifications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('phone', sa.String(length=15), nullable=False),
        sa.Column('code', sa.String(length=6), nullable=False),
        sa.Column('purpose', sa.String(length=40), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('is_used', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('attempts', sa.Integer(), server_default='0', nullable=False),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_otp_verifications_phone', 'otp_verifications', ['phone'])
    op.create_index('ix_otp_verifications_created_at', 'otp_verifications', ['created_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('otp_verifications')
    op.drop_table('audit_logs')
    op.drop_table('issue_upvotes')
    op.drop_table('issue_status_updates')
    op.drop_table('evidence')
    op.drop_table('issues')
    op.drop_table('users')
    op.drop_table('categories')
    op.drop_table('departments')
    op.drop_table('wards')
    op.drop_table('cities')
    op.drop_table('states')
    bind = op.get_bind()
    for enum in (EVIDENCE_TYPE, ISSUE_SEVERITY, ISSUE_STATUS, USER_ROLE):
        enum.drop(bind, checkfirst=True)
