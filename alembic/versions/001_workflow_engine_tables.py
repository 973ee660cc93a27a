"""Create workflow engine tables

Revision ID: 001_workflow_engine_tables
Revises: 
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_workflow_engine_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create companies, jobs, applications, interviews, history and chat tables."""
    op.create_table(
        'companies',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'company_blocks',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('company_id', sa.String(length=64), nullable=False),
        sa.Column('seeker_id', sa.String(length=64), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('blocked_by', sa.String(length=64), nullable=True),
        sa.Column('blocked_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('unblocked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('unblock_reason', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_company_block_lookup', 'company_blocks', ['company_id', 'seeker_id', 'is_active'])

    op.create_table(
        'jobs',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('company_id', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('hiring_type', sa.String(length=50), nullable=False, server_default='INSTANT_HIRE'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_job_company', 'jobs', ['company_id'])

    op.create_table(
        'applications',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('job_id', sa.String(length=64), nullable=False),
        sa.Column('seeker_id', sa.String(length=64), nullable=False),
        sa.Column('company_id', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('application_source', sa.String(length=50), nullable=False),
        sa.Column('job_title', sa.String(length=255), nullable=True),
        sa.Column('job_type', sa.String(length=50), nullable=False),
        sa.Column('hire_status', sa.String(length=50), nullable=True),
        sa.Column('hire_response', sa.String(length=50), nullable=True),
        sa.Column('hire_requested_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('hire_responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('interview_id', sa.String(length=64), nullable=True),
        sa.Column('interview_status', sa.String(length=50), nullable=True),
        sa.Column('interview_response', sa.String(length=50), nullable=True),
        sa.Column('interview_date', sa.Date(), nullable=True),
        sa.Column('interview_start_time', sa.Time(), nullable=True),
        sa.Column('interview_end_time', sa.Time(), nullable=True),
        sa.Column('interview_duration', sa.Integer(), nullable=True),
        sa.Column('reporting_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('report_history', sa.JSON(), nullable=False),
        sa.Column('engagement_completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('chat_id', sa.String(length=64), nullable=True),
        sa.Column('chat_initiated', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('decline_reason', sa.String(length=100), nullable=True),
        sa.Column('declined_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('withdrawal_reason', sa.Text(), nullable=True),
        sa.Column('applied_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status_changed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_applications_status', 'applications', ['status'])
    op.create_index('idx_application_job_status', 'applications', ['job_id', 'status'])
    op.create_index('idx_application_seeker', 'applications', ['seeker_id', 'applied_at'])
    op.create_index('idx_application_company', 'applications', ['company_id', 'applied_at'])
    op.create_index('idx_application_seeker_job', 'applications', ['seeker_id', 'job_id'])
    op.create_index(
        'uq_application_open_seeker_job',
        'applications',
        ['seeker_id', 'job_id'],
        unique=True,
        sqlite_where=sa.text("status NOT IN ('DECLINED', 'WITHDRAWN', 'ACCEPTED')"),
        postgresql_where=sa.text("status NOT IN ('DECLINED', 'WITHDRAWN', 'ACCEPTED')"),
    )

    op.create_table(
        'interviews',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('application_id', sa.String(length=64), nullable=False),
        sa.Column('job_id', sa.String(length=64), nullable=False),
        sa.Column('seeker_id', sa.String(length=64), nullable=False),
        sa.Column('company_id', sa.String(length=64), nullable=False),
        sa.Column('interview_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('time_zone', sa.String(length=64), nullable=False),
        sa.Column('interview_type', sa.String(length=50), nullable=False),
        sa.Column('location', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('confirmation_status', sa.String(length=50), nullable=False),
        sa.Column('reschedule_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_reschedules', sa.Integer(), nullable=False, server_default='2'),
        sa.Column('reschedule_history', sa.JSON(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('result', sa.String(length=50), nullable=True),
        sa.Column('next_steps', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('no_show_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('scheduled_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_interviews_status', 'interviews', ['status'])
    op.create_index('idx_interview_company_date', 'interviews', ['company_id', 'interview_date', 'status'])
    op.create_index('idx_interview_application', 'interviews', ['application_id'])
    op.create_index('idx_interview_seeker', 'interviews', ['seeker_id', 'interview_date'])

    op.create_table(
        'interview_calendar_days',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('company_id', sa.String(length=64), nullable=False),
        sa.Column('interview_date', sa.Date(), nullable=False),
        sa.Column('last_claimed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'interview_date', name='uq_calendar_day_company_date'),
    )

    op.create_table(
        'application_history',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('history_id', sa.String(length=64), nullable=False),
        sa.Column('application_id', sa.String(length=64), nullable=False),
        sa.Column('job_id', sa.String(length=64), nullable=True),
        sa.Column('seeker_id', sa.String(length=64), nullable=True),
        sa.Column('company_id', sa.String(length=64), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('from_status', sa.String(length=50), nullable=True),
        sa.Column('to_status', sa.String(length=50), nullable=True),
        sa.Column('action_by', sa.String(length=50), nullable=False),
        sa.Column('action_by_id', sa.String(length=64), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('action_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('history_id'),
    )
    op.create_index('idx_history_application', 'application_history', ['application_id', 'action_at'])
    op.create_index('idx_history_seeker', 'application_history', ['seeker_id', 'action_at'])
    op.create_index('idx_history_company', 'application_history', ['company_id', 'action_at'])

    op.create_table(
        'chat_channels',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('company_id', sa.String(length=64), nullable=False),
        sa.Column('seeker_id', sa.String(length=64), nullable=False),
        sa.Column('job_id', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'seeker_id', 'job_id', name='uq_chat_company_seeker_job'),
    )

    op.create_table(
        'chat_messages',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('chat_id', sa.String(length=64), nullable=False),
        sa.Column('kind', sa.String(length=50), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_chat_message_chat', 'chat_messages', ['chat_id', 'sent_at'])


def downgrade() -> None:
    """Drop workflow engine tables."""
    op.drop_index('idx_chat_message_chat', table_name='chat_messages')
    op.drop_table('chat_messages')
    op.drop_table('chat_channels')
    op.drop_index('idx_history_company', table_name='application_history')
    op.drop_index('idx_history_seeker', table_name='application_history')
    op.drop_index('idx_history_application', table_name='application_history')
    op.drop_table('application_history')
    op.drop_table('interview_calendar_days')
    op.drop_index('idx_interview_seeker', table_name='interviews')
    op.drop_index('idx_interview_application', table_name='interviews')
    op.drop_index('idx_interview_company_date', table_name='interviews')
    op.drop_index('ix_interviews_status', table_name='interviews')
    op.drop_table('interviews')
    op.drop_index('uq_application_open_seeker_job', table_name='applications')
    op.drop_index('idx_application_seeker_job', table_name='applications')
    op.drop_index('idx_application_company', table_name='applications')
    op.drop_index('idx_application_seeker', table_name='applications')
    op.drop_index('idx_application_job_status', table_name='applications')
    op.drop_index('ix_applications_status', table_name='applications')
    op.drop_table('applications')
    op.drop_index('idx_job_company', table_name='jobs')
    op.drop_table('jobs')
    op.drop_index('idx_company_block_lookup', table_name='company_blocks')
    op.drop_table('company_blocks')
    op.drop_table('companies')
