"""Initial schema: users, syllabus, import reports, questions, audit log

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("CREATE TYPE question_status AS ENUM ('draft', 'published', 'archived')")
    op.execute(
        "CREATE TYPE import_report_status AS ENUM ('pending', 'processing', 'completed', 'failed')"
    )

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('password_hash', sa.String, nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='student'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'subjects',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False, unique=True),
        sa.Column('slug', sa.String(200), nullable=False, unique=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('display_order', sa.Integer, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('active', 'inactive')", name='ck_subject_status'),
    )

    op.create_table(
        'topics',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('subject_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('subjects.id', ondelete='CASCADE', onupdate='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('slug', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('display_order', sa.Integer, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('subject_id', 'slug', name='uq_topic_subject_slug'),
        sa.CheckConstraint("status IN ('active', 'inactive')", name='ck_topic_status'),
    )
    op.create_index('ix_topics_subject_id', 'topics', ['subject_id'])

    op.create_table(
        'import_reports',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('admin_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('filename', sa.String(500), nullable=False),
        sa.Column('file_size_bytes', sa.Integer, nullable=True),
        sa.Column('total_rows', sa.Integer, nullable=False, server_default='0'),
        sa.Column('successful_rows', sa.Integer, nullable=False, server_default='0'),
        sa.Column('failed_rows', sa.Integer, nullable=False, server_default='0'),
        sa.Column('status', postgresql.ENUM('pending', 'processing', 'completed', 'failed', name='import_report_status', create_type=False), nullable=False, server_default='pending'),
        sa.Column('error_details', postgresql.JSONB, nullable=True),
        sa.Column('import_type', sa.String(50), nullable=False, server_default='questions'),
        sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_import_reports_admin_id', 'import_reports', ['admin_id'])
    op.create_index('ix_import_reports_status', 'import_reports', ['status'])
    op.create_index('ix_import_reports_created_at', 'import_reports', ['created_at'])

    op.create_table(
        'questions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('subject_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('subjects.id', ondelete='CASCADE', onupdate='CASCADE'), nullable=False),
        sa.Column('topic_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('topics.id', ondelete='CASCADE', onupdate='CASCADE'), nullable=False),
        sa.Column('question_text', sa.Text, nullable=False),
        sa.Column('passage', sa.Text, nullable=True),
        sa.Column('passage_id', sa.String(100), nullable=True),
        sa.Column('question_image_url', sa.Text, nullable=True),
        sa.Column('image_alt_text', sa.Text, nullable=True),
        sa.Column('image_width', sa.Integer, nullable=True),
        sa.Column('image_height', sa.Integer, nullable=True),
        sa.Column('option_a', sa.Text, nullable=False),
        sa.Column('option_b', sa.Text, nullable=False),
        sa.Column('option_c', sa.Text, nullable=True),
        sa.Column('option_d', sa.Text, nullable=True),
        sa.Column('option_e', sa.Text, nullable=True),
        sa.Column('correct_answer', sa.String(1), nullable=False),
        sa.Column('explanation', sa.Text, nullable=True),
        sa.Column('hint', sa.Text, nullable=True),
        sa.Column('solution', sa.Text, nullable=True),
        sa.Column('further_study_links', postgresql.JSONB, nullable=True),
        sa.Column('difficulty', sa.String(10), nullable=True),
        sa.Column('exam_type', sa.String(10), nullable=True),
        sa.Column('exam_year', sa.Integer, nullable=True),
        sa.Column('status', postgresql.ENUM('draft', 'published', 'archived', name='question_status', create_type=False), nullable=False, server_default='draft'),
        sa.Column('import_report_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('import_reports.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("correct_answer IN ('A', 'B', 'C', 'D', 'E')", name='ck_question_correct_answer'),
        sa.CheckConstraint('question_image_url IS NULL OR image_alt_text IS NOT NULL', name='ck_question_image_alt_text'),
        sa.CheckConstraint('image_width IS NULL OR image_width > 0', name='ck_question_image_width'),
        sa.CheckConstraint('image_height IS NULL OR image_height > 0', name='ck_question_image_height'),
    )
    op.create_index('ix_questions_subject_topic', 'questions', ['subject_id', 'topic_id'])
    op.create_index('ix_questions_status', 'questions', ['status'])
    op.create_index('ix_questions_passage_id', 'questions', ['passage_id'])
    op.create_index('ix_questions_import_report_id', 'questions', ['import_report_id'])
    # Duplicate detection compares trimmed, lower-cased text
    op.execute(
        "CREATE INDEX ix_questions_normalized_text ON questions (lower(trim(question_text)))"
    )

    op.create_table(
        'admin_audit_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('admin_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('details', postgresql.JSONB, nullable=True),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('user_agent', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_admin_audit_logs_admin_id', 'admin_audit_logs', ['admin_id'])
    op.create_index('ix_admin_audit_logs_action', 'admin_audit_logs', ['action'])
    op.create_index('ix_admin_audit_logs_entity_type', 'admin_audit_logs', ['entity_type'])
    op.create_index('ix_admin_audit_logs_created_at', 'admin_audit_logs', ['created_at'])


def downgrade() -> None:
    op.drop_table('admin_audit_logs')
    op.execute('DROP INDEX IF EXISTS ix_questions_normalized_text')
    op.drop_table('questions')
    op.drop_table('import_reports')
    op.drop_table('topics')
    op.drop_table('subjects')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.execute('DROP TYPE IF EXISTS import_report_status')
    op.execute('DROP TYPE IF EXISTS question_status')
