"""Initial schema

Revision ID: 0001
Revises: 
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

ENUMS = {
    'app_role': ('student', 'parent', 'educator', 'admin'),
    'submission_status': ('not_started', 'in_progress', 'submitted', 'graded'),
    'approval_request_type': ('publish_project', 'share_content', 'join_challenge'),
    'approval_status': ('pending', 'approved', 'rejected'),
    'activity_type': ('lesson_started', 'lesson_completed', 'project_created', 'project_published',
                      'xp_earned', 'xp_adjusted', 'badge_earned'),
}


def _enum(name):
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    ]


def upgrade() -> None:
    # Create custom types
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(op.get_bind(), checkfirst=True)

    # Accounts
    op.create_table('users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_table('refresh_tokens',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('token', sa.String(length=255), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('revoked', sa.Boolean(), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token')
    )
    op.create_table('profiles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=False),
        sa.Column('age_bracket', sa.String(length=20), nullable=True),
        sa.Column('avatar', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )
    op.create_table('user_roles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('role', _enum('app_role'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'role', name='uq_user_role')
    )
    op.create_table('parent_child_links',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('parent_id', sa.String(length=36), nullable=False),
        sa.Column('child_id', sa.String(length=36), nullable=False),
        sa.Column('linked_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['parent_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['child_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('parent_id', 'child_id', name='uq_parent_child')
    )

    # Classes and coursework
    op.create_table('classes',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('educator_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('subject', sa.String(length=100), nullable=True),
        sa.Column('grade_level', sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['educator_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table('class_enrollments',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('class_id', sa.String(length=36), nullable=False),
        sa.Column('student_id', sa.String(length=36), nullable=False),
        sa.Column('enrolled_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('class_id', 'student_id', name='uq_class_student')
    )
    op.create_table('assignments',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('class_id', sa.String(length=36), nullable=False),
        sa.Column('educator_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('xp_reward', sa.Integer(), nullable=False, server_default='100'),
        *_timestamps(),
        sa.CheckConstraint('xp_reward >= 0', name='ck_assignment_xp_reward_nonneg'),
        sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['educator_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table('assignment_submissions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('assignment_id', sa.String(length=36), nullable=False),
        sa.Column('student_id', sa.String(length=36), nullable=False),
        sa.Column('status', _enum('submission_status'), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('graded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('xp_awarded', sa.Integer(), nullable=True),
        sa.Column('file_urls', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['assignment_id'], ['assignments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('assignment_id', 'student_id', name='uq_submission_assignment_student')
    )

    # Gamification and family
    op.create_table('user_progress',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('xp', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('coins', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lessons_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('projects_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('badges', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('xp >= 0', name='ck_progress_xp_nonneg'),
        sa.CheckConstraint('coins >= 0', name='ck_progress_coins_nonneg'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )
    op.create_table('activity_logs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('activity_type', _enum('activity_type'), nullable=False),
        sa.Column('activity_data', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table('approval_requests',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('child_id', sa.String(length=36), nullable=False),
        sa.Column('parent_id', sa.String(length=36), nullable=True),
        sa.Column('request_type', _enum('approval_request_type'), nullable=False),
        sa.Column('request_data', sa.JSON(), nullable=False),
        sa.Column('status', _enum('approval_status'), nullable=False, server_default='pending'),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['child_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )

    # Create indexes
    op.create_index('idx_users_email', 'users', ['email'], unique=False)
    op.create_index('idx_user_roles_user_id', 'user_roles', ['user_id'], unique=False)
    op.create_index('idx_classes_educator_id', 'classes', ['educator_id'], unique=False)
    op.create_index('idx_assignments_class_id', 'assignments', ['class_id'], unique=False)
    op.create_index('idx_submissions_assignment_id', 'assignment_submissions', ['assignment_id'], unique=False)
    op.create_index('idx_submissions_student_id', 'assignment_submissions', ['student_id'], unique=False)
    op.create_index('idx_activity_logs_user_created', 'activity_logs', ['user_id', 'created_at'], unique=False)
    op.create_index('idx_approval_requests_child_status', 'approval_requests', ['child_id', 'status'], unique=False)


def downgrade() -> None:
    # Drop indexes
    op.drop_index('idx_approval_requests_child_status', table_name='approval_requests')
    op.drop_index('idx_activity_logs_user_created', table_name='activity_logs')
    op.drop_index('idx_submissions_student_id', table_name='assignment_submissions')
    op.drop_index('idx_submissions_assignment_id', table_name='assignment_submissions')
    op.drop_index('idx_assignments_class_id', table_name='assignments')
    op.drop_index('idx_classes_educator_id', table_name='classes')
    op.drop_index('idx_user_roles_user_id', table_name='user_roles')
    op.drop_index('idx_users_email', table_name='users')

    # Drop tables
    for table in ('approval_requests', 'activity_logs', 'user_progress', 'assignment_submissions',
                  'assignments', 'class_enrollments', 'classes', 'parent_child_links', 'user_roles',
                  'profiles', 'refresh_tokens', 'users'):
        op.drop_table(table)

    # Drop custom types
    for name in reversed(list(ENUMS)):
        op.execute(f'DROP TYPE IF EXISTS {name}')
