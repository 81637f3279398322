"""Initial gradebook schema.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


SCHOOL_STATUS = sa.Enum('ACTIVE', 'SUSPENDED', name='schoolstatus')
SCHOOL_ROLE = sa.Enum(
    'SCHOOL_OWNER', 'PRINCIPAL', 'VICE_PRINCIPAL', 'SCHOOL_ADMIN', 'ACADEMIC_COORDINATOR',
    'TEACHER', 'ACCOUNTANT', 'HR_MANAGER', 'COUNSELOR', 'STUDENT', 'PARENT', 'MARKETING_STAFF',
    name='schoolrole',
)
ATTENDANCE_STATUS = sa.Enum('PRESENT', 'ABSENT', 'LATE', 'EXCUSED', name='attendancestatus')


def pk() -> sa.Column:
    return sa.Column('id', sa.BigInteger().with_variant(sa.Integer, 'sqlite'), primary_key=True, autoincrement=True)


def timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def school_fk() -> sa.Column:
    return sa.Column(
        'school_id', sa.BigInteger(),
        sa.ForeignKey('schools.id', ondelete='CASCADE'),
        nullable=False, index=True,
    )


def upgrade() -> None:
    op.create_table(
        'schools',
        pk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False, unique=True, index=True),
        sa.Column('theme_color', sa.String(50), nullable=True),
        sa.Column('logo_url', sa.Text(), nullable=True),
        sa.Column('status', SCHOOL_STATUS, nullable=False, server_default='ACTIVE'),
        *timestamps(),
    )

    op.create_table(
        'users',
        pk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('username', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_super_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
    )

    op.create_table(
        'academic_classes',
        pk(),
        school_fk(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('grade_level', sa.Integer(), nullable=True),
        *timestamps(),
    )

    op.create_table(
        'class_sections',
        pk(),
        school_fk(),
        sa.Column('class_id', sa.BigInteger(), sa.ForeignKey('academic_classes.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('room', sa.String(50), nullable=True),
        *timestamps(),
    )

    op.create_table(
        'subjects',
        pk(),
        school_fk(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('code', sa.String(20), nullable=True),
        *timestamps(),
    )

    op.create_table(
        'students',
        pk(),
        school_fk(),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('parent_name', sa.String(255), nullable=True),
        sa.Column('student_code', sa.String(50), nullable=True),
        sa.Column('status', sa.String(20), nullable=True),
        *timestamps(),
    )

    op.create_table(
        'school_memberships',
        pk(),
        school_fk(),
        sa.Column('user_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('role', SCHOOL_ROLE, nullable=False),
        sa.Column('student_id', sa.BigInteger(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=True),
        *timestamps(),
        sa.UniqueConstraint('user_id', 'school_id', 'role', name='uq_membership_user_school_role'),
    )

    op.create_table(
        'student_guardians',
        pk(),
        school_fk(),
        sa.Column('student_id', sa.BigInteger(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('relationship_label', sa.String(50), nullable=True),
        *timestamps(),
        sa.UniqueConstraint('student_id', 'user_id', name='uq_guardian_student_user'),
    )

    op.create_table(
        'student_enrollments',
        pk(),
        school_fk(),
        sa.Column('student_id', sa.BigInteger(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('class_section_id', sa.BigInteger(), sa.ForeignKey('class_sections.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        *timestamps(),
    )

    op.create_table(
        'academic_assessments',
        pk(),
        school_fk(),
        sa.Column('class_section_id', sa.BigInteger(), sa.ForeignKey('class_sections.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('subject_id', sa.BigInteger(), sa.ForeignKey('subjects.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('max_marks', sa.DECIMAL(10, 2), nullable=True),
        sa.Column('term_label', sa.String(100), nullable=True, index=True),
        sa.Column('assessment_date', sa.Date(), nullable=True),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *timestamps(),
    )

    op.create_table(
        'student_marks',
        pk(),
        school_fk(),
        sa.Column('student_id', sa.BigInteger(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('assessment_id', sa.BigInteger(), sa.ForeignKey('academic_assessments.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('marks', sa.DECIMAL(10, 2), nullable=True),
        sa.Column('computed_grade', sa.String(50), nullable=True),
        sa.Column('created_by', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *timestamps(),
        sa.UniqueConstraint('student_id', 'assessment_id', name='uq_mark_student_assessment'),
    )

    op.create_table(
        'grade_thresholds',
        pk(),
        school_fk(),
        sa.Column('grade_label', sa.String(50), nullable=False),
        sa.Column('min_percentage', sa.DECIMAL(5, 2), nullable=False),
        sa.Column('max_percentage', sa.DECIMAL(5, 2), nullable=False),
        sa.Column('grade_points', sa.DECIMAL(4, 2), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=True),
        *timestamps(),
    )

    op.create_table(
        'attendance_sessions',
        pk(),
        school_fk(),
        sa.Column('class_section_id', sa.BigInteger(), sa.ForeignKey('class_sections.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('session_date', sa.Date(), nullable=False, index=True),
        sa.Column('period_label', sa.String(50), nullable=True),
        *timestamps(),
    )

    op.create_table(
        'attendance_entries',
        pk(),
        school_fk(),
        sa.Column('session_id', sa.BigInteger(), sa.ForeignKey('attendance_sessions.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('student_id', sa.BigInteger(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('status', ATTENDANCE_STATUS, nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        *timestamps(),
        sa.UniqueConstraint('session_id', 'student_id', name='uq_attendance_session_student'),
    )


def downgrade() -> None:
    for table in (
        'attendance_entries',
        'attendance_sessions',
        'grade_thresholds',
        'student_marks',
        'academic_assessments',
        'student_enrollments',
        'student_guardians',
        'school_memberships',
        'students',
        'subjects',
        'class_sections',
        'academic_classes',
        'users',
        'schools',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    ATTENDANCE_STATUS.drop(bind, checkfirst=True)
    SCHOOL_ROLE.drop(bind, checkfirst=True)
    SCHOOL_STATUS.drop(bind, checkfirst=True)
