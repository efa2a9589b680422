"""initial tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('subject',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('color', sa.String(length=7), nullable=False),
        sa.Column('lessons_per_week', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table('teacher',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
    )

    op.create_table('teacher_subjects',
        sa.Column('teacher_id', sa.Integer(), sa.ForeignKey('teacher.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('subject.id', ondelete='CASCADE'), primary_key=True),
        sa.UniqueConstraint('teacher_id', 'subject_id', name='uq_teacher_subjects_pair'),
    )

    op.create_table('school_class',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('grade', sa.String(length=50), nullable=False),
        sa.Column('student_count', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table('availability',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('teacher_id', sa.Integer(), sa.ForeignKey('teacher.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day', sa.String(length=16), nullable=False),
        sa.Column('period', sa.String(length=16), nullable=False),
        sa.Column('available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint('teacher_id', 'day', 'period', name='uq_availability_teacher_slot'),
    )
    op.create_index('ix_availability_teacher_id', 'availability', ['teacher_id'])

    op.create_table('class_subject_requirement',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('school_class.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('subject.id', ondelete='CASCADE'), nullable=False),
        sa.Column('periods_per_week', sa.Integer(), nullable=False, server_default='1'),
        sa.UniqueConstraint('class_id', 'subject_id', name='uq_requirement_class_subject'),
        sa.CheckConstraint('periods_per_week >= 0', name='ck_requirement_periods_non_negative'),
    )

    # teacher_id / subject_id без FK: записи переживают удаление учителя или предмета
    op.create_table('timetable_entry',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('school_class.id', ondelete='CASCADE'), nullable=False),
        sa.Column('teacher_id', sa.Integer(), nullable=False),
        sa.Column('subject_id', sa.Integer(), nullable=False),
        sa.Column('day', sa.String(length=16), nullable=False),
        sa.Column('period', sa.String(length=16), nullable=False),
        sa.UniqueConstraint('class_id', 'day', 'period', name='uq_entry_class_slot'),
    )
    op.create_index('ix_entry_teacher_slot', 'timetable_entry', ['teacher_id', 'day', 'period'])
    op.create_index('ix_entry_subject', 'timetable_entry', ['subject_id'])

def downgrade():
    op.drop_index('ix_entry_subject', table_name='timetable_entry')
    op.drop_index('ix_entry_teacher_slot', table_name='timetable_entry')
    op.drop_table('timetable_entry')
    op.drop_table('class_subject_requirement')
    op.drop_index('ix_availability_teacher_id', table_name='availability')
    op.drop_table('availability')
    op.drop_table('school_class')
    op.drop_table('teacher_subjects')
    op.drop_table('teacher')
    op.drop_table('subject')
