from alembic import op
import sqlalchemy as sa

revision = '0001_schema_core'
down_revision = None
branch_labels = None
depends_on = None

NAMED_TABLES = ('course', 'teacher', 'semester', 'school_year', 'class_group')


def upgrade():
    for table in NAMED_TABLES:
        op.create_table(
            table,
            sa.Column('id', sa.Integer, autoincrement=True),
            sa.Column('name', sa.String, nullable=False),
            sa.PrimaryKeyConstraint('id', name=f'pk_{table}'),
            sa.UniqueConstraint('name', name=f'uq_{table}_name'),
        )

    op.create_table(
        'discipline',
        sa.Column('id', sa.Integer, autoincrement=True),
        sa.Column('course_id', sa.Integer, sa.ForeignKey('course.id', name='fk_discipline_course_id_course'), nullable=False),
        sa.Column('name', sa.String, nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_discipline'),
        sa.UniqueConstraint('course_id', 'name', name='uq_discipline_course_name'),
    )
    op.create_index('ix_discipline_course_id', 'discipline', ['course_id'])

    op.create_table(
        'teaching',
        sa.Column('id', sa.Integer, autoincrement=True),
        sa.Column('teacher_id', sa.Integer, sa.ForeignKey('teacher.id', name='fk_teaching_teacher_id_teacher'), nullable=False),
        sa.Column('discipline_id', sa.Integer, sa.ForeignKey('discipline.id', name='fk_teaching_discipline_id_discipline'), nullable=False),
        sa.Column('semester_id', sa.Integer, sa.ForeignKey('semester.id', name='fk_teaching_semester_id_semester'), nullable=False),
        sa.Column('school_year_id', sa.Integer, sa.ForeignKey('school_year.id', name='fk_teaching_school_year_id_school_year'), nullable=True),
        sa.Column('class_group_id', sa.Integer, sa.ForeignKey('class_group.id', name='fk_teaching_class_group_id_class_group'), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_teaching'),
    )
    op.create_index('ix_teaching_teacher_id', 'teaching', ['teacher_id'])
    op.create_index('ix_teaching_discipline_id', 'teaching', ['discipline_id'])
    # NULL year/class must collide too
    op.create_index(
        'ux_teaching', 'teaching',
        ['teacher_id', 'discipline_id', 'semester_id',
         sa.text('coalesce(school_year_id, 0)'), sa.text('coalesce(class_group_id, 0)')],
        unique=True,
    )

    op.create_table(
        'survey_question',
        sa.Column('id', sa.Integer, autoincrement=True),
        sa.Column('code', sa.String, nullable=False),
        sa.Column('text', sa.Text, nullable=False),
        sa.Column('area', sa.String, nullable=False),
        sa.Column('position', sa.Integer, nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_survey_question'),
        sa.UniqueConstraint('code', name='uq_survey_question_code'),
    )

    op.create_table(
        'survey_response',
        sa.Column('id', sa.Integer, autoincrement=True),
        sa.Column('teaching_id', sa.Integer, sa.ForeignKey('teaching.id', name='fk_survey_response_teaching_id_teaching'), nullable=False),
        sa.Column('submitted_at', sa.DateTime, nullable=False),
        sa.Column('comment', sa.Text, nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_survey_response'),
    )
    op.create_index('ix_survey_response_teaching_id', 'survey_response', ['teaching_id'])
    op.create_index('ix_survey_response_submitted_at', 'survey_response', ['submitted_at'])

    op.create_table(
        'survey_answer',
        sa.Column('id', sa.Integer, autoincrement=True),
        sa.Column('response_id', sa.Integer, sa.ForeignKey('survey_response.id', name='fk_survey_answer_response_id_survey_response'), nullable=False),
        sa.Column('question_id', sa.Integer, sa.ForeignKey('survey_question.id', name='fk_survey_answer_question_id_survey_question'), nullable=False),
        sa.Column('value', sa.Integer, nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_survey_answer'),
        sa.CheckConstraint('value IN (0, 1, 2)', name='ck_survey_answer_value_range'),
    )
    op.create_index('ix_survey_answer_response_id', 'survey_answer', ['response_id'])
    op.create_index('ix_survey_answer_question_id', 'survey_answer', ['question_id'])


def downgrade():
    for table in ('survey_answer', 'survey_response', 'survey_question', 'teaching', 'discipline'):
        op.drop_table(table)
    for table in reversed(NAMED_TABLES):
        op.drop_table(table)
