"""initial auth schema: catalog, users, one-time codes

Revision ID: 0001_initial_auth_schema
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial_auth_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'curriculums',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index(op.f('ix_curriculums_id'), 'curriculums', ['id'], unique=False)

    op.create_table(
        'exam_boards',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('curriculum_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['curriculum_id'], ['curriculums.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index(op.f('ix_exam_boards_id'), 'exam_boards', ['id'], unique=False)
    op.create_index(op.f('ix_exam_boards_curriculum_id'), 'exam_boards', ['curriculum_id'], unique=False)

    op.create_table(
        'levels',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('exam_board_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['exam_board_id'], ['exam_boards.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_levels_id'), 'levels', ['id'], unique=False)
    op.create_index(op.f('ix_levels_exam_board_id'), 'levels', ['exam_board_id'], unique=False)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=150), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('curriculum_id', sa.Integer(), nullable=True),
        sa.Column('exam_board_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['curriculum_id'], ['curriculums.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['exam_board_id'], ['exam_boards.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)

    op.create_table(
        'user_levels',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('level_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['level_id'], ['levels.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id', 'level_id'),
    )

    op.create_table(
        'one_time_codes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('code_hash', sa.String(length=255), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_used', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_one_time_codes_id'), 'one_time_codes', ['id'], unique=False)
    op.create_index(op.f('ix_one_time_codes_email'), 'one_time_codes', ['email'], unique=False)
    op.create_index(op.f('ix_one_time_codes_user_id'), 'one_time_codes', ['user_id'], unique=False)
    op.create_index('idx_one_time_codes_active', 'one_time_codes', ['email', 'is_used', 'expires_at'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_one_time_codes_active', table_name='one_time_codes')
    op.drop_index(op.f('ix_one_time_codes_user_id'), table_name='one_time_codes')
    op.drop_index(op.f('ix_one_time_codes_email'), table_name='one_time_codes')
    op.drop_index(op.f('ix_one_time_codes_id'), table_name='one_time_codes')
    op.drop_table('one_time_codes')
    op.drop_table('user_levels')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_table('users')
    op.drop_index(op.f('ix_levels_exam_board_id'), table_name='levels')
    op.drop_index(op.f('ix_levels_id'), table_name='levels')
    op.drop_table('levels')
    op.drop_index(op.f('ix_exam_boards_curriculum_id'), table_name='exam_boards')
    op.drop_index(op.f('ix_exam_boards_id'), table_name='exam_boards')
    op.drop_table('exam_boards')
    op.drop_index(op.f('ix_curriculums_id'), table_name='curriculums')
    op.drop_table('curriculums')
