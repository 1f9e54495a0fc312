"""create races and race_horses tables

races holds one row per (track_name, race_number, race_date); race_horses
holds one row per runner, keyed by (race_id, program_number), with live
odds, pool data and a bounded newest-first odds_history JSON list.

Revision ID: 002
Revises: 001
Create Date: 2026-10-05 00:01:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'races',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('track_name', sa.String(length=100), nullable=False),
        sa.Column('race_number', sa.Integer(), nullable=False),
        sa.Column('race_date', sa.Date(), nullable=False),
        sa.Column('post_time', sa.Time(), nullable=True),
        sa.Column('distance', sa.String(length=50), nullable=True),
        sa.Column('surface', sa.String(length=30), nullable=True),
        sa.Column('conditions', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'track_name', 'race_number', 'race_date', name='uq_races_track_race_date'
        )
    )
    op.create_index(op.f('ix_races_track_name'), 'races', ['track_name'])
    op.create_index(op.f('ix_races_race_date'), 'races', ['race_date'])

    op.create_table(
        'race_horses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('race_id', sa.Integer(), nullable=False),
        sa.Column('program_number', sa.Integer(), nullable=False),
        sa.Column('horse_name', sa.String(length=100), nullable=False),
        sa.Column('morning_line', sa.Float(), nullable=True),
        sa.Column('live_odds', sa.Float(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('jockey', sa.String(length=100), nullable=True),
        sa.Column('trainer', sa.String(length=100), nullable=True),
        sa.Column('medication', sa.String(length=20), nullable=True),
        sa.Column('weight', sa.Integer(), nullable=True),
        sa.Column('pool_data', sa.JSON(), nullable=True),
        sa.Column('odds_history', sa.JSON(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['race_id'], ['races.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('race_id', 'program_number', name='uq_race_horses_program')
    )
    op.create_index(op.f('ix_race_horses_race_id'), 'race_horses', ['race_id'])


def downgrade() -> None:
    op.drop_index(op.f('ix_race_horses_race_id'), table_name='race_horses')
    op.drop_table('race_horses')
    op.drop_index(op.f('ix_races_race_date'), table_name='races')
    op.drop_index(op.f('ix_races_track_name'), table_name='races')
    op.drop_table('races')
