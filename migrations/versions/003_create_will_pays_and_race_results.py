"""create will_pays and race_results tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-05 00:02:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '003'
down_revision = '002'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'will_pays',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('track_name', sa.String(length=100), nullable=False),
        sa.Column('race_number', sa.Integer(), nullable=False),
        sa.Column('race_date', sa.Date(), nullable=False),
        sa.Column('wager_type', sa.String(length=20), nullable=False),
        sa.Column('combination', sa.String(length=100), nullable=False),
        sa.Column('payout', sa.Float(), nullable=True),
        sa.Column('is_carryover', sa.Boolean(), nullable=False),
        sa.Column('carryover_amount', sa.Float(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'track_name', 'race_number', 'race_date', 'wager_type', 'combination',
            name='uq_will_pays_natural_key'
        )
    )
    op.create_index(op.f('ix_will_pays_track_name'), 'will_pays', ['track_name'])

    op.create_table(
        'race_results',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('race_id', sa.Integer(), nullable=False),
        sa.Column('track_name', sa.String(length=100), nullable=False),
        sa.Column('race_number', sa.Integer(), nullable=False),
        sa.Column('race_date', sa.Date(), nullable=False),
        sa.Column('finish_order', sa.JSON(), nullable=False),
        sa.Column('payouts', sa.JSON(), nullable=True),
        sa.Column('source_url', sa.String(length=500), nullable=True),
        sa.Column('captured_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['race_id'], ['races.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'track_name', 'race_number', 'race_date', name='uq_race_results_natural_key'
        )
    )
    op.create_index(op.f('ix_race_results_race_id'), 'race_results', ['race_id'])


def downgrade() -> None:
    op.drop_index(op.f('ix_race_results_race_id'), table_name='race_results')
    op.drop_table('race_results')
    op.drop_index(op.f('ix_will_pays_track_name'), table_name='will_pays')
    op.drop_table('will_pays')
