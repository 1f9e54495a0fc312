"""create dead_letters and synthetic_records tables

dead_letters is append-only: odds that could not be matched to a known race
are stored with the full payload so they can be replayed. synthetic_records
quarantines placeholder output from the extraction fallback, keyed by
(domain, track_name, race_number, race_date), so it never mixes with real
race data.

Revision ID: 004
Revises: 003
Create Date: 2026-10-05 00:03:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '004'
down_revision = '003'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'dead_letters',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('kind', sa.String(length=30), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('received_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_dead_letters_kind'), 'dead_letters', ['kind'])
    op.create_index(op.f('ix_dead_letters_received_at'), 'dead_letters', ['received_at'])

    op.create_table(
        'synthetic_records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('domain', sa.String(length=20), nullable=False),
        sa.Column('track_name', sa.String(length=100), nullable=False),
        sa.Column('race_number', sa.Integer(), nullable=False),
        sa.Column('race_date', sa.Date(), nullable=False),
        sa.Column('strategy', sa.String(length=30), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'domain', 'track_name', 'race_number', 'race_date',
            name='uq_synthetic_records_natural_key'
        )
    )
    op.create_index(
        op.f('ix_synthetic_records_track_name'), 'synthetic_records', ['track_name']
    )


def downgrade() -> None:
    op.drop_index(op.f('ix_synthetic_records_track_name'), table_name='synthetic_records')
    op.drop_table('synthetic_records')
    op.drop_index(op.f('ix_dead_letters_received_at'), table_name='dead_letters')
    op.drop_index(op.f('ix_dead_letters_kind'), table_name='dead_letters')
    op.drop_table('dead_letters')
