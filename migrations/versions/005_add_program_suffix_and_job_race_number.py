"""add race_horses.program_suffix and scrape_jobs.race_number

Coupled entries (1 and 1A) share a program number, so the runner key
becomes (race_id, program_number, program_suffix). scrape_jobs gains a
nullable race_number for jobs pinned to a single race.

Revision ID: 005
Revises: 004
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '005'
down_revision = '004'
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table('race_horses') as batch_op:
        batch_op.add_column(
            sa.Column('program_suffix', sa.String(length=2), nullable=False, server_default='')
        )
        batch_op.drop_constraint('uq_race_horses_program', type_='unique')
        batch_op.create_unique_constraint(
            'uq_race_horses_program', ['race_id', 'program_number', 'program_suffix']
        )

    with op.batch_alter_table('scrape_jobs') as batch_op:
        batch_op.add_column(sa.Column('race_number', sa.Integer(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table('scrape_jobs') as batch_op:
        batch_op.drop_column('race_number')

    with op.batch_alter_table('race_horses') as batch_op:
        batch_op.drop_constraint('uq_race_horses_program', type_='unique')
        batch_op.create_unique_constraint(
            'uq_race_horses_program', ['race_id', 'program_number']
        )
        batch_op.drop_column('program_suffix')
