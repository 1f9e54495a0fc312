"""create scrape_jobs table

Adds the scrape_jobs table for recurring scrape work. Each row is one
(track, kind) the scheduler polls every interval_seconds. Due-ness is not
stored: a job is due when is_active and next_run_at <= now, which is why
next_run_at is indexed and never null.

See also: src/entities/scrape_job.py (ScrapeJob entity)

Revision ID: 001
Revises: None
Create Date: 2026-10-05 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the scrape_jobs table and its lookup indexes."""
    op.create_table(
        'scrape_jobs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('track_name', sa.String(length=100), nullable=False),
        sa.Column('job_kind', sa.String(length=20), nullable=False),
        sa.Column('url', sa.String(length=500), nullable=True),
        sa.Column('interval_seconds', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('last_run_at', sa.DateTime(), nullable=True),
        sa.Column('next_run_at', sa.DateTime(), nullable=False),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_scrape_jobs_track_name'), 'scrape_jobs', ['track_name'])
    op.create_index(op.f('ix_scrape_jobs_job_kind'), 'scrape_jobs', ['job_kind'])
    op.create_index(op.f('ix_scrape_jobs_status'), 'scrape_jobs', ['status'])
    op.create_index(op.f('ix_scrape_jobs_next_run_at'), 'scrape_jobs', ['next_run_at'])


def downgrade() -> None:
    """Drop the scrape_jobs table and its indexes."""
    op.drop_index(op.f('ix_scrape_jobs_next_run_at'), table_name='scrape_jobs')
    op.drop_index(op.f('ix_scrape_jobs_status'), table_name='scrape_jobs')
    op.drop_index(op.f('ix_scrape_jobs_job_kind'), table_name='scrape_jobs')
    op.drop_index(op.f('ix_scrape_jobs_track_name'), table_name='scrape_jobs')
    op.drop_table('scrape_jobs')
