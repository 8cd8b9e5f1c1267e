"""voters, vacancies, candidates, election dates and votes

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:30:00.000000
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "voters",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("registration_number", sa.String(length=50), nullable=False, unique=True),
        sa.Column("national_id_hash", sa.String(length=200), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "vacancies",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("requirements", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "candidates",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("vacancy_id", sa.Integer(), sa.ForeignKey("vacancies.id"), nullable=False),
        sa.Column("manifesto", sa.Text(), nullable=False),
        sa.Column("image_url", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "election_dates",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "votes",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("voter_id", sa.Integer(), sa.ForeignKey("voters.id"), nullable=False),
        sa.Column("candidate_id", sa.Integer(), sa.ForeignKey("candidates.id"), nullable=False),
        sa.Column("vacancy_id", sa.Integer(), sa.ForeignKey("vacancies.id"), nullable=False),
        sa.Column("cast_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("voter_id", "vacancy_id", name="uq_votes_voter_vacancy"),
    )
    op.create_index("ix_votes_candidate_id", "votes", ["candidate_id"])


def downgrade():
    op.drop_index("ix_votes_candidate_id", table_name="votes")
    op.drop_table("votes")
    op.drop_table("election_dates")
    op.drop_table("candidates")
    op.drop_table("vacancies")
    op.drop_table("voters")
