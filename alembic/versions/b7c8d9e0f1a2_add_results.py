"""Add examination results

Revision ID: b7c8d9e0f1a2
Revises: a1b2c3d4e5f6
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "b7c8d9e0f1a2"
down_revision = "a1b2c3d4e5f6"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "results",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("exam_number", sa.String(length=20), nullable=False),
        sa.Column("session_year", sa.String(length=9), nullable=False),
        sa.Column("firstname", sa.String(length=255), nullable=False),
        sa.Column("othername", sa.String(length=255), nullable=False),
        sa.Column("lastname", sa.String(length=255), nullable=False),
        sa.Column("gender", sa.String(length=10), nullable=True),
        sa.Column("lga_code", sa.String(length=20), nullable=True),
        sa.Column("school_code", sa.String(length=20), nullable=True),
        sa.Column("school_name", sa.String(length=255), nullable=True),
        sa.Column("subjects", sa.JSON(), nullable=False),
        sa.Column("remark", sa.Text(), nullable=True),
        sa.Column("access_pin", sa.String(length=16), nullable=True),
        sa.Column("blocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_results_id", "results", ["id"])
    op.create_index("ix_results_exam_number", "results", ["exam_number"], unique=True)
    op.create_index("ix_results_session_year", "results", ["session_year"])
    op.create_index("ix_results_lga_code", "results", ["lga_code"])
    op.create_index("ix_results_school_code", "results", ["school_code"])
    op.create_index("ix_results_blocked", "results", ["blocked"])


def downgrade() -> None:
    op.drop_table("results")
