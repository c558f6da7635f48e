"""Initial schema: schools, access PINs, regular and late registrations

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19

Student numbers are unique per school across both registration tables;
that is enforced by the registration service under a school row lock.
"""
from alembic import op
import sqlalchemy as sa

revision = "a1b2c3d4e5f6"
down_revision = None
branch_labels = None
depends_on = None


def _base_columns():
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def _create_registration_table(name: str) -> None:
    op.create_table(
        name,
        *_base_columns(),
        sa.Column("school_id", sa.Uuid(), nullable=False),
        sa.Column("acc_code", sa.String(length=10), nullable=False),
        sa.Column("student_number", sa.String(length=20), nullable=True),
        sa.Column("firstname", sa.String(length=255), nullable=False),
        sa.Column("othername", sa.String(length=255), nullable=False),
        sa.Column("lastname", sa.String(length=255), nullable=False),
        sa.Column("gender", sa.String(length=10), nullable=False),
        sa.Column("school_type", sa.String(length=50), nullable=False),
        sa.Column("date_of_birth", sa.String(length=20), nullable=True),
        sa.Column("passport", sa.Text(), nullable=True),
        sa.Column("scores", sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(["school_id"], ["schools.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(f"ix_{name}_id", name, ["id"])
    op.create_index(f"ix_{name}_school_id", name, ["school_id"])
    op.create_index(f"ix_{name}_acc_code", name, ["acc_code"], unique=True)
    op.create_index(f"ix_{name}_student_number", name, ["student_number"])


def upgrade() -> None:
    op.create_table(
        "schools",
        *_base_columns(),
        sa.Column("lga_code", sa.String(length=20), nullable=False),
        sa.Column("school_code", sa.String(length=20), nullable=False),
        sa.Column("school_name", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("registration_open", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("lga_code", "school_code", name="uq_schools_lga_school"),
    )
    op.create_index("ix_schools_id", "schools", ["id"])
    op.create_index("ix_schools_lga_code", "schools", ["lga_code"])

    op.create_table(
        "access_pins",
        *_base_columns(),
        sa.Column("pin", sa.String(length=16), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("owner_lga_code", sa.String(length=20), nullable=True),
        sa.Column("owner_school_code", sa.String(length=20), nullable=True),
        sa.Column("owner_school_name", sa.String(length=255), nullable=True),
        sa.Column("claimed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_access_pins_id", "access_pins", ["id"])
    op.create_index("ix_access_pins_pin", "access_pins", ["pin"], unique=True)
    op.create_index("ix_access_pins_is_active", "access_pins", ["is_active"])

    _create_registration_table("student_registrations")
    _create_registration_table("post_registrations")


def downgrade() -> None:
    op.drop_table("post_registrations")
    op.drop_table("student_registrations")
    op.drop_table("access_pins")
    op.drop_table("schools")
