"""Cost reports, notes and units of measure

Revision ID: 20261020_cost_notes_uom
Revises: 20261019_initial
Create Date: 2026-10-20
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261020_cost_notes_uom"
down_revision = "20261019_initial"
branch_labels = None
depends_on = None


def _audit_columns():
    return [
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("created_by", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_modified_by", sa.String(64), nullable=True),
        sa.Column("last_modified_at", sa.DateTime(), nullable=True),
    ]


def upgrade():
    op.create_table(
        "units_of_measure",
        *_audit_columns(),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("abbreviation", sa.String(16), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "notes",
        *_audit_columns(),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "cost_reports",
        *_audit_columns(),
        sa.Column("report_number", sa.String(64), nullable=False),
        sa.Column("report_date", sa.Date(), nullable=False),
        sa.Column("party_id", sa.String(32), nullable=True),
        sa.Column("party_name", sa.String(255), nullable=True),
        sa.Column("kraft_paper_cost", sa.Float(), nullable=False),
        sa.Column("virgin_paper_cost", sa.Float(), nullable=False),
        sa.Column("conversion_cost", sa.Float(), nullable=False),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("total_cost", sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("cost_reports", schema=None) as batch_op:
        batch_op.create_index("ix_cost_reports_report_number", ["report_number"], unique=False)
        batch_op.create_index("ix_cost_reports_party_id", ["party_id"], unique=False)


def downgrade():
    for table in ("cost_reports", "notes", "units_of_measure"):
        op.drop_table(table)
