"""Per-period invoice counter

Revision ID: 20251010_invoice_counter
Revises: 20250917_init
Create Date: 2025-10-10
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20251010_invoice_counter"
down_revision = "20250917_init"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "invoice_counters",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("period", sa.String(length=6), nullable=False),
        sa.Column("last_number", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("period", name="uq_invoice_counters_period"),
        sqlite_autoincrement=True,
    )


def downgrade():
    op.drop_table("invoice_counters")
