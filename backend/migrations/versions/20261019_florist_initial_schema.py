"""Initial schema: sales, card company settings, reservations, push subscriptions

Revision ID: 20261019_florist_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_florist_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("product_category", sa.String(64), nullable=True),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("payment_method", sa.String(16), nullable=False),
        sa.Column("card_company", sa.String(50), nullable=True),
        sa.Column("fee", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("expected_deposit", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("expected_deposit_date", sa.Date(), nullable=True),
        sa.Column("deposit_status", sa.String(16), nullable=False, server_default="not_applicable"),
        sa.Column("deposited_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("customer_name", sa.String(100), nullable=True),
        sa.Column("customer_phone", sa.String(32), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.CheckConstraint("amount >= 0", name="ck_sales_amount_non_negative"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("sales", schema=None) as batch_op:
        batch_op.create_index("ix_sales_date", ["date"], unique=False)
        batch_op.create_index("ix_sales_deposit_status", ["deposit_status"], unique=False)
        batch_op.create_index("ix_sales_method_status_date", ["payment_method", "deposit_status", "date"], unique=False)

    op.create_table(
        "card_company_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("fee_rate", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("deposit_days", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("card_company_settings", schema=None) as batch_op:
        batch_op.create_index("ix_card_company_settings_is_active", ["is_active"], unique=False)

    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time", sa.String(8), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("customer_name", sa.String(100), nullable=False),
        sa.Column("customer_phone", sa.String(32), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("estimated_amount", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("reminder_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reminder_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("reservations", schema=None) as batch_op:
        batch_op.create_index("ix_reservations_date_status", ["date", "status"], unique=False)
        batch_op.create_index("ix_reservations_status", ["status"], unique=False)
        batch_op.create_index("ix_reservations_reminder_at", ["reminder_at"], unique=False)
        batch_op.create_index("ix_reservations_reminder_date", ["reminder_date"], unique=False)

    op.create_table(
        "push_subscriptions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("endpoint", sa.Text(), nullable=False),
        sa.Column("p256dh", sa.String(255), nullable=True),
        sa.Column("auth", sa.String(255), nullable=True),
        sa.Column("user_agent", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("endpoint"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("push_subscriptions", schema=None) as batch_op:
        batch_op.create_index("ix_push_subscriptions_is_active", ["is_active"], unique=False)


def downgrade():
    with op.batch_alter_table("push_subscriptions", schema=None) as batch_op:
        batch_op.drop_index("ix_push_subscriptions_is_active")
    op.drop_table("push_subscriptions")

    with op.batch_alter_table("reservations", schema=None) as batch_op:
        batch_op.drop_index("ix_reservations_reminder_date")
        batch_op.drop_index("ix_reservations_reminder_at")
        batch_op.drop_index("ix_reservations_status")
        batch_op.drop_index("ix_reservations_date_status")
    op.drop_table("reservations")

    with op.batch_alter_table("card_company_settings", schema=None) as batch_op:
        batch_op.drop_index("ix_card_company_settings_is_active")
    op.drop_table("card_company_settings")

    with op.batch_alter_table("sales", schema=None) as batch_op:
        batch_op.drop_index("ix_sales_method_status_date")
        batch_op.drop_index("ix_sales_deposit_status")
        batch_op.drop_index("ix_sales_date")
    op.drop_table("sales")
