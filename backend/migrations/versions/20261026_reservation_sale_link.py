"""Link converted reservations to their sale

Revision ID: 20261026_reservation_sale_link
Revises: 20261019_florist_initial
Create Date: 2026-10-26
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261026_reservation_sale_link"
down_revision = "20261019_florist_initial"
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table("reservations", schema=None) as batch_op:
        batch_op.add_column(sa.Column("sale_id", sa.Integer(), nullable=True))
        batch_op.create_foreign_key("fk_reservations_sale_id", "sales", ["sale_id"], ["id"])
        batch_op.create_index("ix_reservations_sale_id", ["sale_id"], unique=False)


def downgrade():
    with op.batch_alter_table("reservations", schema=None) as batch_op:
        batch_op.drop_index("ix_reservations_sale_id")
        batch_op.drop_constraint("fk_reservations_sale_id", type_="foreignkey")
        batch_op.drop_column("sale_id")
