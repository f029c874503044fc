"""create configuration tables

Revision ID: 3a7e91c04b2d
Revises:
Create Date: 2026-10-17

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "3a7e91c04b2d"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    insp = inspect(bind)
    existing_tables = set(insp.get_table_names())

    if "config_sections" not in existing_tables:
        op.create_table(
            "config_sections",
            sa.Column("key", sa.String(length=64), primary_key=True, nullable=False),
            sa.Column("value", sa.JSON(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
        )

    if "custom_field_definitions" not in existing_tables:
        op.create_table(
            "custom_field_definitions",
            sa.Column("id", sa.String(length=32), primary_key=True, nullable=False),
            sa.Column("position", sa.Integer(), nullable=False),
            sa.Column("entity", sa.String(length=32), nullable=False),
            sa.Column("name", sa.String(length=128), nullable=False),
            sa.Column("label", sa.String(length=255), nullable=False),
            sa.Column("field_type", sa.String(length=32), nullable=False),
            sa.Column("required", sa.Boolean(), nullable=False),
            sa.Column("options", sa.JSON(), nullable=False),
            sa.Column("placeholder", sa.Text(), nullable=True),
            sa.Column("default_value", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.UniqueConstraint("entity", "name", name="uq_custom_field_entity_name"),
        )
        op.create_index("idx_custom_field_definitions_entity", "custom_field_definitions", ["entity"])
        op.create_index("idx_custom_field_definitions_position", "custom_field_definitions", ["position"])

    if "page_layouts" not in existing_tables:
        op.create_table(
            "page_layouts",
            sa.Column("page_name", sa.String(length=64), primary_key=True, nullable=False),
            sa.Column("active_components", sa.JSON(), nullable=False),
            sa.Column("grid_layout", sa.JSON(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
        )


def downgrade() -> None:
    op.drop_table("page_layouts")
    op.drop_index("idx_custom_field_definitions_position", table_name="custom_field_definitions")
    op.drop_index("idx_custom_field_definitions_entity", table_name="custom_field_definitions")
    op.drop_table("custom_field_definitions")
    op.drop_table("config_sections")
