from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.crm.models import Base


class ConfigSection(Base):
    """
    One row per top-level settings section ("general", "theme").
    """

    __tablename__ = "config_sections"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)


class CustomFieldRow(Base):
    __tablename__ = "custom_field_definitions"
    __table_args__ = (
        UniqueConstraint("entity", "name", name="uq_custom_field_entity_name"),
        Index("idx_custom_field_definitions_entity", "entity"),
        Index("idx_custom_field_definitions_position", "position"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    # Insertion order; list views and forms render fields in this order.
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    entity: Mapped[str] = mapped_column(String(32), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    field_type: Mapped[str] = mapped_column(String(32), nullable=False, default="text")
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    options: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    placeholder: Mapped[str | None] = mapped_column(Text, nullable=True)
    default_value: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)


class PageLayoutRow(Base):
    __tablename__ = "page_layouts"

    page_name: Mapped[str] = mapped_column(String(64), primary_key=True)
    active_components: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    grid_layout: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
