from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def load_all_models() -> type[Base]:
    """
    Import every module that declares tables so Base.metadata is complete
    (for create_all and migrations). Done lazily to avoid circular imports.
    """
    from app.crm.modules.configuration import models  # noqa: F401

    return Base
