import sys
from pathlib import Path
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.crm.constants import DEFAULT_GENERAL, DEFAULT_PAGE_COMPONENTS, DEFAULT_THEME
from app.crm.db import transaction
from app.crm.models import load_all_models
from app.crm.modules.configuration.models import ConfigSection, PageLayoutRow


def seed_only(*, database_url: str | None = None, create_tables: bool = False) -> None:
    """
    Seed default general settings, theme and dashboard layout in an idempotent way.
    Does NOT overwrite sections an administrator already saved.
    """
    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///crm.db").strip()

    # Use direct engine/session so this can run in release without importing app.wsgi (avoids recursion).
    engine = create_engine(db_url, future=True)
    if create_tables:
        load_all_models().metadata.create_all(engine)
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, expire_on_commit=False)

    seeded: list[str] = []
    with transaction(sm) as s:
        for key, value in (("general", DEFAULT_GENERAL), ("theme", DEFAULT_THEME)):
            if s.get(ConfigSection, key) is None:
                s.add(ConfigSection(key=key, value=dict(value)))
                seeded.append(key)
        for page_name, components in DEFAULT_PAGE_COMPONENTS.items():
            if s.get(PageLayoutRow, page_name) is None:
                s.add(PageLayoutRow(page_name=page_name, active_components=list(components), grid_layout={}))
                seeded.append(f"layout:{page_name}")
    engine.dispose()

    print("Initialized database (seed_only).")
    print(f"Seeded: {', '.join(seeded) if seeded else '(nothing, already present)'}")


def main() -> None:
    seed_only(database_url=None, create_tables="--create-tables" in sys.argv[1:])


if __name__ == "__main__":
    main()
