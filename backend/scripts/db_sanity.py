from __future__ import annotations

import os
import sys
from pathlib import Path

from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import make_url

ALEMBIC_INI = Path(__file__).resolve().parents[2] / "alembic.ini"

REQUIRED_TABLES = (
    "companies",
    "issuances",
    "insurer_billing_data",
    "ocr_data",
    "upload_errors",
    "audit_logs",
)


def _load_database_url() -> str:
    env_url = os.getenv("DATABASE_URL") or os.getenv("SQLALCHEMY_DATABASE_URL")
    if env_url:
        return env_url

    config = Config(str(ALEMBIC_INI))
    ini_url = config.get_main_option("sqlalchemy.url")
    if not ini_url:
        raise RuntimeError("No DATABASE_URL or sqlalchemy.url configured.")
    return ini_url


def _load_alembic_script() -> ScriptDirectory:
    return ScriptDirectory.from_config(Config(str(ALEMBIC_INI)))


def _inspect_db(database_url: str) -> tuple[str | None, list[str]]:
    """(alembic revision or None, required tables that are missing)."""
    engine = create_engine(database_url, future=True)
    try:
        tables = set(inspect(engine).get_table_names())
        missing = [name for name in REQUIRED_TABLES if name not in tables]
        if "alembic_version" not in tables:
            return None, missing
        with engine.connect() as conn:
            row = conn.execute(text("SELECT version_num FROM alembic_version")).first()
        return (row[0] if row else None), missing
    finally:
        engine.dispose()


def main() -> int:
    errors = []
    database_url = _load_database_url()
    url = make_url(database_url)

    script = _load_alembic_script()
    heads = script.get_heads()

    db_revision, missing_tables = _inspect_db(database_url)

    print("DB sanity report")
    print(f"- SQLAlchemy URL: {url.render_as_string(hide_password=True)}")
    print(f"- Alembic heads in repo: {heads}")
    print(f"- DB alembic_version: {db_revision}")
    print(f"- Missing intake tables: {missing_tables or 'none'}")

    if len(heads) != 1:
        errors.append(f"Expected exactly one alembic head, found {len(heads)}: {heads}")

    if db_revision is None:
        errors.append("Database has no alembic_version table or no revision recorded.")
    elif script.get_revision(db_revision) is None:
        errors.append(f"Database revision {db_revision} is not present in the repo revision map.")

    if missing_tables:
        errors.append(f"Tables missing (run alembic upgrade head): {', '.join(missing_tables)}")

    if errors:
        print("\nERRORS:")
        for error in errors:
            print(f"- {error}")
        return 1

    print("\nOK: alembic head, DB revision and intake tables are in sync.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
