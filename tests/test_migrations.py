from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from ledger.models import Base

ALEMBIC_INI = Path(__file__).resolve().parents[1] / "alembic.ini"


def _config(url: str) -> Config:
    cfg = Config(str(ALEMBIC_INI))
    cfg.set_main_option("sqlalchemy.url", url)
    return cfg


def test_migrations_create_the_model_tables(tmp_path):
    url = f"sqlite:///{tmp_path / 'ledger_migrations.db'}"

    command.upgrade(_config(url), "head")

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names())
        assert set(Base.metadata.tables) <= tables
        for name, table in Base.metadata.tables.items():
            migrated = {column["name"] for column in inspector.get_columns(name)}
            assert migrated == {column.name for column in table.columns}
        uniques = {uc["name"] for uc in inspector.get_unique_constraints("consents")}
        assert "uq_consents_idempotency_key" in uniques
    finally:
        engine.dispose()


def test_downgrade_drops_everything(tmp_path):
    url = f"sqlite:///{tmp_path / 'ledger_downgrade.db'}"
    cfg = _config(url)

    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")

    engine = create_engine(url)
    try:
        assert set(inspect(engine).get_table_names()) <= {"alembic_version"}
    finally:
        engine.dispose()
