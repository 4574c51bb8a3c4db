"""
Database helpers: engine/session factories and layer provisioning.

The warehouse keeps each medallion layer in its own schema (``bronze`` and
``silver``). PostgreSQL gets real schemas; SQLite gets one attached database
per layer so the same schema-qualified models work on both.
"""

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from db.models_bronze import BronzeBase
from db.models_silver import SilverBase

logger = logging.getLogger(__name__)

LAYER_SCHEMAS = ("bronze", "silver")

_ENGINE: Optional[Engine] = None


def _is_memory_sqlite(url) -> bool:
    return url.database in (None, "", ":memory:")


def _attach_layer_databases(engine: Engine, url) -> None:
    """Attach one SQLite database per layer schema on every new connection."""
    if _is_memory_sqlite(url):
        targets = {schema: ":memory:" for schema in LAYER_SCHEMAS}
    else:
        main_path = Path(url.database)
        targets = {
            schema: str(main_path.with_name(f"{main_path.stem}_{schema}{main_path.suffix or '.db'}"))
            for schema in LAYER_SCHEMAS
        }

    @event.listens_for(engine, "connect")
    def _attach(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        for schema, path in targets.items():
            cursor.execute(f"ATTACH DATABASE '{path}' AS {schema}")
        cursor.close()


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    In-memory SQLite engines share a single connection so every session sees
    the same attached layer databases.
    """
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        kwargs = {"connect_args": {"check_same_thread": False}}
        if _is_memory_sqlite(url):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=echo, **kwargs)
        _attach_layer_databases(engine, url)
    else:
        engine = create_engine(url, echo=echo, pool_pre_ping=True)

    logger.debug(f"Engine created for backend '{url.get_backend_name()}'")
    return engine


def get_engine(database_url: Optional[str] = None) -> Engine:
    """Return the process-wide engine, creating it from settings on first use."""
    global _ENGINE
    if database_url is not None:
        return build_engine(database_url)
    if _ENGINE is None:
        from warehouse.common.config import get_settings

        _ENGINE = build_engine(get_settings().database_url)
    return _ENGINE


def create_layer_schemas(engine: Engine) -> None:
    """Create the layer schemas if they don't exist (no-op on SQLite)."""
    if engine.dialect.name == "sqlite":
        return
    with engine.begin() as conn:
        for schema in LAYER_SCHEMAS:
            conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {schema}"))
    logger.info(f"Schemas {', '.join(LAYER_SCHEMAS)} created or already exist")


def create_layer_tables(engine: Engine) -> None:
    """Create Bronze and Silver tables."""
    create_layer_schemas(engine)
    BronzeBase.metadata.create_all(engine)
    SilverBase.metadata.create_all(engine)
    logger.info("Bronze and Silver tables created successfully")
