"""
Settings Store - Small persisted key/value state

Holds the handful of scalar values that must survive between page renders:
the last API error timestamp (cache busting), the license key triple and UI
flags. Reads and writes are not locked; every write is a last-write-wins
overwrite of a single scalar, so concurrent renders can at worst disagree on
whether a cache-busting parameter is added.

Usage:
    from vista.services.settings_store import SQLSettingsStore

    store = SQLSettingsStore("sqlite:///vista_settings.db")
    store.set("vista_api_err_time", "1700000000")
    store.get("vista_api_err_time")  # "1700000000"
"""

import logging
from typing import Dict, Optional, Protocol

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, delete, insert, select, update
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

__all__ = [
    'SettingsStore',
    'MemorySettingsStore',
    'SQLSettingsStore',
]


class SettingsStore(Protocol):
    """Interface for persisted scalar settings."""

    def get(self, name: str, default: str = "") -> str:
        ...

    def set(self, name: str, value: str) -> None:
        ...

    def delete(self, name: str) -> None:
        ...


class MemorySettingsStore:
    """Process-local settings, for tests and one-shot CLI runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, name: str, default: str = "") -> str:
        return self._values.get(name, default)

    def set(self, name: str, value: str) -> None:
        self._values[name] = str(value)

    def delete(self, name: str) -> None:
        self._values.pop(name, None)


_metadata = MetaData()

settings_table = Table(
    'vista_settings',
    _metadata,
    Column('name', String(191), primary_key=True),
    Column('value', Text, nullable=False, default=''),
)


class SQLSettingsStore:
    """
    Settings persisted in a single SQLAlchemy table.

    The table is created on first use, so any SQLAlchemy URL works without
    a migration step.
    """

    def __init__(self, url_or_engine):
        """
        Args:
            url_or_engine: SQLAlchemy URL string or an existing Engine
        """
        if isinstance(url_or_engine, Engine):
            self.engine = url_or_engine
        else:
            self.engine = create_engine(url_or_engine)
        self._ready = False

    def _ensure_table(self) -> None:
        if not self._ready:
            _metadata.create_all(self.engine, tables=[settings_table])
            self._ready = True

    def get(self, name: str, default: str = "") -> str:
        self._ensure_table()
        with self.engine.connect() as conn:
            row = conn.execute(
                select(settings_table.c.value).where(settings_table.c.name == name)
            ).first()
        if row is None:
            return default
        return row[0]

    def set(self, name: str, value: str) -> None:
        self._ensure_table()
        value = str(value)
        with self.engine.begin() as conn:
            result = conn.execute(
                update(settings_table)
                .where(settings_table.c.name == name)
                .values(value=value)
            )
            if result.rowcount == 0:
                conn.execute(insert(settings_table).values(name=name, value=value))
        logger.debug(f"Setting '{name}' updated")

    def delete(self, name: str) -> None:
        self._ensure_table()
        with self.engine.begin() as conn:
            conn.execute(delete(settings_table).where(settings_table.c.name == name))
