"""Environment-driven settings and repository construction."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, FrozenSet

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from .snippet.repository import (
    DEFAULT_MAX_NAME_RETRIES,
    DEFAULT_TABLE_NAME,
    SnippetRepository,
)

logger = logging.getLogger("hanna_code")


@dataclass(slots=True)
class HannaSettings:
    """Runtime configuration shared by the CLI and the API server."""

    database_url: str = "sqlite:///hanna_code.db"
    table_name: str = DEFAULT_TABLE_NAME
    max_name_retries: int = DEFAULT_MAX_NAME_RETRIES
    reserved_names: FrozenSet[str] = field(default_factory=frozenset)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "HannaSettings":
        def _int_env(name: str, default: int) -> int:
            raw = os.getenv(name)
            if not raw:
                return default
            try:
                return int(raw)
            except ValueError:
                logger.warning("Invalid integer for %s: %s", name, raw)
                return default

        raw_reserved = os.getenv("HANNA_RESERVED_NAMES", "")
        reserved = frozenset(part.strip() for part in raw_reserved.split(",") if part.strip())

        return cls(
            database_url=os.getenv("HANNA_DATABASE_URL", "sqlite:///hanna_code.db"),
            table_name=os.getenv("HANNA_TABLE_NAME", DEFAULT_TABLE_NAME),
            max_name_retries=_int_env("HANNA_MAX_NAME_RETRIES", DEFAULT_MAX_NAME_RETRIES),
            reserved_names=reserved,
            log_level=os.getenv("HANNA_LOG_LEVEL", "INFO"),
        )

    def is_reserved(self, name: str) -> bool:
        return name in self.reserved_names


def create_db_engine(settings: HannaSettings, **engine_kwargs: Any) -> Engine:
    return create_engine(settings.database_url, **engine_kwargs)


def create_repository(
    settings: HannaSettings,
    *,
    engine: Engine | None = None,
) -> SnippetRepository:
    """Build a repository for ``settings``, creating the engine when not given."""
    return SnippetRepository(
        engine or create_db_engine(settings),
        is_reserved=settings.is_reserved,
        table_name=settings.table_name,
        max_name_retries=settings.max_name_retries,
    )


__all__ = ["HannaSettings", "create_db_engine", "create_repository"]
