"""Relational persistence for Hanna code snippets."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Tuple

from sqlalchemy import (
    Column,
    Integer,
    MetaData,
    SmallInteger,
    String,
    Table,
    Text,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.engine import CursorResult, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.sql.expression import Executable

from ..errors import DuplicateNameError, StoreError
from .attrs_block import ReservedNamePredicate, pack_code, unpack_code
from .model import Snippet
from .transfer import export_snippet, parse_export

logger = logging.getLogger("hanna_code")

DEFAULT_TABLE_NAME = "hanna_code"
DEFAULT_MAX_NAME_RETRIES = 100

# sort key -> (column, descending)
SORTS: Dict[str, Tuple[str, bool]] = {
    "name": ("name", False),
    "-name": ("name", True),
    "modified": ("modified", False),
    "-modified": ("modified", True),
    "accessed": ("accessed", False),
    "-accessed": ("accessed", True),
}

_UNIQUE_MESSAGES = ("unique constraint", "duplicate entry", "duplicate key")


def build_table(metadata: MetaData, name: str = DEFAULT_TABLE_NAME) -> Table:
    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("name", String(128), nullable=False, unique=True),
        Column("type", SmallInteger, nullable=False, default=0, server_default="0"),
        Column("code", Text),
        Column("modified", Integer, nullable=False, default=0, server_default="0"),
        Column("accessed", Integer, nullable=False, default=0, server_default="0"),
    )


def is_unique_violation(exc: IntegrityError) -> bool:
    """Whether ``exc`` reports a uniqueness violation rather than another constraint."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate == "23505":
        return True
    args = getattr(orig, "args", ())
    if args and args[0] == 1062:  # MySQL ER_DUP_ENTRY
        return True
    message = str(orig).lower()
    return any(marker in message for marker in _UNIQUE_MESSAGES)


def _now() -> int:
    return int(time.time())


def _rowcount(result: CursorResult) -> int:
    return result.rowcount


class SnippetRepository:
    """Load, list, save and delete Hanna codes stored in one table.

    Default attributes travel inside the stored ``code`` column as an attribute
    block; the repository packs them on save and unpacks them on every read.
    Attribute names are checked against ``is_reserved`` as well as the literal
    reserved words.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        is_reserved: ReservedNamePredicate | None = None,
        table_name: str = DEFAULT_TABLE_NAME,
        max_name_retries: int = DEFAULT_MAX_NAME_RETRIES,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.engine = engine
        self.is_reserved = is_reserved
        self.max_name_retries = max(0, max_name_retries)
        self.clock = clock or _now
        self.metadata = MetaData()
        self.table = build_table(self.metadata, table_name)

    # Lookup ------------------------------------------------------------------

    def get(self, key: int | str) -> Snippet:
        """Fetch by id (all-digit key) or exact name; id 0 means not found."""
        text = str(key)
        if text.isascii() and text.isdigit():
            query = select(self.table).where(self.table.c.id == int(text))
        else:
            query = select(self.table).where(self.table.c.name == str(key))
        row = self._execute("load", query.limit(1), lambda result: result.mappings().first())
        if row is None:
            return self.get_new()
        return self._row_to_snippet(row)

    def get_all(self, sort: str = "name") -> List[Snippet]:
        column_name, descending = SORTS.get(sort, SORTS["name"])
        column = self.table.c[column_name]
        query = select(self.table).order_by(
            column.desc() if descending else column.asc(),
            self.table.c.id.asc(),
        )
        rows = self._execute("list", query, lambda result: result.mappings().all())
        return [self._row_to_snippet(row) for row in rows]

    def get_new(self, **data: Any) -> Snippet:
        return Snippet.model_validate(data)

    # Attribute block -----------------------------------------------------------

    def pack_code(self, code: str, attrs: Mapping[str, str] | str | None) -> str:
        return pack_code(code, attrs, self.is_reserved)

    def unpack_code(self, stored: str) -> Tuple[str, Dict[str, str]]:
        return unpack_code(stored, self.is_reserved)

    # Persistence ---------------------------------------------------------------

    def save(self, snippet: Snippet) -> bool:
        """Insert or update ``snippet`` and stamp its modified time.

        A new snippet whose name is taken is inserted as ``name-1``, ``name-2``
        and so on; the store's unique index decides which names are free.
        """
        code = self.pack_code(snippet.code, snippet.attrs)
        now = self.clock()
        if snippet.id:
            return self._update(snippet, code, now)
        return self._insert(snippet, code, now)

    def touch(self, snippet: Snippet) -> bool:
        """Record an access without changing the modified time."""
        if not snippet.id:
            return False
        now = self.clock()
        statement = (
            update(self.table)
            .where(self.table.c.id == snippet.id)
            .values(accessed=now)
        )
        if not self._execute("touch", statement, _rowcount):
            return False
        snippet.accessed = now
        return True

    def delete(self, snippet: Snippet) -> bool:
        if not snippet.id:
            return False
        statement = delete(self.table).where(self.table.c.id == snippet.id)
        deleted = self._execute("delete", statement, _rowcount)
        if deleted:
            logger.info("Deleted Hanna code %s (id %d)", snippet.name, snippet.id)
        return deleted > 0

    def install(self) -> None:
        try:
            self.metadata.create_all(self.engine, checkfirst=True)
        except SQLAlchemyError as exc:
            logger.error("Failed to create table %s: %s", self.table.name, exc)
            raise StoreError(f"Failed to create table {self.table.name}") from exc

    def uninstall(self) -> None:
        try:
            self.table.drop(self.engine, checkfirst=True)
        except SQLAlchemyError as exc:
            logger.error("Failed to drop table %s: %s", self.table.name, exc)
            raise StoreError(f"Failed to drop table {self.table.name}") from exc

    # Export / import -----------------------------------------------------------

    def export_snippet(self, snippet: Snippet) -> str:
        return export_snippet(snippet, self.pack_code)

    def import_snippet(self, text: str, *, replace: bool = False) -> Snippet:
        """Save a snippet from export text, refusing existing names unless ``replace``."""
        snippet = parse_export(text, self.unpack_code)
        existing = self.get(snippet.name)
        if existing.id:
            if not replace:
                raise DuplicateNameError(snippet.name)
            snippet.id = existing.id
            snippet.accessed = existing.accessed
        self.save(snippet)
        return snippet

    # Internals -----------------------------------------------------------------

    def _insert(self, snippet: Snippet, code: str, now: int) -> bool:
        base_name = snippet.name
        for attempt in range(self.max_name_retries + 1):
            name = base_name if attempt == 0 else f"{base_name}-{attempt}"
            statement = insert(self.table).values(
                name=name,
                type=snippet.type,
                code=code,
                modified=now,
            )
            try:
                new_id = self._execute(
                    "insert", statement, lambda result: result.inserted_primary_key[0]
                )
            except IntegrityError:
                logger.info("Hanna code name %s is taken, retrying with a suffix", name)
                continue
            snippet.id = new_id
            snippet.name = name
            snippet.modified = now
            return True

        raise DuplicateNameError(
            base_name,
            f"No free name for Hanna code {base_name} after {self.max_name_retries} retries",
        )

    def _update(self, snippet: Snippet, code: str, now: int) -> bool:
        statement = (
            update(self.table)
            .where(self.table.c.id == snippet.id)
            .values(name=snippet.name, type=snippet.type, code=code, modified=now)
        )
        try:
            updated = self._execute("update", statement, _rowcount)
        except IntegrityError as exc:
            raise DuplicateNameError(snippet.name) from exc
        if not updated:
            logger.warning("No Hanna code with id %d to update", snippet.id)
            return False
        snippet.modified = now
        return True

    def _execute(
        self,
        operation: str,
        statement: Executable,
        consume: Callable[[CursorResult], Any],
    ) -> Any:
        """Run one statement in its own transaction.

        Uniqueness violations propagate as ``IntegrityError`` for the caller to
        resolve; every other store failure becomes a ``StoreError``.
        """
        try:
            with self.engine.begin() as connection:
                return consume(connection.execute(statement))
        except IntegrityError as exc:
            if is_unique_violation(exc):
                raise
            logger.error("Failed to %s Hanna code: %s", operation, exc.orig)
            raise StoreError(f"Failed to {operation} Hanna code: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            logger.error("Failed to %s Hanna code: %s", operation, exc)
            raise StoreError(f"Failed to {operation} Hanna code") from exc

    def _row_to_snippet(self, row: Mapping[str, Any]) -> Snippet:
        data = dict(row)
        data["code"], data["attrs"] = self.unpack_code(data.get("code") or "")
        return Snippet.model_validate(data)


__all__ = [
    "DEFAULT_MAX_NAME_RETRIES",
    "DEFAULT_TABLE_NAME",
    "SORTS",
    "SnippetRepository",
    "build_table",
    "is_unique_violation",
]
