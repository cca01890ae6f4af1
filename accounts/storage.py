"""Postgres-backed document collection for account records."""

from __future__ import annotations

import logging
import re
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Protocol

import psycopg
from psycopg import sql
from psycopg.errors import UniqueViolation
from psycopg.rows import tuple_row
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from .domain.contracts import LoginInput
from .domain.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

_COLLECTION_NAME = re.compile(r"[a-z_][a-z0-9_]{0,47}")

# banned is tri-state; JSON null and a missing key both read back as SQL NULL
_ACTIVE_CLAUSE = "COALESCE((document->>'banned')::boolean, false) = false"


@dataclass(slots=True)
class DocumentRecord:
    """A stored document together with its store-assigned identifier."""

    account_id: str
    document: dict[str, Any]


class AccountCollection(Protocol):
    """Storage operations the account store depends on."""

    def insert_one(self, document: dict[str, Any]) -> DocumentRecord: ...

    def find_one(self, login: LoginInput) -> DocumentRecord | None: ...

    def find_by_id(self, account_id: str) -> DocumentRecord | None: ...

    def find_all(self) -> list[DocumentRecord]: ...

    def update_one(self, account_id: str, document: dict[str, Any]) -> DocumentRecord | None: ...

    def delete_one(self, account_id: str) -> bool: ...


def credential_filter(login: LoginInput) -> tuple[str, list[str]]:
    """Return the WHERE clause and parameters matching active accounts for ``login``.

    Only the ``email`` and ``username`` fields contribute; both are ANDed when set.
    """
    clauses = [_ACTIVE_CLAUSE]
    params: list[str] = []
    if login.email:
        clauses.append("document->>'email' = %s")
        params.append(login.email)
    if login.username:
        clauses.append("document->>'username' = %s")
        params.append(login.username)
    return " AND ".join(clauses), params


def _parse_id(account_id: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(account_id))
    except ValueError:
        return None


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    """Translate driver failures into domain errors."""
    try:
        yield
    except UniqueViolation as exc:
        constraint = (exc.diag.constraint_name or "").lower()
        field = "username" if "username" in constraint else "email"
        raise ValidationError(f"{field} already registered") from exc
    except psycopg.Error as exc:
        logger.warning("account collection %s failed: %s", operation, exc)
        raise StorageError(f"{operation} failed") from exc


class DocumentCollection:
    """JSONB document table with unique email and username indexes."""

    def __init__(self, pool: ConnectionPool, name: str = "auth_users") -> None:
        """Store the connection pool and validate the collection (table) name."""
        if not _COLLECTION_NAME.fullmatch(name):
            raise ValueError(f"invalid collection name: {name!r}")
        self._pool = pool
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def _format(self, query: str, **parts: sql.Composable) -> sql.Composed:
        return sql.SQL(query).format(table=sql.Identifier(self._name), **parts)

    def ensure_schema(self) -> None:
        """Create the collection table and its uniqueness indexes when missing."""
        statements = [
            self._format(
                """
                CREATE TABLE IF NOT EXISTS {table} (
                    account_id uuid PRIMARY KEY,
                    document jsonb NOT NULL
                )
                """
            ),
            self._format(
                "CREATE UNIQUE INDEX IF NOT EXISTS {index} ON {table} ((document->>'email'))",
                index=sql.Identifier(f"{self._name}_email_key"),
            ),
            self._format(
                "CREATE UNIQUE INDEX IF NOT EXISTS {index} ON {table} ((document->>'username'))",
                index=sql.Identifier(f"{self._name}_username_key"),
            ),
        ]
        with _storage_errors("ensure_schema"):
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    for statement in statements:
                        cur.execute(statement)
                conn.commit()

    def insert_one(self, document: dict[str, Any]) -> DocumentRecord:
        """Persist a new document under a freshly generated identifier."""
        account_id = uuid.uuid4()
        query = self._format(
            """
            INSERT INTO {table} (account_id, document)
            VALUES (%s, %s)
            RETURNING account_id, document
            """
        )
        with _storage_errors("insert_one"):
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(query, (account_id, Jsonb(document)))
                    row = cur.fetchone()
                conn.commit()
        return self._map_record(row)

    def find_one(self, login: LoginInput) -> DocumentRecord | None:
        """Return the active (non-banned) document matching ``login``."""
        where_sql, params = credential_filter(login)
        query = self._format(
            "SELECT account_id, document FROM {table} WHERE {where} LIMIT 1",
            where=sql.SQL(where_sql),
        )
        with _storage_errors("find_one"):
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(query, params)
                    row = cur.fetchone()
        return self._map_record(row) if row else None

    def find_by_id(self, account_id: str) -> DocumentRecord | None:
        """Return the document stored under ``account_id`` regardless of ban status."""
        key = _parse_id(account_id)
        if key is None:
            return None
        query = self._format("SELECT account_id, document FROM {table} WHERE account_id = %s")
        with _storage_errors("find_by_id"):
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(query, (key,))
                    row = cur.fetchone()
        return self._map_record(row) if row else None

    def find_all(self) -> list[DocumentRecord]:
        """Return every stored document. Not paginated."""
        query = self._format("SELECT account_id, document FROM {table}")
        with _storage_errors("find_all"):
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(query)
                    rows = cur.fetchall()
        return [self._map_record(row) for row in rows]

    def update_one(self, account_id: str, document: dict[str, Any]) -> DocumentRecord | None:
        """Replace the stored document; ``None`` when the identifier no longer exists."""
        key = _parse_id(account_id)
        if key is None:
            return None
        query = self._format(
            """
            UPDATE {table}
            SET document = %s
            WHERE account_id = %s
            RETURNING account_id, document
            """
        )
        with _storage_errors("update_one"):
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(query, (Jsonb(document), key))
                    row = cur.fetchone()
                conn.commit()
        return self._map_record(row) if row else None

    def delete_one(self, account_id: str) -> bool:
        """Delete the document; return whether a row was removed."""
        key = _parse_id(account_id)
        if key is None:
            return False
        query = self._format("DELETE FROM {table} WHERE account_id = %s")
        with _storage_errors("delete_one"):
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, (key,))
                    deleted = cur.rowcount
                conn.commit()
        return deleted > 0

    def _map_record(self, row: tuple) -> DocumentRecord:
        """Convert a raw database tuple into a ``DocumentRecord``."""
        return DocumentRecord(account_id=str(row[0]), document=row[1])
