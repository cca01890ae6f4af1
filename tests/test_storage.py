"""Tests for the Postgres document collection that need no database."""

from __future__ import annotations

import psycopg
import pytest
from psycopg.errors import UniqueViolation

from accounts.domain.contracts import LoginInput
from accounts.domain.errors import StorageError, ValidationError
from accounts.storage import DocumentCollection, credential_filter


class ExplodingPool:
    """Connection pool stand-in whose every checkout fails with ``error``."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.checkouts = 0

    def connection(self):
        self.checkouts += 1
        if self.error is None:
            raise AssertionError("pool should not be touched")
        raise self.error


def test_credential_filter_always_excludes_banned_accounts():
    where_sql, params = credential_filter(LoginInput(email="a@x.com"))

    assert where_sql == (
        "COALESCE((document->>'banned')::boolean, false) = false AND document->>'email' = %s"
    )
    assert params == ["a@x.com"]


def test_credential_filter_ands_email_and_username():
    where_sql, params = credential_filter(LoginInput(email="a@x.com", username="a"))

    assert where_sql.endswith("document->>'email' = %s AND document->>'username' = %s")
    assert params == ["a@x.com", "a"]


def test_collection_rejects_unsafe_names():
    with pytest.raises(ValueError):
        DocumentCollection(ExplodingPool(), "users; DROP TABLE users")  # type: ignore[arg-type]


@pytest.mark.parametrize("operation", ["find_by_id", "delete_one"])
def test_malformed_identifiers_resolve_to_absent(operation):
    pool = ExplodingPool()
    collection = DocumentCollection(pool)  # type: ignore[arg-type]

    result = getattr(collection, operation)("not-a-uuid")

    assert not result
    assert pool.checkouts == 0


def test_driver_failures_become_storage_errors():
    cause = psycopg.OperationalError("server closed the connection")
    collection = DocumentCollection(ExplodingPool(cause))  # type: ignore[arg-type]

    with pytest.raises(StorageError) as excinfo:
        collection.find_all()

    assert excinfo.value.__cause__ is cause


def test_unique_violations_become_validation_errors():
    collection = DocumentCollection(ExplodingPool(UniqueViolation("duplicate key")))  # type: ignore[arg-type]

    with pytest.raises(ValidationError, match="already registered"):
        collection.insert_one({"email": "a@x.com", "username": "a"})
