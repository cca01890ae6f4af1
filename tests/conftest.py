from __future__ import annotations

import copy
import uuid
from typing import Any

import pytest

from accounts.domain.contracts import LoginInput
from accounts.domain.errors import ValidationError
from accounts.domain.service import AccountService
from accounts.repository import AccountStore
from accounts.schemas.events import AccountEvent
from accounts.storage import DocumentRecord


class FakeCollection:
    """In-memory collection mimicking the Postgres document table."""

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}

    def insert_one(self, document: dict[str, Any]) -> DocumentRecord:
        for field in ("email", "username"):
            if any(stored.get(field) == document.get(field) for stored in self.documents.values()):
                raise ValidationError(f"{field} already registered")
        account_id = str(uuid.uuid4())
        self.documents[account_id] = copy.deepcopy(document)
        return self._record(account_id)

    def find_one(self, login: LoginInput) -> DocumentRecord | None:
        for account_id, document in self.documents.items():
            if document.get("banned") not in (False, None):
                continue
            if login.email and document.get("email") != login.email:
                continue
            if login.username and document.get("username") != login.username:
                continue
            return self._record(account_id)
        return None

    def find_by_id(self, account_id: str) -> DocumentRecord | None:
        if account_id not in self.documents:
            return None
        return self._record(account_id)

    def find_all(self) -> list[DocumentRecord]:
        return [self._record(account_id) for account_id in self.documents]

    def update_one(self, account_id: str, document: dict[str, Any]) -> DocumentRecord | None:
        if account_id not in self.documents:
            return None
        self.documents[account_id] = copy.deepcopy(document)
        return self._record(account_id)

    def delete_one(self, account_id: str) -> bool:
        return self.documents.pop(account_id, None) is not None

    def ban(self, account_id: str) -> None:
        self.documents[account_id]["banned"] = True

    def _record(self, account_id: str) -> DocumentRecord:
        return DocumentRecord(account_id=account_id, document=copy.deepcopy(self.documents[account_id]))


class RecordingEventBus:
    def __init__(self) -> None:
        self.events: list[AccountEvent] = []

    def publish(self, event: AccountEvent) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        return [event.name.value for event in self.events]


class FakeClock:
    def __init__(self, start: int = 1_700_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int = 1) -> None:
        self.now += seconds


@pytest.fixture
def collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def event_bus() -> RecordingEventBus:
    return RecordingEventBus()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(collection, event_bus, clock) -> AccountStore:
    """Account store over in-memory collaborators with the cheapest bcrypt cost."""
    return AccountStore(collection, event_bus, work_factor=4, clock=clock)


@pytest.fixture
def service(store) -> AccountService:
    return AccountService(store)
