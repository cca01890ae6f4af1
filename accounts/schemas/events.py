"""Account lifecycle event contracts."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from .account import PublicAccount


class EventName(str, Enum):
    created = "account.created"
    password_updated = "account.passwordUpdated"
    confirmed = "account.confirmed"
    two_factor_updated = "account.twoFactorUpdated"
    deleted = "account.deleted"


class AccountEvent(BaseModel):
    name: EventName
    account: PublicAccount
    occurred_at: int
    version: str = "v1"
