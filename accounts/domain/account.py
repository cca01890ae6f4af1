from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Role(str, Enum):
    user = "user"
    admin = "admin"


@dataclass(frozen=True, slots=True)
class TwoFactorConfig:
    """Secondary-authentication settings attached to an account.

    The struct is always stored and replaced as a whole. ``secret`` is ``None``
    when no shared secret has been provisioned and ``backup_codes`` is empty
    when none were issued.
    """

    enabled: bool = False
    secret: str | None = None
    verified: bool = False
    backup_codes: frozenset[str] = field(default_factory=frozenset)

    def to_document(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "secret": self.secret,
            "verified": self.verified,
            "backup_codes": sorted(self.backup_codes),
        }

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "TwoFactorConfig":
        return cls(
            enabled=bool(document.get("enabled", False)),
            secret=document.get("secret"),
            verified=bool(document.get("verified", False)),
            backup_codes=frozenset(document.get("backup_codes") or ()),
        )


@dataclass(slots=True)
class Account:
    """Aggregate root for a registered user."""

    account_id: str
    email: str
    username: str
    password_hash: str
    created_at: int
    updated_at: int
    role: Role = Role.user
    confirmed: bool = False
    banned: bool | None = None
    two_factor: TwoFactorConfig | None = None

    def to_document(self) -> dict[str, Any]:
        """Return the JSON document persisted for this account (identifier excluded)."""
        return {
            "email": self.email,
            "username": self.username,
            "password_hash": self.password_hash,
            "role": self.role.value,
            "confirmed": self.confirmed,
            "banned": self.banned,
            "two_factor": self.two_factor.to_document() if self.two_factor else None,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_document(cls, account_id: str, document: dict[str, Any]) -> "Account":
        """Rebuild the aggregate from a stored document."""
        two_factor = document.get("two_factor")
        return cls(
            account_id=account_id,
            email=document["email"],
            username=document["username"],
            password_hash=document["password_hash"],
            role=Role(document.get("role") or Role.user.value),
            confirmed=bool(document.get("confirmed", False)),
            banned=document.get("banned"),
            two_factor=TwoFactorConfig.from_document(two_factor) if two_factor else None,
            created_at=int(document["created_at"]),
            updated_at=int(document["updated_at"]),
        )
