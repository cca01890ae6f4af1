"""Account DTOs that are safe to hand to callers and event consumers."""

from __future__ import annotations

from pydantic import BaseModel

from ..domain.account import Account, Role


class TwoFactorStatus(BaseModel):
    enabled: bool
    verified: bool


class PublicAccount(BaseModel):
    """Account view without the password hash or two-factor secrets."""

    account_id: str
    email: str
    username: str
    role: Role
    confirmed: bool
    banned: bool | None = None
    two_factor: TwoFactorStatus | None = None
    created_at: int
    updated_at: int

    @classmethod
    def from_domain(cls, account: Account) -> "PublicAccount":
        """Build the public view from the domain aggregate."""
        two_factor = None
        if account.two_factor is not None:
            two_factor = TwoFactorStatus(
                enabled=account.two_factor.enabled,
                verified=account.two_factor.verified,
            )
        return cls(
            account_id=account.account_id,
            email=account.email,
            username=account.username,
            role=account.role,
            confirmed=account.confirmed,
            banned=account.banned,
            two_factor=two_factor,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )
