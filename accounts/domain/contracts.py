"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class SignupInput:
    """Raw registration inputs; ``password`` is hashed before anything is stored."""

    email: str
    username: str
    password: str

    def __repr__(self) -> str:
        return f"SignupInput(email={self.email!r}, username={self.username!r}, password='***')"


@dataclass(slots=True)
class LoginInput:
    """Credential lookup filter.

    Only ``email`` and ``username`` can be matched on. When both are given an
    account must match both.
    """

    email: str | None = None
    username: str | None = None

    def is_empty(self) -> bool:
        return not self.email and not self.username
