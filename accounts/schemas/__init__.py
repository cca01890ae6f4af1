"""Shared schema exports."""

from .account import PublicAccount, TwoFactorStatus
from .events import AccountEvent, EventName

__all__ = [
    "PublicAccount",
    "TwoFactorStatus",
    "AccountEvent",
    "EventName",
]
