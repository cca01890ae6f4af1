"""Error kinds surfaced by the account store and service."""

from __future__ import annotations


class AccountError(Exception):
    """Base class for account lifecycle failures."""


class ValidationError(AccountError):
    """Malformed input or a violated uniqueness constraint."""


class NotFoundError(AccountError):
    """No account matches the supplied identifier or credentials."""


class StorageError(AccountError):
    """The underlying storage operation failed; the driver error is chained as ``__cause__``."""
