"""Utilities for hashing and verifying account passwords."""

from __future__ import annotations

import bcrypt

from ..domain.errors import ValidationError

# bcrypt only consumes the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72
MIN_WORK_FACTOR = 4
MAX_WORK_FACTOR = 31


def check_work_factor(work_factor: int) -> int:
    """Return ``work_factor`` when bcrypt accepts it, else raise ``ValueError``."""
    if not MIN_WORK_FACTOR <= work_factor <= MAX_WORK_FACTOR:
        raise ValueError(
            f"bcrypt work factor must be between {MIN_WORK_FACTOR} and {MAX_WORK_FACTOR}, got {work_factor}"
        )
    return work_factor


def _encode(password: str) -> bytes:
    if not password:
        raise ValidationError("password is required")
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return encoded


def hash_password(password: str, work_factor: int = 10) -> str:
    """Return a salted bcrypt hash of ``password``.

    Parameters
    ----------
    password:
        Raw password supplied by the caller. It is never stored or logged.
    work_factor:
        bcrypt cost (log2 of the number of rounds), between 4 and 31.

    Returns
    -------
    str
        The modular-crypt encoded hash, e.g. ``$2b$10$...``.

    Raises
    ------
    ValidationError
        When the password is empty or longer than bcrypt accepts.
    ValueError
        When ``work_factor`` is out of range.
    """

    salt = bcrypt.gensalt(rounds=check_work_factor(work_factor))
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Return ``True`` when ``password`` matches the stored bcrypt hash.

    Unusable passwords and malformed hashes never match.
    """
    try:
        encoded = _encode(password)
    except ValidationError:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        return False
