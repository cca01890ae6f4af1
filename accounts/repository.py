"""Account store: the single point of contact with the account collection."""

from __future__ import annotations

import logging
import time
from typing import Callable

from prometheus_client import Counter
from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .domain.account import Account, Role, TwoFactorConfig
from .domain.contracts import LoginInput, SignupInput
from .domain.errors import NotFoundError, ValidationError
from .events.bus import EventBus
from .schemas.account import PublicAccount
from .schemas.events import AccountEvent, EventName
from .security.passwords import check_work_factor, hash_password
from .storage import AccountCollection, DocumentRecord

logger = logging.getLogger(__name__)

ACCOUNT_EVENTS = Counter(
    "account_events_total",
    "Account lifecycle events published by the account store.",
    ["event"],
)

_EMAIL = TypeAdapter(EmailStr)


def _unix_now() -> int:
    return int(time.time())


class AccountStore:
    """Account persistence with password hashing and lifecycle events.

    Every read and mutation returns the public view by default; pass
    ``public_view=False`` to get the full ``Account`` aggregate, password hash
    included.
    """

    def __init__(
        self,
        collection: AccountCollection,
        events: EventBus,
        *,
        work_factor: int = 10,
        clock: Callable[[], int] = _unix_now,
    ) -> None:
        """Store the collection handle, event sink and hashing parameters."""
        check_work_factor(work_factor)
        self._collection = collection
        self._events = events
        self._work_factor = work_factor
        self._clock = clock

    def insert(self, signup: SignupInput, public_view: bool = True) -> Account | PublicAccount:
        """Register a new account with a hashed password and the default role."""
        self._validate_signup(signup)
        now = self._clock()
        account = Account(
            account_id="",
            email=signup.email,
            username=signup.username,
            password_hash=hash_password(signup.password, self._work_factor),
            role=Role.user,
            confirmed=False,
            created_at=now,
            updated_at=now,
        )
        record = self._collection.insert_one(account.to_document())
        account = self._to_domain(record)
        logger.info("account %s created", account.account_id)
        self._emit(EventName.created, account)
        return self._present(account, public_view)

    def find_by_credentials(self, login: LoginInput, public_view: bool = True) -> Account | PublicAccount:
        """Return the active account matching every supplied credential field."""
        if login.is_empty():
            raise ValidationError("email or username is required")
        record = self._collection.find_one(login)
        if record is None:
            raise NotFoundError("account not found")
        return self._present(self._to_domain(record), public_view)

    def find_by_id(self, account_id: str, public_view: bool = True) -> Account | PublicAccount:
        """Return the account stored under ``account_id``, banned or not."""
        return self._present(self._load(account_id), public_view)

    def find_all(self, public_view: bool = True) -> list[Account | PublicAccount]:
        """Return every stored account. Unpaginated; not meant for large collections."""
        return [self._present(self._to_domain(record), public_view) for record in self._collection.find_all()]

    def update_password(self, email: str, new_password: str, public_view: bool = True) -> Account | PublicAccount:
        """Replace the password hash of the active account registered under ``email``.

        The lookup matches on email only. Whether the caller knows the current
        password is checked upstream, not here.
        """
        account = self.find_by_credentials(LoginInput(email=email), public_view=False)
        account.password_hash = hash_password(new_password, self._work_factor)
        account = self._save(account)
        logger.info("account %s password updated", account.account_id)
        self._emit(EventName.password_updated, account)
        return self._present(account, public_view)

    def confirm_email(self, account_id: str, public_view: bool = True) -> Account | PublicAccount:
        """Mark the account's email as verified. Confirming twice is a no-op success."""
        account = self._load(account_id)
        account.confirmed = True
        account = self._save(account)
        logger.info("account %s email confirmed", account.account_id)
        self._emit(EventName.confirmed, account)
        return self._present(account, public_view)

    def set_two_factor(
        self, account_id: str, config: TwoFactorConfig, public_view: bool = True
    ) -> Account | PublicAccount:
        """Replace the account's two-factor settings with ``config`` as a whole."""
        account = self._load(account_id)
        account.two_factor = config
        account = self._save(account)
        logger.info("account %s two-factor settings replaced (enabled=%s)", account.account_id, config.enabled)
        self._emit(EventName.two_factor_updated, account)
        return self._present(account, public_view)

    def remove(self, login: LoginInput, public_view: bool = True) -> Account | PublicAccount:
        """Permanently delete the active account matching ``login`` and return its last state."""
        account = self.find_by_credentials(login, public_view=False)
        if not self._collection.delete_one(account.account_id):
            raise NotFoundError("account not found")
        logger.info("account %s deleted", account.account_id)
        self._emit(EventName.deleted, account)
        return self._present(account, public_view)

    def _validate_signup(self, signup: SignupInput) -> None:
        if not signup.email:
            raise ValidationError("email is required")
        if not signup.username or not signup.username.strip():
            raise ValidationError("username is required")
        if not signup.password:
            raise ValidationError("password is required")
        try:
            _EMAIL.validate_python(signup.email)
        except PydanticValidationError as exc:
            raise ValidationError("email is not a valid address") from exc

    def _load(self, account_id: str) -> Account:
        record = self._collection.find_by_id(account_id)
        if record is None:
            raise NotFoundError("account not found")
        return self._to_domain(record)

    def _save(self, account: Account) -> Account:
        account.updated_at = self._clock()
        record = self._collection.update_one(account.account_id, account.to_document())
        if record is None:
            # removed between the read and this write
            raise NotFoundError("account not found")
        return self._to_domain(record)

    def _emit(self, name: EventName, account: Account) -> None:
        event = AccountEvent(
            name=name,
            account=PublicAccount.from_domain(account),
            occurred_at=self._clock(),
        )
        try:
            ACCOUNT_EVENTS.labels(event=name.value).inc()
            self._events.publish(event)
        except Exception:
            # the write is already committed; the caller must still see success
            logger.exception("failed to publish %s for %s", name.value, account.account_id)

    @staticmethod
    def _to_domain(record: DocumentRecord) -> Account:
        return Account.from_document(record.account_id, record.document)

    @staticmethod
    def _present(account: Account, public_view: bool) -> Account | PublicAccount:
        return PublicAccount.from_domain(account) if public_view else account
