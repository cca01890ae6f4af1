"""Account service exposing the public account-lifecycle operations."""

from __future__ import annotations

from .account import Account, TwoFactorConfig
from .contracts import LoginInput, SignupInput
from ..repository import AccountStore
from ..schemas.account import PublicAccount


class AccountService:
    """Stable public contract over the account store.

    Arguments are forwarded unchanged and store errors propagate as raised,
    so the storage implementation can be swapped without touching callers.
    """

    def __init__(self, store: AccountStore) -> None:
        """Store the account store all operations delegate to."""
        self._store = store

    def create(self, signup: SignupInput) -> Account | PublicAccount:
        return self._store.insert(signup)

    def find_by_id(self, account_id: str) -> Account | PublicAccount:
        return self._store.find_by_id(account_id)

    def find(self, login: LoginInput) -> Account | PublicAccount:
        return self._store.find_by_credentials(login)

    def find_all(self) -> list[Account | PublicAccount]:
        return self._store.find_all()

    def update_two_factor_auth(self, account_id: str, config: TwoFactorConfig) -> Account | PublicAccount:
        return self._store.set_two_factor(account_id, config)

    def update_password(self, email: str, new_password: str) -> Account | PublicAccount:
        return self._store.update_password(email, new_password)

    def email_confirmation(self, account_id: str) -> Account | PublicAccount:
        return self._store.confirm_email(account_id)

    def delete(self, login: LoginInput) -> Account | PublicAccount:
        return self._store.remove(login)
