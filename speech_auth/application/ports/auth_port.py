from __future__ import annotations

from datetime import datetime
from typing import Callable, Protocol, TypeVar

from speech_auth.domain.entities.user import OAuthAccount, OAuthProvider, User, UserRole


TAuthResult = TypeVar("TAuthResult")


class AuthPort(Protocol):
    def execute_in_transaction(self, fn: Callable[[AuthPort], TAuthResult]) -> TAuthResult:
        ...

    def get_user_by_id(self, *, user_id: str) -> User | None:
        ...

    def get_user_by_email(self, *, email: str) -> User | None:
        ...

    def create_user(
        self,
        *,
        user_id: str,
        email: str,
        role: UserRole,
        first_name: str | None,
        last_name: str | None,
        avatar: str | None,
        language: str | None,
        created_at: datetime,
    ) -> User:
        ...

    def update_user_profile(
        self,
        *,
        user_id: str,
        first_name: str | None,
        last_name: str | None,
        avatar: str | None,
        language: str | None,
        updated_at: datetime,
    ) -> User:
        ...

    def get_oauth_account(self, *, provider: OAuthProvider, provider_id: str) -> OAuthAccount | None:
        ...

    def create_oauth_account(
        self,
        *,
        account_id: str,
        user_id: str,
        provider: OAuthProvider,
        provider_id: str,
        email: str | None,
        created_at: datetime,
    ) -> OAuthAccount:
        ...
