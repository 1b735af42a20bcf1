from __future__ import annotations

from datetime import datetime
from typing import Callable, Protocol, TypeVar

from speech_auth.domain.entities.user import AuthSession


TSessionResult = TypeVar("TSessionResult")


class SessionPort(Protocol):
    def execute_in_transaction(self, fn: Callable[[SessionPort], TSessionResult]) -> TSessionResult:
        ...

    def create_session(
        self,
        *,
        session_id: str,
        user_id: str,
        token_hash: str,
        refresh_token_hash: str,
        expires_at: datetime,
        refresh_expires_at: datetime,
        user_agent: str | None,
        ip_address: str | None,
        created_at: datetime,
    ) -> AuthSession:
        ...

    def find_by_access_hash(self, *, user_id: str, token_hash: str) -> AuthSession | None:
        ...

    def find_by_refresh_hash(self, *, user_id: str, refresh_token_hash: str) -> AuthSession | None:
        ...

    def touch_session(self, *, session_id: str, used_at: datetime) -> None:
        ...

    def delete_session(self, *, session_id: str) -> int:
        ...

    def delete_by_access_hash(self, *, token_hash: str) -> int:
        ...

    def delete_all_for_user(self, *, user_id: str) -> int:
        ...
