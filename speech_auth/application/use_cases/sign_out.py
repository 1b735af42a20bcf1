from __future__ import annotations

from speech_auth.application.use_cases.token_lifecycle import TokenLifecycleService
from speech_auth.domain.entities.user import User
from speech_auth.domain.exceptions import AuthError


class SignOutUseCase:
    def __init__(self, *, token_lifecycle: TokenLifecycleService):
        self._token_lifecycle = token_lifecycle

    def execute(self, *, user: User | None) -> int:
        if user is None:
            raise AuthError.unauthorized("User not authenticated")
        return self._token_lifecycle.revoke_all(user_id=user.id)
