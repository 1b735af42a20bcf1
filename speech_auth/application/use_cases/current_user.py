from __future__ import annotations

from speech_auth.application.dto.auth import UpdateProfileInput
from speech_auth.application.ports.auth_port import AuthPort
from speech_auth.domain.entities.user import User
from speech_auth.domain.exceptions import AuthError

from .auth_common import utcnow


class GetCurrentUserUseCase:
    def __init__(self, *, auth_port: AuthPort):
        self._auth_port = auth_port

    def execute(self, *, user: User) -> User:
        fresh = self._auth_port.get_user_by_id(user_id=user.id)
        if fresh is None:
            raise AuthError.unauthorized("User not authenticated")
        return fresh


class UpdateCurrentUserUseCase:
    def __init__(self, *, auth_port: AuthPort):
        self._auth_port = auth_port

    def execute(self, *, user: User, command: UpdateProfileInput) -> User:
        language = command.language.strip().lower() if command.language is not None else None
        if language is not None and not language:
            raise AuthError.validation("Language must not be empty", field="language")

        return self._auth_port.update_user_profile(
            user_id=user.id,
            first_name=command.first_name if command.first_name is not None else user.first_name,
            last_name=command.last_name if command.last_name is not None else user.last_name,
            avatar=command.avatar if command.avatar is not None else user.avatar,
            language=language if language is not None else user.language,
            updated_at=utcnow(),
        )
