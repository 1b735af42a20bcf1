from __future__ import annotations

from speech_auth.application.dto.auth import AuthResultOutput, RefreshTokensInput
from speech_auth.application.ports.auth_port import AuthPort
from speech_auth.application.use_cases.token_lifecycle import TokenLifecycleService
from speech_auth.domain.exceptions import AuthError


class RefreshTokensUseCase:
    def __init__(self, *, token_lifecycle: TokenLifecycleService, auth_port: AuthPort):
        self._token_lifecycle = token_lifecycle
        self._auth_port = auth_port

    def execute(self, command: RefreshTokensInput) -> AuthResultOutput:
        token = command.refresh_token.strip()
        if not token:
            raise AuthError.unauthorized("Missing refresh token")

        tokens = self._token_lifecycle.rotate(
            refresh_token=token,
            user_agent=command.user_agent,
            ip_address=command.ip,
        )
        user = self._auth_port.get_user_by_id(user_id=tokens.user_id)
        if user is None:
            self._token_lifecycle.revoke(access_token=tokens.access_token)
            raise AuthError.unauthorized("User not found for refresh session")
        return AuthResultOutput(user=user, tokens=tokens)
