from __future__ import annotations

import logging

from speech_auth.application.dto.auth import AuthResultOutput, OAuthSignInInput
from speech_auth.application.ports.oauth_port import OAuthVerifierPort
from speech_auth.application.use_cases.resolve_identity import IdentityResolutionService
from speech_auth.application.use_cases.token_lifecycle import TokenLifecycleService
from speech_auth.domain.exceptions import AuthError


class SignInWithOAuthUseCase:
    def __init__(
        self,
        *,
        oauth_verifier: OAuthVerifierPort,
        identity_resolution: IdentityResolutionService,
        token_lifecycle: TokenLifecycleService,
        logger: logging.Logger | None = None,
    ):
        self._oauth_verifier = oauth_verifier
        self._identity_resolution = identity_resolution
        self._token_lifecycle = token_lifecycle
        self._logger = logger or logging.getLogger(__name__)

    def execute(self, command: OAuthSignInInput) -> AuthResultOutput:
        try:
            identity = self._oauth_verifier.verify_oauth_token(
                provider=command.provider,
                id_token=command.id_token,
            )
            user = self._identity_resolution.resolve(
                provider=command.provider,
                identity=identity,
                preferred_language=command.language,
            )
            tokens = self._token_lifecycle.issue(
                user_id=user.id,
                email=user.email,
                role=user.role,
                user_agent=command.user_agent,
                ip_address=command.ip,
            )
        except AuthError:
            raise
        except Exception as exc:
            self._logger.error(
                "Error in OAuth sign-in for provider %s: %s",
                command.provider.value,
                exc,
                exc_info=True,
            )
            raise AuthError.internal(
                "Failed to sign in with OAuth",
                operation="sign_in_oauth",
                provider=command.provider.value,
            ) from exc

        return AuthResultOutput(user=user, tokens=tokens)
