from __future__ import annotations

from speech_auth.application.dto.auth import OAuthIdentityInfo
from speech_auth.application.ports.oauth_port import IdTokenVerifierPort, OAuthVerifierPort
from speech_auth.domain.entities.user import OAuthProvider
from speech_auth.domain.exceptions import AuthError


class OAuthVerifier(OAuthVerifierPort):
    def __init__(self, *, verifiers: dict[OAuthProvider, IdTokenVerifierPort]):
        self._verifiers = dict(verifiers)

    def verify_oauth_token(self, *, provider: OAuthProvider, id_token: str) -> OAuthIdentityInfo:
        verifier = self._verifiers.get(provider)
        if verifier is None:
            raise AuthError.unauthorized(
                "Unsupported OAuth provider",
                reason="The provided OAuth provider is not supported",
            )
        return verifier.verify_id_token(id_token=id_token)
