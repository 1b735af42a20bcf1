from __future__ import annotations

import logging

import jwt

from speech_auth.application.dto.auth import OAuthIdentityInfo
from speech_auth.application.ports.oauth_port import IdTokenVerifierPort
from speech_auth.domain.exceptions import AuthError
from speech_auth.shared.log_config import sanitize_email


logger = logging.getLogger(__name__)

APPLE_ISSUER = "https://appleid.apple.com"
APPLE_JWKS_URL = "https://appleid.apple.com/auth/keys"


class AppleOidcClient(IdTokenVerifierPort):
    """Verifies Sign in with Apple ID tokens against Apple's published signing keys."""

    def __init__(self, *, client_id: str, jwks_client: jwt.PyJWKClient | None = None):
        self._client_id = client_id
        self._jwks_client = jwks_client or jwt.PyJWKClient(APPLE_JWKS_URL, cache_keys=True)

    def verify_id_token(self, *, id_token: str) -> OAuthIdentityInfo:
        if not self._client_id:
            raise AuthError.unauthorized(
                "Apple OAuth not configured",
                reason="Apple OAuth is not properly configured on the server",
            )
        try:
            signing_key = self._jwks_client.get_signing_key_from_jwt(id_token)
            payload = jwt.decode(
                id_token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self._client_id,
                issuer=APPLE_ISSUER,
            )
        except jwt.PyJWTError as exc:
            logger.warning("Apple id_token rejected: %s", exc)
            raise AuthError.token_invalid("Invalid Apple id_token") from exc

        return map_apple_payload(payload)


def map_apple_payload(payload: dict) -> OAuthIdentityInfo:
    subject = payload.get("sub")
    if not subject:
        raise AuthError.token_invalid("Apple id_token missing required claims")

    # Apple only sends the user's name to the client on first sign-in, never in the token.
    info = OAuthIdentityInfo(
        provider_id=str(subject),
        email=str(payload.get("email") or ""),
    )
    logger.info("Apple token verified for %s", sanitize_email(info.email))
    return info
