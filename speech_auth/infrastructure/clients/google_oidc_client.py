from __future__ import annotations

import logging

from google.auth.transport import requests
from google.oauth2 import id_token

from speech_auth.application.dto.auth import OAuthIdentityInfo
from speech_auth.application.ports.oauth_port import IdTokenVerifierPort
from speech_auth.domain.exceptions import AuthError
from speech_auth.shared.log_config import sanitize_email


logger = logging.getLogger(__name__)


class GoogleOidcClient(IdTokenVerifierPort):
    """Verifies Google ID tokens issued to any of the registered client ids (web, iOS, Android)."""

    def __init__(self, *, client_ids: tuple[str, ...]):
        self._client_ids = list(client_ids)

    def verify_id_token(self, *, id_token: str) -> OAuthIdentityInfo:
        if not self._client_ids:
            raise AuthError.unauthorized(
                "Google OAuth not configured",
                reason="Google OAuth is not properly configured on the server",
            )
        try:
            payload = id_token_verify(token=id_token, audience=self._client_ids)
        except Exception as exc:
            logger.warning("Google id_token rejected: %s", exc)
            raise AuthError.token_invalid("Invalid Google id_token") from exc

        return map_google_payload(payload)


def map_google_payload(payload: dict) -> OAuthIdentityInfo:
    subject = payload.get("sub")
    if not subject:
        raise AuthError.token_invalid("Google id_token missing required claims")

    info = OAuthIdentityInfo(
        provider_id=str(subject),
        email=str(payload.get("email") or ""),
        first_name=_optional_str(payload.get("given_name")),
        last_name=_optional_str(payload.get("family_name")),
        avatar=_optional_str(payload.get("picture")),
    )
    logger.info(
        "Google token verified for %s (audience: %s)",
        sanitize_email(info.email),
        payload.get("aud"),
    )
    return info


def _optional_str(value) -> str | None:
    return value if isinstance(value, str) and value else None


def id_token_verify(*, token: str, audience: list[str]) -> dict:
    request = requests.Request()
    return id_token.verify_oauth2_token(token, request, audience)
