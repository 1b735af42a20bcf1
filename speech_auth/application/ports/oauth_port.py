from __future__ import annotations

from typing import Protocol

from speech_auth.application.dto.auth import OAuthIdentityInfo
from speech_auth.domain.entities.user import OAuthProvider


class OAuthVerifierPort(Protocol):
    def verify_oauth_token(self, *, provider: OAuthProvider, id_token: str) -> OAuthIdentityInfo:
        ...


class IdTokenVerifierPort(Protocol):
    def verify_id_token(self, *, id_token: str) -> OAuthIdentityInfo:
        ...
