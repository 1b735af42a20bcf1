from __future__ import annotations

from datetime import timedelta
from typing import Protocol

from speech_auth.application.dto.auth import TokenClaims


class TokenCodecPort(Protocol):
    def sign(self, *, claims: TokenClaims, secret: str, ttl: timedelta) -> str:
        ...

    def decode(self, *, token: str) -> TokenClaims | None:
        ...

    def verify(self, *, token: str, secret: str) -> TokenClaims:
        ...

    def hash(self, *, token: str) -> str:
        ...
