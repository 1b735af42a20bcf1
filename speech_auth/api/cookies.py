from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from fastapi import Response

from speech_auth.domain.services.durations import (
    DEFAULT_ACCESS_TTL,
    DEFAULT_REFRESH_TTL,
    parse_duration,
)
from speech_auth.shared.config import Settings


ACCESS_COOKIE_NAME = "accessToken"
REFRESH_COOKIE_NAME = "refreshToken"


@dataclass(frozen=True)
class CookiePolicy:
    is_production: bool
    domain: str | None
    access_ttl: timedelta
    refresh_ttl: timedelta

    @classmethod
    def from_settings(cls, settings: Settings) -> CookiePolicy:
        access_ttl = parse_duration(settings.jwt_access_token_expiry, default=DEFAULT_ACCESS_TTL)
        refresh_ttl = parse_duration(settings.jwt_refresh_token_expiry, default=DEFAULT_REFRESH_TTL)
        return cls(
            is_production=settings.is_production,
            domain=settings.cookie_domain or None,
            access_ttl=min(access_ttl, refresh_ttl),
            refresh_ttl=refresh_ttl,
        )

    @property
    def samesite(self) -> str:
        return "none" if self.is_production else "lax"

    def set_auth_cookies(self, response: Response, *, access_token: str, refresh_token: str) -> None:
        self._set(response, ACCESS_COOKIE_NAME, access_token, int(self.access_ttl.total_seconds()))
        self._set(response, REFRESH_COOKIE_NAME, refresh_token, int(self.refresh_ttl.total_seconds()))

    def clear_auth_cookies(self, response: Response) -> None:
        self._set(response, ACCESS_COOKIE_NAME, "", 0)
        self._set(response, REFRESH_COOKIE_NAME, "", 0)

    def _set(self, response: Response, key: str, value: str, max_age: int) -> None:
        response.set_cookie(
            key=key,
            value=value,
            max_age=max_age,
            path="/",
            domain=self.domain if self.is_production else None,
            secure=self.is_production,
            httponly=True,
            samesite=self.samesite,
        )
