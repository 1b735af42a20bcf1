from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from speech_auth.domain.entities.user import OAuthProvider, User, UserRole
from speech_auth.domain.exceptions import TokenType


WEB_CLIENT_TYPES = frozenset({"nextjs-admin", "expo-web"})


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str
    role: UserRole
    type: TokenType


@dataclass(frozen=True)
class IssuedTokens:
    user_id: str
    access_token: str
    refresh_token: str
    access_token_expiry: datetime
    refresh_token_expiry: datetime


@dataclass(frozen=True)
class OAuthIdentityInfo:
    provider_id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    avatar: str | None = None


@dataclass(frozen=True)
class OAuthSignInInput:
    provider: OAuthProvider
    id_token: str
    language: str | None
    user_agent: str | None
    ip: str | None


@dataclass(frozen=True)
class RefreshTokensInput:
    refresh_token: str
    user_agent: str | None
    ip: str | None


@dataclass(frozen=True)
class AuthResultOutput:
    user: User
    tokens: IssuedTokens


@dataclass(frozen=True)
class RoutePolicy:
    """Per-route guard configuration.

    ``is_public`` routes never fail authentication. ``allow_anonymous`` routes
    (sign-out, refresh) still try every credential but fall back to an
    unauthenticated request instead of failing with ``Unauthorized``.
    """

    is_public: bool = False
    allow_anonymous: bool = False


@dataclass(frozen=True)
class RequestCredentials:
    access_token: str | None
    refresh_token: str | None
    client_type: str | None = None
    user_agent: str | None = None
    ip: str | None = None

    @property
    def is_web_client(self) -> bool:
        return self.client_type in WEB_CLIENT_TYPES


@dataclass(frozen=True)
class AuthContext:
    """Outcome of the request guard.

    ``user`` may be set while ``is_authenticated`` is False: on public routes it
    comes from an unverified token and is only an identity hint.
    """

    user: User | None
    is_authenticated: bool
    rotated_tokens: IssuedTokens | None = None
    set_cookies: bool = False


@dataclass(frozen=True)
class UpdateProfileInput:
    first_name: str | None = None
    last_name: str | None = None
    avatar: str | None = None
    language: str | None = None
