from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, HTTPException

from speech_auth.api.cookies import CookiePolicy
from speech_auth.application.use_cases.auth_gateway import AuthGateway
from speech_auth.application.use_cases.current_user import (
    GetCurrentUserUseCase,
    UpdateCurrentUserUseCase,
)
from speech_auth.application.use_cases.refresh_tokens import RefreshTokensUseCase
from speech_auth.application.use_cases.resolve_identity import IdentityResolutionService
from speech_auth.application.use_cases.sign_in_oauth import SignInWithOAuthUseCase
from speech_auth.application.use_cases.sign_out import SignOutUseCase
from speech_auth.application.use_cases.token_lifecycle import TokenLifecycleService
from speech_auth.domain.entities.user import OAuthProvider
from speech_auth.domain.services.durations import (
    DEFAULT_ACCESS_TTL,
    DEFAULT_REFRESH_TTL,
    parse_duration,
)
from speech_auth.infrastructure.clients.apple_oidc_client import AppleOidcClient
from speech_auth.infrastructure.clients.google_oidc_client import GoogleOidcClient
from speech_auth.infrastructure.clients.oauth_verifier import OAuthVerifier
from speech_auth.infrastructure.db.engine import get_engine
from speech_auth.infrastructure.db.repositories.accounts_repository import SqlAccountsRepository
from speech_auth.infrastructure.db.repositories.session_repository import SqlSessionRepository
from speech_auth.infrastructure.security.token_service import JwtTokenCodec
from speech_auth.shared.config import get_settings


def _get_db_engine():
    settings = get_settings()
    if not settings.postgres_dsn:
        raise HTTPException(status_code=500, detail="POSTGRES_DSN is required.")
    return get_engine(settings.postgres_dsn)


def _get_accounts_repository() -> SqlAccountsRepository:
    return SqlAccountsRepository(_get_db_engine())


def _get_session_repository() -> SqlSessionRepository:
    return SqlSessionRepository(_get_db_engine())


@lru_cache(maxsize=1)
def _get_token_codec() -> JwtTokenCodec:
    return JwtTokenCodec()


@lru_cache(maxsize=1)
def _get_oauth_verifier() -> OAuthVerifier:
    settings = get_settings()
    return OAuthVerifier(
        verifiers={
            OAuthProvider.GOOGLE: GoogleOidcClient(client_ids=settings.google_client_ids),
            OAuthProvider.APPLE: AppleOidcClient(client_id=settings.apple_client_id),
        }
    )


@lru_cache(maxsize=1)
def get_cookie_policy() -> CookiePolicy:
    return CookiePolicy.from_settings(get_settings())


@lru_cache(maxsize=1)
def _get_token_lifecycle_service() -> TokenLifecycleService:
    settings = get_settings()
    return TokenLifecycleService(
        token_codec=_get_token_codec(),
        session_port=_get_session_repository(),
        access_secret=settings.jwt_secret,
        refresh_secret=settings.jwt_refresh_secret,
        access_ttl=parse_duration(settings.jwt_access_token_expiry, default=DEFAULT_ACCESS_TTL),
        refresh_ttl=parse_duration(settings.jwt_refresh_token_expiry, default=DEFAULT_REFRESH_TTL),
    )


def get_token_lifecycle_service() -> TokenLifecycleService:
    settings = get_settings()
    if not settings.jwt_secret:
        raise HTTPException(status_code=500, detail="JWT_SECRET is required.")
    if not settings.jwt_refresh_secret:
        raise HTTPException(status_code=500, detail="JWT_REFRESH_SECRET is required.")
    return _get_token_lifecycle_service()


def get_auth_gateway(
    token_lifecycle: TokenLifecycleService = Depends(get_token_lifecycle_service),
) -> AuthGateway:
    return AuthGateway(
        token_lifecycle=token_lifecycle,
        token_codec=_get_token_codec(),
        auth_port=_get_accounts_repository(),
    )


def get_sign_in_with_oauth_use_case(
    token_lifecycle: TokenLifecycleService = Depends(get_token_lifecycle_service),
) -> SignInWithOAuthUseCase:
    settings = get_settings()
    return SignInWithOAuthUseCase(
        oauth_verifier=_get_oauth_verifier(),
        identity_resolution=IdentityResolutionService(
            auth_port=_get_accounts_repository(),
            default_language=settings.default_language,
        ),
        token_lifecycle=token_lifecycle,
    )


def get_refresh_tokens_use_case(
    token_lifecycle: TokenLifecycleService = Depends(get_token_lifecycle_service),
) -> RefreshTokensUseCase:
    return RefreshTokensUseCase(
        token_lifecycle=token_lifecycle,
        auth_port=_get_accounts_repository(),
    )


def get_sign_out_use_case(
    token_lifecycle: TokenLifecycleService = Depends(get_token_lifecycle_service),
) -> SignOutUseCase:
    return SignOutUseCase(token_lifecycle=token_lifecycle)


def get_get_current_user_use_case() -> GetCurrentUserUseCase:
    return GetCurrentUserUseCase(auth_port=_get_accounts_repository())


def get_update_current_user_use_case() -> UpdateCurrentUserUseCase:
    return UpdateCurrentUserUseCase(auth_port=_get_accounts_repository())
