from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _csv(name: str, default: str = "") -> tuple[str, ...]:
    value = _env(name, default) or ""
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    node_env: str
    postgres_dsn: str
    jwt_secret: str
    jwt_refresh_secret: str
    jwt_access_token_expiry: str
    jwt_refresh_token_expiry: str
    google_client_id_web: str
    google_client_id_ios: str
    google_client_id_android: str
    apple_client_id: str
    cookie_domain: str
    default_language: str
    cors_allow_origins: tuple[str, ...]
    log_level: str
    log_contexts_allow: tuple[str, ...]
    log_contexts_deny: tuple[str, ...]

    @property
    def is_production(self) -> bool:
        return self.node_env == "production"

    @property
    def google_client_ids(self) -> tuple[str, ...]:
        ids = (self.google_client_id_web, self.google_client_id_ios, self.google_client_id_android)
        return tuple(client_id for client_id in ids if client_id)


def get_settings() -> Settings:
    return Settings(
        node_env=_env("NODE_ENV", "development"),
        postgres_dsn=_env("POSTGRES_DSN", ""),
        jwt_secret=_env("JWT_SECRET", ""),
        jwt_refresh_secret=_env("JWT_REFRESH_SECRET", ""),
        jwt_access_token_expiry=_env("JWT_ACCESS_TOKEN_EXPIRY", "15m"),
        jwt_refresh_token_expiry=_env("JWT_REFRESH_TOKEN_EXPIRY", "7d"),
        google_client_id_web=_env("OAUTH_GOOGLE_CLIENT_ID_WEB", ""),
        google_client_id_ios=_env("OAUTH_GOOGLE_CLIENT_ID_IOS", ""),
        google_client_id_android=_env("OAUTH_GOOGLE_CLIENT_ID_ANDROID", ""),
        apple_client_id=_env("OAUTH_APPLE_CLIENT_ID", ""),
        cookie_domain=_env("COOKIE_DOMAIN", ""),
        default_language=_env("DEFAULT_LANGUAGE", "uk"),
        cors_allow_origins=_csv(
            "CORS_ALLOW_ORIGINS",
            "http://localhost:8081,http://localhost:19006,http://localhost:3000",
        ),
        log_level=_env("LOG_LEVEL", "INFO"),
        log_contexts_allow=_csv("LOG_CONTEXTS_ALLOW"),
        log_contexts_deny=_csv("LOG_CONTEXTS_DENY"),
    )
