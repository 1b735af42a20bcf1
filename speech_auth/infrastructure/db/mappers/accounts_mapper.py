from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from speech_auth.domain.entities.user import (
    AuthSession,
    OAuthAccount,
    OAuthProvider,
    SubscriptionTier,
    User,
    UserRole,
)


def _as_str(value: Any) -> str:
    return str(value)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def map_row_to_user(row: Mapping[str, Any]) -> User:
    return User(
        id=_as_str(row["id"]),
        email=row["email"],
        role=UserRole(row["role"]),
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        avatar=row.get("avatar"),
        language=row.get("language"),
        subscription_tier=SubscriptionTier(row.get("subscription_tier") or SubscriptionTier.FREE.value),
        monthly_characters_used=int(row.get("monthly_characters_used") or 0),
        last_reset_date=_as_utc(row.get("last_reset_date")),
        trial_used=bool(row.get("trial_used")),
        created_at=_as_utc(row["created_at"]),
        updated_at=_as_utc(row["updated_at"]),
    )


def map_row_to_oauth_account(row: Mapping[str, Any]) -> OAuthAccount:
    return OAuthAccount(
        id=_as_str(row["id"]),
        user_id=_as_str(row["user_id"]),
        provider=OAuthProvider(row["provider"]),
        provider_id=row["provider_id"],
        email=row.get("email"),
        created_at=_as_utc(row["created_at"]),
    )


def map_row_to_auth_session(row: Mapping[str, Any], *, user: User | None = None) -> AuthSession:
    return AuthSession(
        id=_as_str(row["id"]),
        user_id=_as_str(row["user_id"]),
        token_hash=row["token_hash"],
        refresh_token_hash=row["refresh_token_hash"],
        expires_at=_as_utc(row["expires_at"]),
        refresh_expires_at=_as_utc(row["refresh_expires_at"]),
        user_agent=row.get("user_agent"),
        ip_address=row.get("ip_address"),
        created_at=_as_utc(row["created_at"]),
        last_used_at=_as_utc(row["last_used_at"]),
        user=user,
    )
