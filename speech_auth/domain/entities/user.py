from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    CUSTOMER = "CUSTOMER"


class SubscriptionTier(str, Enum):
    FREE = "FREE"
    BASIC = "BASIC"
    PREMIUM = "PREMIUM"


class OAuthProvider(str, Enum):
    GOOGLE = "GOOGLE"
    APPLE = "APPLE"


@dataclass(frozen=True)
class User:
    id: str
    email: str
    role: UserRole
    first_name: str | None
    last_name: str | None
    avatar: str | None
    language: str | None
    subscription_tier: SubscriptionTier
    monthly_characters_used: int
    last_reset_date: datetime | None
    trial_used: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class OAuthAccount:
    id: str
    user_id: str
    provider: OAuthProvider
    provider_id: str
    email: str | None
    created_at: datetime


@dataclass(frozen=True)
class AuthSession:
    id: str
    user_id: str
    token_hash: str
    refresh_token_hash: str
    expires_at: datetime
    refresh_expires_at: datetime
    user_agent: str | None
    ip_address: str | None
    created_at: datetime
    last_used_at: datetime
    user: User | None = None

    def is_access_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def is_refresh_expired(self, now: datetime) -> bool:
        return self.refresh_expires_at <= now
