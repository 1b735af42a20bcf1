from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from speech_auth.application.use_cases.token_lifecycle import TokenLifecycleService
from speech_auth.domain.entities.user import (
    AuthSession,
    OAuthAccount,
    SubscriptionTier,
    User,
    UserRole,
)
from speech_auth.infrastructure.security.token_service import JwtTokenCodec


ACCESS_SECRET = "access-secret-for-tests-0123456789"
REFRESH_SECRET = "refresh-secret-for-tests-0123456789"
ALICE_ID = "0b8f6c0e-2f4d-4a7b-8d3e-1c5a9e7f2b10"
BOB_ID = "7d2e4a91-6c3b-4f58-9a0e-5b1c8d3f6e22"


def _uuid_column(value: str) -> str:
    # Mirrors Postgres rejecting a non-UUID literal for a uuid column.
    UUID(value)
    return value


class Clock:
    def __init__(self, now: datetime | None = None):
        self.now = now or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryDatabase:
    def __init__(self):
        self.users: dict[str, User] = {}
        self.oauth_accounts: dict[str, OAuthAccount] = {}
        self.sessions: dict[str, AuthSession] = {}

    def snapshot(self):
        return dict(self.users), dict(self.oauth_accounts), dict(self.sessions)

    def restore(self, snapshot) -> None:
        self.users, self.oauth_accounts, self.sessions = (dict(part) for part in snapshot)

    def run_in_transaction(self, port, fn):
        snapshot = self.snapshot()
        try:
            return fn(port)
        except Exception:
            self.restore(snapshot)
            raise


class FakeAuthPort:
    def __init__(self, db: InMemoryDatabase):
        self.db = db
        self.profile_updates = 0

    def execute_in_transaction(self, fn):
        return self.db.run_in_transaction(self, fn)

    def get_user_by_id(self, *, user_id: str) -> User | None:
        return self.db.users.get(_uuid_column(user_id))

    def get_user_by_email(self, *, email: str) -> User | None:
        email_l = email.lower()
        for user in self.db.users.values():
            if user.email.lower() == email_l:
                return user
        return None

    def create_user(
        self,
        *,
        user_id: str,
        email: str,
        role: UserRole,
        first_name: str | None,
        last_name: str | None,
        avatar: str | None,
        language: str | None,
        created_at: datetime,
    ) -> User:
        if self.get_user_by_email(email=email) is not None:
            raise ValueError("duplicate email")
        user = User(
            id=user_id,
            email=email,
            role=role,
            first_name=first_name,
            last_name=last_name,
            avatar=avatar,
            language=language,
            subscription_tier=SubscriptionTier.FREE,
            monthly_characters_used=0,
            last_reset_date=created_at,
            trial_used=False,
            created_at=created_at,
            updated_at=created_at,
        )
        self.db.users[user.id] = user
        return user

    def update_user_profile(
        self,
        *,
        user_id: str,
        first_name: str | None,
        last_name: str | None,
        avatar: str | None,
        language: str | None,
        updated_at: datetime,
    ) -> User:
        user = replace(
            self.db.users[user_id],
            first_name=first_name,
            last_name=last_name,
            avatar=avatar,
            language=language,
            updated_at=updated_at,
        )
        self.db.users[user_id] = user
        self.profile_updates += 1
        return user

    def get_oauth_account(self, *, provider, provider_id: str) -> OAuthAccount | None:
        for account in self.db.oauth_accounts.values():
            if account.provider == provider and account.provider_id == provider_id:
                return account
        return None

    def create_oauth_account(
        self,
        *,
        account_id: str,
        user_id: str,
        provider,
        provider_id: str,
        email: str | None,
        created_at: datetime,
    ) -> OAuthAccount:
        if self.get_oauth_account(provider=provider, provider_id=provider_id) is not None:
            raise ValueError("duplicate oauth account")
        account = OAuthAccount(
            id=account_id,
            user_id=user_id,
            provider=provider,
            provider_id=provider_id,
            email=email,
            created_at=created_at,
        )
        self.db.oauth_accounts[account.id] = account
        return account


class FakeSessionPort:
    def __init__(self, db: InMemoryDatabase):
        self.db = db
        self.touched: list[str] = []

    def execute_in_transaction(self, fn):
        return self.db.run_in_transaction(self, fn)

    def create_session(
        self,
        *,
        session_id: str,
        user_id: str,
        token_hash: str,
        refresh_token_hash: str,
        expires_at: datetime,
        refresh_expires_at: datetime,
        user_agent: str | None,
        ip_address: str | None,
        created_at: datetime,
    ) -> AuthSession:
        for existing in self.db.sessions.values():
            if existing.token_hash == token_hash or existing.refresh_token_hash == refresh_token_hash:
                raise ValueError("duplicate session hash")
        session = AuthSession(
            id=session_id,
            user_id=user_id,
            token_hash=token_hash,
            refresh_token_hash=refresh_token_hash,
            expires_at=expires_at,
            refresh_expires_at=refresh_expires_at,
            user_agent=user_agent,
            ip_address=ip_address,
            created_at=created_at,
            last_used_at=created_at,
        )
        self.db.sessions[session.id] = session
        return session

    def find_by_access_hash(self, *, user_id: str, token_hash: str) -> AuthSession | None:
        _uuid_column(user_id)
        for session in self.db.sessions.values():
            if session.user_id == user_id and session.token_hash == token_hash:
                return session
        return None

    def find_by_refresh_hash(self, *, user_id: str, refresh_token_hash: str) -> AuthSession | None:
        _uuid_column(user_id)
        for session in self.db.sessions.values():
            if session.user_id == user_id and session.refresh_token_hash == refresh_token_hash:
                return replace(session, user=self.db.users.get(user_id))
        return None

    def touch_session(self, *, session_id: str, used_at: datetime) -> None:
        session = self.db.sessions.get(session_id)
        if session is not None:
            self.db.sessions[session_id] = replace(session, last_used_at=used_at)
            self.touched.append(session_id)

    def delete_session(self, *, session_id: str) -> int:
        return 1 if self.db.sessions.pop(session_id, None) is not None else 0

    def delete_by_access_hash(self, *, token_hash: str) -> int:
        ids = [s.id for s in self.db.sessions.values() if s.token_hash == token_hash]
        for session_id in ids:
            del self.db.sessions[session_id]
        return len(ids)

    def delete_all_for_user(self, *, user_id: str) -> int:
        ids = [s.id for s in self.db.sessions.values() if s.user_id == user_id]
        for session_id in ids:
            del self.db.sessions[session_id]
        return len(ids)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def db() -> InMemoryDatabase:
    return InMemoryDatabase()


@pytest.fixture
def auth_port(db) -> FakeAuthPort:
    return FakeAuthPort(db)


@pytest.fixture
def session_port(db) -> FakeSessionPort:
    return FakeSessionPort(db)


@pytest.fixture
def codec() -> JwtTokenCodec:
    return JwtTokenCodec()


@pytest.fixture
def lifecycle(codec, session_port, clock) -> TokenLifecycleService:
    return TokenLifecycleService(
        token_codec=codec,
        session_port=session_port,
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=7),
        now=clock,
    )


@pytest.fixture
def make_user(auth_port, clock):
    def _make(
        *,
        user_id: str = ALICE_ID,
        email: str = "alice@example.com",
        role: UserRole = UserRole.CUSTOMER,
        language: str | None = "en",
    ) -> User:
        return auth_port.create_user(
            user_id=user_id,
            email=email,
            role=role,
            first_name="Alice",
            last_name="Smith",
            avatar=None,
            language=language,
            created_at=clock(),
        )

    return _make
