from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from speech_auth.application.dto.auth import TokenClaims
from speech_auth.application.use_cases.token_lifecycle import TokenLifecycleService
from speech_auth.domain.entities.user import UserRole
from speech_auth.domain.exceptions import AuthError, AuthErrorKind
from speech_auth.infrastructure.security.token_service import JwtTokenCodec

from conftest import ACCESS_SECRET, ALICE_ID, BOB_ID, REFRESH_SECRET


def _issue(lifecycle, user):
    return lifecycle.issue(user_id=user.id, email=user.email, role=user.role, user_agent="pytest", ip_address="127.0.0.1")


def test_verify_round_trip_after_issue(lifecycle, make_user):
    user = make_user()
    tokens = _issue(lifecycle, user)

    claims = lifecycle.verify(access_token=tokens.access_token)

    assert claims.user_id == user.id
    assert claims.type == "access"


def test_issue_persists_hashes_never_raw_tokens(lifecycle, make_user, db, codec):
    tokens = _issue(lifecycle, make_user())

    [session] = db.sessions.values()
    assert session.token_hash == codec.hash(token=tokens.access_token)
    assert session.refresh_token_hash == codec.hash(token=tokens.refresh_token)
    stored = {session.token_hash, session.refresh_token_hash}
    assert tokens.access_token not in stored
    assert tokens.refresh_token not in stored
    assert session.user_agent == "pytest"
    assert session.ip_address == "127.0.0.1"


def test_access_expiry_never_exceeds_refresh_expiry(lifecycle, make_user):
    tokens = _issue(lifecycle, make_user())

    assert tokens.access_token_expiry <= tokens.refresh_token_expiry


def test_access_ttl_longer_than_refresh_is_clamped(codec, session_port):
    service = TokenLifecycleService(
        token_codec=codec,
        session_port=session_port,
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_ttl=timedelta(days=30),
        refresh_ttl=timedelta(days=7),
        logger=logging.getLogger("tests.lifecycle"),
    )

    assert service.access_ttl == timedelta(days=7)


def test_verify_fails_with_session_expired_when_session_missing(lifecycle, make_user, db):
    tokens = _issue(lifecycle, make_user())
    db.sessions.clear()

    with pytest.raises(AuthError) as exc_info:
        lifecycle.verify(access_token=tokens.access_token)

    assert exc_info.value.kind is AuthErrorKind.SESSION_EXPIRED


def test_verify_fails_when_session_access_window_has_passed(lifecycle, make_user, clock, db):
    tokens = _issue(lifecycle, make_user())
    clock.advance(minutes=16)

    with pytest.raises(AuthError) as exc_info:
        lifecycle.verify(access_token=tokens.access_token)

    assert exc_info.value.kind is AuthErrorKind.SESSION_EXPIRED
    assert len(db.sessions) == 1


def test_verify_rejects_refresh_token(lifecycle, make_user):
    tokens = _issue(lifecycle, make_user())

    with pytest.raises(AuthError) as exc_info:
        lifecycle.verify(access_token=tokens.refresh_token)

    assert exc_info.value.kind is AuthErrorKind.TOKEN_INVALID


def test_verify_touches_session(lifecycle, make_user, session_port):
    tokens = _issue(lifecycle, make_user())

    lifecycle.verify(access_token=tokens.access_token)

    assert len(session_port.touched) == 1


def test_rotate_replaces_session_and_invalidates_predecessor(lifecycle, make_user, db):
    tokens = _issue(lifecycle, make_user())
    [old_session_id] = db.sessions.keys()

    rotated = lifecycle.rotate(refresh_token=tokens.refresh_token)

    assert rotated.refresh_token != tokens.refresh_token
    assert old_session_id not in db.sessions
    assert len(db.sessions) == 1
    with pytest.raises(AuthError) as exc_info:
        lifecycle.rotate(refresh_token=tokens.refresh_token)
    assert exc_info.value.kind is AuthErrorKind.TOKEN_EXPIRED
    assert exc_info.value.token_type == "refresh"


def test_rotate_uses_current_user_role(lifecycle, make_user, auth_port, codec):
    user = make_user(role=UserRole.CUSTOMER)
    tokens = _issue(lifecycle, user)
    auth_port.db.users[user.id] = replace(user, role=UserRole.ADMIN)

    rotated = lifecycle.rotate(refresh_token=tokens.refresh_token)

    assert codec.decode(token=rotated.access_token).role is UserRole.ADMIN


def test_rotate_rejects_access_token(lifecycle, make_user):
    tokens = _issue(lifecycle, make_user())

    with pytest.raises(AuthError) as exc_info:
        lifecycle.rotate(refresh_token=tokens.access_token)

    # Signed with the access secret, so the refresh secret rejects it outright.
    assert exc_info.value.kind is AuthErrorKind.TOKEN_INVALID


def test_rotate_rejects_access_typed_token_signed_with_refresh_secret(lifecycle, make_user, codec):
    user = make_user()
    token = codec.sign(
        claims=TokenClaims(user_id=user.id, email=user.email, role=user.role, type="access"),
        secret=REFRESH_SECRET,
        ttl=timedelta(minutes=5),
    )

    with pytest.raises(AuthError) as exc_info:
        lifecycle.rotate(refresh_token=token)

    assert exc_info.value.kind is AuthErrorKind.UNAUTHORIZED
    assert exc_info.value.reason == "Expected refresh token"


def test_rotate_deletes_session_past_refresh_expiry(lifecycle, make_user, clock, db):
    tokens = _issue(lifecycle, make_user())
    clock.advance(days=8)

    with pytest.raises(AuthError) as exc_info:
        lifecycle.rotate(refresh_token=tokens.refresh_token)

    assert exc_info.value.kind is AuthErrorKind.TOKEN_EXPIRED
    assert db.sessions == {}


def test_rotate_purges_session_when_refresh_jwt_expired(session_port, make_user, db):
    past = datetime.now(timezone.utc) - timedelta(days=10)
    old_codec = JwtTokenCodec(now=lambda: past)
    issuer = TokenLifecycleService(
        token_codec=old_codec,
        session_port=session_port,
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=7),
        now=lambda: past,
    )
    tokens = _issue(issuer, make_user())
    service = TokenLifecycleService(
        token_codec=JwtTokenCodec(),
        session_port=session_port,
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=7),
    )

    with pytest.raises(AuthError) as exc_info:
        service.rotate(refresh_token=tokens.refresh_token)

    assert exc_info.value.kind is AuthErrorKind.TOKEN_EXPIRED
    assert db.sessions == {}


class _RacingSessionPort:
    """Loses the conditional delete, as if a concurrent rotation got there first."""

    def __init__(self, inner):
        self._inner = inner

    def __getattr__(self, name):
        return getattr(self._inner, name)

    def execute_in_transaction(self, fn):
        return self._inner.db.run_in_transaction(self, fn)

    def delete_session(self, *, session_id: str) -> int:
        self._inner.delete_session(session_id=session_id)
        return 0


def test_rotate_aborts_when_conditional_delete_matches_nothing(codec, session_port, make_user, db):
    racing = _RacingSessionPort(session_port)
    service = TokenLifecycleService(
        token_codec=codec,
        session_port=racing,
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=7),
    )
    tokens = _issue(service, make_user())

    with pytest.raises(AuthError) as exc_info:
        service.rotate(refresh_token=tokens.refresh_token)

    assert exc_info.value.kind is AuthErrorKind.TOKEN_EXPIRED
    # The transaction rolls back, so no second pair is minted from the old one.
    assert len(db.sessions) == 1


def test_revoke_is_idempotent(lifecycle, make_user, db):
    tokens = _issue(lifecycle, make_user())

    assert lifecycle.revoke(access_token=tokens.access_token) is True
    assert db.sessions == {}
    assert lifecycle.revoke(access_token=tokens.access_token) is True


def test_revoke_all_deletes_every_session_for_user(lifecycle, make_user, db):
    alice = make_user()
    bob = make_user(user_id=BOB_ID, email="bob@example.com")
    _issue(lifecycle, alice)
    _issue(lifecycle, alice)
    _issue(lifecycle, bob)

    assert lifecycle.revoke_all(user_id=alice.id) == 2
    assert [s.user_id for s in db.sessions.values()] == [bob.id]


def test_session_lookup_is_scoped_by_user(lifecycle, make_user, session_port, codec):
    alice = make_user()
    bob = make_user(user_id=BOB_ID, email="bob@example.com")
    tokens = _issue(lifecycle, alice)

    assert lifecycle.find_access_session(user_id=bob.id, access_token=tokens.access_token) is None
    assert session_port.find_by_refresh_hash(
        user_id=bob.id,
        refresh_token_hash=codec.hash(token=tokens.refresh_token),
    ) is None


class _BrokenSessionPort:
    def create_session(self, **kwargs):
        raise RuntimeError("connection reset by peer")

    def delete_all_for_user(self, *, user_id: str) -> int:
        raise RuntimeError("connection reset by peer")


def test_persistence_failures_become_internal_errors(codec):
    service = TokenLifecycleService(
        token_codec=codec,
        session_port=_BrokenSessionPort(),
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=7),
        logger=logging.getLogger("tests.lifecycle"),
    )

    with pytest.raises(AuthError) as issue_exc:
        service.issue(user_id=ALICE_ID, email="a@x.com", role=UserRole.CUSTOMER)
    with pytest.raises(AuthError) as revoke_exc:
        service.revoke_all(user_id=ALICE_ID)

    assert issue_exc.value.kind is AuthErrorKind.INTERNAL_ERROR
    assert issue_exc.value.message == "Failed to generate tokens"
    assert "connection reset" not in issue_exc.value.message
    assert revoke_exc.value.kind is AuthErrorKind.INTERNAL_ERROR
