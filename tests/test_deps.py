from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest
from fastapi import HTTPException

from speech_auth.api import cookies, deps
from speech_auth.shared.config import get_settings


@pytest.fixture
def settings(monkeypatch):
    values = replace(
        get_settings(),
        postgres_dsn="postgresql+psycopg://app@localhost/app",
        jwt_secret="access-secret-for-tests-0123456789",
        jwt_refresh_secret="refresh-secret-for-tests-0123456789",
        jwt_access_token_expiry="fifteen minutes",
        jwt_refresh_token_expiry="7d",
    )
    monkeypatch.setattr(deps, "get_settings", lambda: values)
    monkeypatch.setattr(deps, "get_engine", lambda dsn: object())
    deps.get_cookie_policy.cache_clear()
    deps._get_token_lifecycle_service.cache_clear()
    yield values
    deps.get_cookie_policy.cache_clear()
    deps._get_token_lifecycle_service.cache_clear()


@pytest.fixture
def parse_calls(monkeypatch):
    calls = []

    def _counting(parse):
        def _parse(value, **kwargs):
            calls.append(value)
            return parse(value, **kwargs)

        return _parse

    monkeypatch.setattr(deps, "parse_duration", _counting(deps.parse_duration))
    monkeypatch.setattr(cookies, "parse_duration", _counting(cookies.parse_duration))
    return calls


def test_token_lifecycle_service_is_built_once(settings, parse_calls):
    first = deps.get_token_lifecycle_service()
    second = deps.get_token_lifecycle_service()

    assert first is second
    assert first.access_ttl == timedelta(minutes=15)
    assert parse_calls == ["fifteen minutes", "7d"]


def test_cookie_policy_is_built_once(settings, parse_calls):
    first = deps.get_cookie_policy()
    second = deps.get_cookie_policy()

    assert first is second
    assert parse_calls == ["fifteen minutes", "7d"]


def test_missing_secret_is_reported_on_every_request(settings, monkeypatch):
    monkeypatch.setattr(deps, "get_settings", lambda: replace(settings, jwt_refresh_secret=""))

    for _ in range(2):
        with pytest.raises(HTTPException) as exc_info:
            deps.get_token_lifecycle_service()
        assert exc_info.value.detail == "JWT_REFRESH_SECRET is required."
