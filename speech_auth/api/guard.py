from __future__ import annotations

import logging

from fastapi import Depends, Request, Response

from speech_auth.api.cookies import ACCESS_COOKIE_NAME, REFRESH_COOKIE_NAME, CookiePolicy
from speech_auth.api.deps import get_auth_gateway, get_cookie_policy
from speech_auth.api.policies import policy_for
from speech_auth.application.dto.auth import AuthContext, IssuedTokens, RequestCredentials
from speech_auth.application.use_cases.auth_gateway import AuthGateway
from speech_auth.domain.entities.user import User
from speech_auth.domain.exceptions import AuthError


logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = "x-access-token"
REFRESH_TOKEN_HEADER = "x-refresh-token"
ACCESS_TOKEN_EXPIRY_HEADER = "x-access-token-expiry"
REFRESH_TOKEN_EXPIRY_HEADER = "x-refresh-token-expiry"
CLIENT_TYPE_HEADER = "x-client-type"


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[len("Bearer "):].strip() or None


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",", 1)[0].strip() or None
    return request.client.host if request.client else None


def get_request_credentials(request: Request) -> RequestCredentials:
    """Read tokens from cookies first, then from the Authorization/x-refresh-token headers."""
    access_token = request.cookies.get(ACCESS_COOKIE_NAME) or None
    refresh_token = request.cookies.get(REFRESH_COOKIE_NAME) or None
    if access_token is None and refresh_token is None:
        access_token = _bearer_token(request.headers.get("authorization"))
        refresh_token = (request.headers.get(REFRESH_TOKEN_HEADER) or "").strip() or None

    return RequestCredentials(
        access_token=access_token,
        refresh_token=refresh_token,
        client_type=request.headers.get(CLIENT_TYPE_HEADER),
        user_agent=request.headers.get("user-agent"),
        ip=client_ip(request),
    )


def write_rotated_tokens(
    response: Response,
    tokens: IssuedTokens,
    *,
    as_cookies: bool,
    cookie_policy: CookiePolicy,
) -> None:
    if as_cookies:
        cookie_policy.set_auth_cookies(
            response,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        )
        return
    response.headers[ACCESS_TOKEN_HEADER] = tokens.access_token
    response.headers[REFRESH_TOKEN_HEADER] = tokens.refresh_token
    response.headers[ACCESS_TOKEN_EXPIRY_HEADER] = tokens.access_token_expiry.isoformat()
    response.headers[REFRESH_TOKEN_EXPIRY_HEADER] = tokens.refresh_token_expiry.isoformat()


def auth_guard(route_name: str):
    policy = policy_for(route_name)

    def _dependency(
        response: Response,
        credentials: RequestCredentials = Depends(get_request_credentials),
        gateway: AuthGateway = Depends(get_auth_gateway),
        cookie_policy: CookiePolicy = Depends(get_cookie_policy),
    ) -> AuthContext:
        context = gateway.authenticate(credentials, policy)
        if context.rotated_tokens is not None:
            write_rotated_tokens(
                response,
                context.rotated_tokens,
                as_cookies=context.set_cookies,
                cookie_policy=cookie_policy,
            )
        return context

    return _dependency


def get_current_user(context: AuthContext = Depends(auth_guard("users.me"))) -> User:
    if not context.is_authenticated or context.user is None:
        raise AuthError.unauthorized("Authentication required", reason="Missing or invalid tokens")
    return context.user
