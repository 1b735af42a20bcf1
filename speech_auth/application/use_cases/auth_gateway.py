from __future__ import annotations

import logging

from speech_auth.application.dto.auth import AuthContext, RequestCredentials, RoutePolicy
from speech_auth.application.ports.auth_port import AuthPort
from speech_auth.application.ports.token_port import TokenCodecPort
from speech_auth.application.use_cases.token_lifecycle import TokenLifecycleService
from speech_auth.domain.exceptions import AuthError, AuthErrorKind
from speech_auth.shared.log_config import sanitize_user_id

from .auth_common import utcnow


class AuthGateway:
    """Per-request authentication decision.

    1. An access token is decoded without verification to find its user, then
       accepted only if a live session exists for (user, hash(token)).
    2. Otherwise a refresh token, if present, is rotated into a new pair.
    3. Otherwise the request is denied, unless the route policy allows
       anonymous access.

    The gateway never writes to the HTTP response itself; it reports rotated
    tokens and whether they belong in cookies through the returned ``AuthContext``.
    """

    def __init__(
        self,
        *,
        token_lifecycle: TokenLifecycleService,
        token_codec: TokenCodecPort,
        auth_port: AuthPort,
        logger: logging.Logger | None = None,
        now=None,
    ):
        self._lifecycle = token_lifecycle
        self._codec = token_codec
        self._auth_port = auth_port
        self._logger = logger or logging.getLogger(__name__)
        self._now = now or utcnow

    def authenticate(self, credentials: RequestCredentials, policy: RoutePolicy) -> AuthContext:
        session_expired = False
        refresh_expired = False

        if credentials.access_token:
            claims = self._codec.decode(token=credentials.access_token)
            if claims is not None:
                if policy.is_public:
                    # Unverified claim: identity hint only.
                    user = self._auth_port.get_user_by_id(user_id=claims.user_id)
                    return AuthContext(user=user, is_authenticated=False)

                session = self._lifecycle.find_access_session(
                    user_id=claims.user_id,
                    access_token=credentials.access_token,
                )
                if session is not None:
                    now = self._now()
                    if session.is_access_expired(now):
                        if session.is_refresh_expired(now):
                            self._lifecycle.discard(session=session)
                        session_expired = True
                    else:
                        user = self._auth_port.get_user_by_id(user_id=claims.user_id)
                        if user is not None:
                            self._lifecycle.touch(session=session)
                            return AuthContext(user=user, is_authenticated=True)

        if credentials.refresh_token:
            try:
                tokens = self._lifecycle.rotate(
                    refresh_token=credentials.refresh_token,
                    user_agent=credentials.user_agent,
                    ip_address=credentials.ip,
                )
            except AuthError as exc:
                if exc.kind is AuthErrorKind.INTERNAL_ERROR:
                    raise
                if exc.kind is AuthErrorKind.TOKEN_EXPIRED:
                    refresh_expired = True
                self._logger.debug("Refresh attempt rejected: %s", exc.message)
            else:
                user = self._auth_port.get_user_by_id(user_id=tokens.user_id)
                if user is not None:
                    self._logger.debug(
                        "Rotated tokens for user %s (web client: %s)",
                        sanitize_user_id(user.id),
                        credentials.is_web_client,
                    )
                    return AuthContext(
                        user=user,
                        is_authenticated=True,
                        rotated_tokens=tokens,
                        set_cookies=credentials.is_web_client,
                    )

        return self._deny(
            policy,
            session_expired=session_expired,
            refresh_expired=refresh_expired,
        )

    def _deny(self, policy: RoutePolicy, *, session_expired: bool, refresh_expired: bool) -> AuthContext:
        anonymous = AuthContext(user=None, is_authenticated=False)
        if policy.is_public:
            return anonymous
        if refresh_expired and not policy.allow_anonymous:
            raise AuthError.token_expired("refresh", "Refresh token is invalid or expired")
        if session_expired:
            raise AuthError.session_expired()
        if policy.allow_anonymous:
            return anonymous
        raise AuthError.unauthorized("Authentication required", reason="Missing or invalid tokens")
