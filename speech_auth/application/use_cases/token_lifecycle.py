from __future__ import annotations

import logging
from datetime import timedelta
from uuid import uuid4

from speech_auth.application.dto.auth import IssuedTokens, TokenClaims
from speech_auth.application.ports.session_port import SessionPort
from speech_auth.application.ports.token_port import TokenCodecPort
from speech_auth.domain.entities.user import AuthSession, UserRole
from speech_auth.domain.exceptions import AuthError, AuthErrorKind
from speech_auth.shared.log_config import sanitize_email, sanitize_user_id

from .auth_common import utcnow


class TokenLifecycleService:
    """Issues, verifies, rotates and revokes access/refresh token pairs.

    Every issued pair is backed by exactly one session row keyed by the SHA-256
    hashes of both tokens. Rotation deletes the old row and creates a new one, so a
    refresh token can be used once.
    """

    def __init__(
        self,
        *,
        token_codec: TokenCodecPort,
        session_port: SessionPort,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
        logger: logging.Logger | None = None,
        now=None,
    ):
        self._codec = token_codec
        self._sessions = session_port
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._logger = logger or logging.getLogger(__name__)
        self._now = now or utcnow
        if access_ttl > refresh_ttl:
            self._logger.warning(
                "Access token TTL (%ss) exceeds refresh token TTL (%ss); clamping to refresh TTL",
                int(access_ttl.total_seconds()),
                int(refresh_ttl.total_seconds()),
            )
            access_ttl = refresh_ttl
        self._access_ttl = access_ttl
        self._refresh_ttl = refresh_ttl

    @property
    def access_ttl(self) -> timedelta:
        return self._access_ttl

    @property
    def refresh_ttl(self) -> timedelta:
        return self._refresh_ttl

    def issue(
        self,
        *,
        user_id: str,
        email: str,
        role: UserRole,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> IssuedTokens:
        return self._issue(
            self._sessions,
            user_id=user_id,
            email=email,
            role=role,
            user_agent=user_agent,
            ip_address=ip_address,
        )

    def verify(self, *, access_token: str) -> TokenClaims:
        claims = self._codec.verify(token=access_token, secret=self._access_secret)
        if claims.type != "access":
            raise AuthError.token_invalid()

        try:
            now = self._now()
            session = self._sessions.find_by_access_hash(
                user_id=claims.user_id,
                token_hash=self._codec.hash(token=access_token),
            )
            if session is None:
                raise AuthError.session_expired("Session not found or invalid")
            if session.is_access_expired(now):
                if session.is_refresh_expired(now):
                    self._sessions.delete_session(session_id=session.id)
                raise AuthError.session_expired()

            self._sessions.touch_session(session_id=session.id, used_at=now)
        except AuthError:
            raise
        except Exception as exc:
            self._logger.error("Token verification error: %s", exc, exc_info=True)
            raise AuthError.internal("Failed to verify token", operation="verify") from exc
        return claims

    def rotate(
        self,
        *,
        refresh_token: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> IssuedTokens:
        try:
            claims = self._codec.verify(token=refresh_token, secret=self._refresh_secret)
        except AuthError as exc:
            if exc.kind is AuthErrorKind.TOKEN_EXPIRED:
                self._purge_refresh_session(refresh_token)
            raise

        if claims.type != "refresh":
            raise AuthError.unauthorized("Invalid token type", reason="Expected refresh token")

        refresh_hash = self._codec.hash(token=refresh_token)
        self._logger.debug(
            "Looking for session with refresh token hash %s... for user %s",
            refresh_hash[:16],
            sanitize_user_id(claims.user_id),
        )

        try:
            session = self._sessions.find_by_refresh_hash(
                user_id=claims.user_id,
                refresh_token_hash=refresh_hash,
            )
            if session is None:
                self._logger.warning(
                    "Refresh session not found for user %s; token was already used or revoked",
                    sanitize_user_id(claims.user_id),
                )
                raise AuthError.token_expired("refresh", "Refresh token not found or invalid")

            if session.is_refresh_expired(self._now()):
                self._logger.warning(
                    "Refresh session expired for user %s at %s",
                    sanitize_user_id(claims.user_id),
                    session.refresh_expires_at.isoformat(),
                )
                self._sessions.delete_session(session_id=session.id)
                raise AuthError.token_expired("refresh", "Refresh token has expired")

            def _tx(sessions: SessionPort) -> IssuedTokens:
                deleted = sessions.delete_session(session_id=session.id)
                if deleted == 0:
                    self._logger.warning(
                        "Refresh session for user %s was rotated concurrently",
                        sanitize_user_id(claims.user_id),
                    )
                    raise AuthError.token_expired("refresh", "Refresh token not found or invalid")
                return self._issue(
                    sessions,
                    user_id=session.user_id,
                    email=session.user.email if session.user else claims.email,
                    role=session.user.role if session.user else claims.role,
                    user_agent=user_agent,
                    ip_address=ip_address,
                )

            return self._sessions.execute_in_transaction(_tx)
        except AuthError:
            raise
        except Exception as exc:
            self._logger.error("Refresh token error: %s", exc, exc_info=True)
            raise AuthError.internal("Failed to refresh tokens", operation="rotate") from exc

    def revoke(self, *, access_token: str) -> bool:
        try:
            deleted = self._sessions.delete_by_access_hash(token_hash=self._codec.hash(token=access_token))
        except Exception as exc:
            self._logger.error("Error revoking token: %s", exc, exc_info=True)
            raise AuthError.internal("Failed to revoke token", operation="revoke") from exc

        self._logger.info("Revoke requested, sessions deleted: %s", deleted)
        if deleted == 0:
            self._logger.warning("No session found for the provided token (already deleted or expired)")
        return True

    def revoke_all(self, *, user_id: str) -> int:
        try:
            deleted = self._sessions.delete_all_for_user(user_id=user_id)
        except Exception as exc:
            self._logger.error(
                "Error revoking all tokens for user %s: %s",
                sanitize_user_id(user_id),
                exc,
                exc_info=True,
            )
            raise AuthError.internal(
                "Failed to revoke all user tokens",
                operation="revoke_all",
                user_id=sanitize_user_id(user_id),
            ) from exc

        self._logger.info(
            "Revoked all tokens for user %s, sessions deleted: %s",
            sanitize_user_id(user_id),
            deleted,
        )
        return deleted

    def find_access_session(self, *, user_id: str, access_token: str) -> AuthSession | None:
        try:
            return self._sessions.find_by_access_hash(
                user_id=user_id,
                token_hash=self._codec.hash(token=access_token),
            )
        except Exception as exc:
            self._logger.error("Session lookup error: %s", exc, exc_info=True)
            raise AuthError.internal("Failed to load session", operation="find_access_session") from exc

    def touch(self, *, session: AuthSession) -> None:
        try:
            self._sessions.touch_session(session_id=session.id, used_at=self._now())
        except Exception as exc:
            self._logger.error("Session touch error: %s", exc, exc_info=True)
            raise AuthError.internal("Failed to update session", operation="touch") from exc

    def discard(self, *, session: AuthSession) -> None:
        try:
            self._sessions.delete_session(session_id=session.id)
        except Exception as exc:
            self._logger.error("Session delete error: %s", exc, exc_info=True)
            raise AuthError.internal("Failed to delete session", operation="discard") from exc

    def _issue(
        self,
        sessions: SessionPort,
        *,
        user_id: str,
        email: str,
        role: UserRole,
        user_agent: str | None,
        ip_address: str | None,
    ) -> IssuedTokens:
        now = self._now()
        access_token = self._codec.sign(
            claims=TokenClaims(user_id=user_id, email=email, role=role, type="access"),
            secret=self._access_secret,
            ttl=self._access_ttl,
        )
        refresh_token = self._codec.sign(
            claims=TokenClaims(user_id=user_id, email=email, role=role, type="refresh"),
            secret=self._refresh_secret,
            ttl=self._refresh_ttl,
        )
        access_expiry = now + self._access_ttl
        refresh_expiry = now + self._refresh_ttl

        try:
            sessions.create_session(
                session_id=str(uuid4()),
                user_id=user_id,
                token_hash=self._codec.hash(token=access_token),
                refresh_token_hash=self._codec.hash(token=refresh_token),
                expires_at=access_expiry,
                refresh_expires_at=refresh_expiry,
                user_agent=user_agent,
                ip_address=ip_address,
                created_at=now,
            )
        except AuthError:
            raise
        except Exception as exc:
            self._logger.error(
                "Error generating tokens for user %s (%s): %s",
                sanitize_user_id(user_id),
                sanitize_email(email),
                exc,
                exc_info=True,
            )
            raise AuthError.internal(
                "Failed to generate tokens",
                operation="issue",
                user_id=sanitize_user_id(user_id),
            ) from exc

        self._logger.info(
            "Tokens generated for user %s (%s)",
            sanitize_user_id(user_id),
            sanitize_email(email),
        )
        return IssuedTokens(
            user_id=user_id,
            access_token=access_token,
            refresh_token=refresh_token,
            access_token_expiry=access_expiry,
            refresh_token_expiry=refresh_expiry,
        )

    def _purge_refresh_session(self, refresh_token: str) -> None:
        claims = self._codec.decode(token=refresh_token)
        if claims is None:
            return
        try:
            session = self._sessions.find_by_refresh_hash(
                user_id=claims.user_id,
                refresh_token_hash=self._codec.hash(token=refresh_token),
            )
            if session is not None:
                self._sessions.delete_session(session_id=session.id)
        except Exception as exc:
            self._logger.error("Error purging expired refresh session: %s", exc, exc_info=True)
            raise AuthError.internal("Failed to refresh tokens", operation="rotate") from exc
