from __future__ import annotations

import hashlib
import logging
from datetime import timedelta
from uuid import UUID, uuid4

import jwt

from speech_auth.application.dto.auth import TokenClaims
from speech_auth.application.ports.token_port import TokenCodecPort
from speech_auth.application.use_cases.auth_common import utcnow
from speech_auth.domain.entities.user import UserRole
from speech_auth.domain.exceptions import AuthError


logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
_TOKEN_TYPES = ("access", "refresh")


class JwtTokenCodec(TokenCodecPort):
    """Stateless HS256 signing and parsing of access/refresh tokens."""

    def __init__(self, *, now=None):
        self._now = now or utcnow

    def sign(self, *, claims: TokenClaims, secret: str, ttl: timedelta) -> str:
        issued_at = self._now()
        payload = {
            "sub": claims.user_id,
            "email": claims.email,
            "role": claims.role.value,
            "type": claims.type,
            "jti": uuid4().hex,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + ttl).timestamp()),
        }
        return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)

    def decode(self, *, token: str) -> TokenClaims | None:
        try:
            payload = jwt.decode(
                token,
                options={"verify_signature": False, "verify_exp": False},
                algorithms=[JWT_ALGORITHM],
            )
        except jwt.PyJWTError as exc:
            logger.debug("Token decode error: %s", exc)
            return None
        return _claims_from_payload(payload)

    def verify(self, *, token: str, secret: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError as exc:
            raise AuthError.token_expired(_peek_token_type(token)) from exc
        except jwt.PyJWTError as exc:
            raise AuthError.token_invalid() from exc

        claims = _claims_from_payload(payload)
        if claims is None:
            raise AuthError.token_invalid()
        return claims

    def hash(self, *, token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _claims_from_payload(payload) -> TokenClaims | None:
    if not isinstance(payload, dict):
        return None
    user_id = payload.get("sub")
    if not user_id or not isinstance(user_id, str):
        return None
    # User ids are UUID columns; anything else never reaches the database.
    try:
        UUID(user_id)
    except ValueError:
        return None
    token_type = payload.get("type")
    if token_type not in _TOKEN_TYPES:
        return None
    try:
        role = UserRole(payload.get("role", UserRole.CUSTOMER.value))
    except ValueError:
        return None
    email = payload.get("email")
    return TokenClaims(
        user_id=user_id,
        email=email if isinstance(email, str) else "",
        role=role,
        type=token_type,
    )


def _peek_token_type(token: str) -> str:
    try:
        payload = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    except jwt.PyJWTError:
        return "access"
    return "refresh" if payload.get("type") == "refresh" else "access"
