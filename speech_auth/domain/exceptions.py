from __future__ import annotations

from enum import Enum
from typing import Any, Literal


TokenType = Literal["access", "refresh"]


class DomainError(Exception):
    """Base for domain errors."""


class AuthErrorKind(str, Enum):
    TOKEN_INVALID = "TOKEN_INVALID"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    UNAUTHORIZED = "UNAUTHORIZED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_SERVER_ERROR"


AUTH_ERROR_STATUS: dict[AuthErrorKind, int] = {
    AuthErrorKind.TOKEN_INVALID: 401,
    AuthErrorKind.TOKEN_EXPIRED: 401,
    AuthErrorKind.SESSION_EXPIRED: 401,
    AuthErrorKind.UNAUTHORIZED: 401,
    AuthErrorKind.VALIDATION_ERROR: 400,
    AuthErrorKind.INTERNAL_ERROR: 500,
}


class AuthError(DomainError):
    """Authentication failure tagged with a ``kind``.

    Callers branch on ``kind`` instead of on subclasses; the HTTP layer maps it to a
    fixed status code through ``status_code``.
    """

    def __init__(
        self,
        kind: AuthErrorKind,
        message: str,
        *,
        reason: str | None = None,
        field: str | None = None,
        token_type: TokenType | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.reason = reason
        self.field = field
        self.token_type = token_type
        self.metadata = metadata or {}

    @property
    def status_code(self) -> int:
        return AUTH_ERROR_STATUS[self.kind]

    @property
    def code(self) -> str:
        return self.kind.value

    @classmethod
    def token_invalid(cls, message: str = "Invalid token") -> AuthError:
        return cls(AuthErrorKind.TOKEN_INVALID, message)

    @classmethod
    def token_expired(cls, token_type: TokenType, message: str = "Token has expired") -> AuthError:
        return cls(
            AuthErrorKind.TOKEN_EXPIRED,
            message,
            reason=f"{token_type} token expired",
            token_type=token_type,
        )

    @classmethod
    def session_expired(cls, message: str = "Your session has expired") -> AuthError:
        return cls(AuthErrorKind.SESSION_EXPIRED, message)

    @classmethod
    def unauthorized(cls, message: str = "Unauthorized", reason: str | None = None) -> AuthError:
        return cls(AuthErrorKind.UNAUTHORIZED, message, reason=reason)

    @classmethod
    def validation(cls, message: str, field: str | None = None) -> AuthError:
        return cls(AuthErrorKind.VALIDATION_ERROR, message, field=field)

    @classmethod
    def internal(cls, message: str = "Internal server error", **metadata: Any) -> AuthError:
        return cls(AuthErrorKind.INTERNAL_ERROR, message, metadata=metadata)

    def __repr__(self) -> str:
        return f"AuthError(kind={self.kind.value}, message={self.message!r})"
