from __future__ import annotations

import logging

from speech_auth.shared.config import Settings


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _matches(logger_name: str, context: str) -> bool:
    return logger_name == context or logger_name.startswith(f"{context}.")


class LoggerContextFilter(logging.Filter):
    """Allow/deny log records by logger name.

    A name matches a context when it equals it or is one of its children
    (``speech_auth.api`` matches ``speech_auth.api.guard``). Deny entries win over
    allow entries; an empty allow list lets every non-denied record through.
    """

    def __init__(self, *, allow: tuple[str, ...] = (), deny: tuple[str, ...] = ()):
        super().__init__()
        self._allow = tuple(allow)
        self._deny = tuple(deny)

    def filter(self, record: logging.LogRecord) -> bool:
        if any(_matches(record.name, context) for context in self._deny):
            return False
        if not self._allow:
            return True
        return any(_matches(record.name, context) for context in self._allow)


def configure_logging(settings: Settings) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(
        LoggerContextFilter(
            allow=settings.log_contexts_allow,
            deny=settings.log_contexts_deny,
        )
    )

    root = logging.getLogger("speech_auth")
    root.handlers = [handler]
    root.setLevel(settings.log_level.upper())
    root.propagate = False


def sanitize_user_id(user_id: str | None) -> str:
    if not user_id:
        return "anonymous"
    return f"{user_id[:8]}..." if len(user_id) > 8 else user_id


def sanitize_email(email: str | None) -> str:
    if not email:
        return "no-email"
    local, sep, domain = email.partition("@")
    if not sep or not domain:
        return "invalid-email"
    if len(local) > 2:
        masked = f"{local[0]}***{local[-1]}"
    elif len(local) == 2:
        masked = f"{local[0]}***"
    else:
        masked = "***"
    return f"{masked}@{domain}"
