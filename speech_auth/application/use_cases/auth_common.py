from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def parse_preferred_language(accept_language: str | None) -> str | None:
    """Return the primary subtag of the first ``accept-language`` entry.

    ``"en-US,en;q=0.9"`` -> ``"en"``; wildcards and empty headers give None.
    """
    if not accept_language:
        return None
    first = accept_language.split(",", 1)[0].split(";", 1)[0].strip()
    if not first or first == "*":
        return None
    primary = first.split("-", 1)[0].strip().lower()
    if not primary.isalpha() or len(primary) > 8:
        return None
    return primary
