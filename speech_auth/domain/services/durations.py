from __future__ import annotations

import logging
import re
from datetime import timedelta


logger = logging.getLogger(__name__)

DEFAULT_ACCESS_TTL = timedelta(minutes=15)
DEFAULT_REFRESH_TTL = timedelta(days=7)

_DURATION_RE = re.compile(r"^(\d+)([smhd])$")
_UNIT_SECONDS = {
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
}


def parse_duration(
    value: str | None,
    *,
    default: timedelta,
    log: logging.Logger | None = None,
) -> timedelta:
    """Parse ``15m`` / ``7d`` style durations.

    The value comes from trusted configuration, so a malformed one falls back to
    ``default`` with a warning instead of raising.
    """
    match = _DURATION_RE.match((value or "").strip())
    if match is None:
        (log or logger).warning(
            "Invalid expiry format %r, using default of %s seconds",
            value,
            int(default.total_seconds()),
        )
        return default
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _UNIT_SECONDS[unit])
