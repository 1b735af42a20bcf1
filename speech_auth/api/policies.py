from __future__ import annotations

from speech_auth.application.dto.auth import RoutePolicy


PUBLIC = RoutePolicy(is_public=True)
ANONYMOUS_ALLOWED = RoutePolicy(allow_anonymous=True)
PROTECTED = RoutePolicy()

# Routes missing from this table are protected.
ROUTE_POLICIES: dict[str, RoutePolicy] = {
    "auth.oauth": PUBLIC,
    "auth.refresh": ANONYMOUS_ALLOWED,
    "auth.signout": ANONYMOUS_ALLOWED,
    "users.me": PROTECTED,
    "health": PUBLIC,
}


def policy_for(route_name: str) -> RoutePolicy:
    return ROUTE_POLICIES.get(route_name, PROTECTED)
