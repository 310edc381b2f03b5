"""API dependencies."""

import hmac
from typing import Annotated

from fastapi import Depends, Header

from flow_integrity.config import Settings, get_settings
from flow_integrity.core.enforcement import IntegrityEnforcer, integrity_enforcer
from flow_integrity.core.exceptions import AuthorizationError


def get_enforcer() -> IntegrityEnforcer:
    """Get the process-wide integrity enforcer."""
    return integrity_enforcer


async def require_admin_token(
    settings: Annotated[Settings, Depends(get_settings)],
    x_admin_token: Annotated[str | None, Header()] = None,
) -> str:
    """Verify the integrity admin token.

    Admin endpoints are disabled entirely when no token is configured.
    """
    expected = settings.integrity_admin_token
    if not expected:
        raise AuthorizationError("Integrity administration is disabled")
    if not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise AuthorizationError("Admin access required")
    return x_admin_token
