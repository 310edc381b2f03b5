"""Integrity enforcement administration endpoints."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends

from flow_integrity.api.deps import get_enforcer, require_admin_token
from flow_integrity.core.enforcement import IntegrityEnforcer
from flow_integrity.schemas.transition import EnforcementLevelResponse, EnforcementLevelUpdate

router = APIRouter()


@router.get("/health")
async def integrity_health(
    enforcer: Annotated[IntegrityEnforcer, Depends(get_enforcer)],
) -> dict:
    """Enforcement status."""
    return enforcer.health_check()


@router.get("/stats", dependencies=[Depends(require_admin_token)])
async def integrity_stats(
    enforcer: Annotated[IntegrityEnforcer, Depends(get_enforcer)],
) -> dict:
    """Enforcement counters (admin only)."""
    return enforcer.stats()


@router.put(
    "/enforcement",
    response_model=EnforcementLevelResponse,
    dependencies=[Depends(require_admin_token)],
)
async def set_enforcement_level(
    request: EnforcementLevelUpdate,
    enforcer: Annotated[IntegrityEnforcer, Depends(get_enforcer)],
) -> EnforcementLevelResponse:
    """Change the enforcement level (admin only)."""
    previous = enforcer.set_level(
        request.level,
        reason=request.reason,
        changed_by=request.changed_by,
        admin=True,
    )
    return EnforcementLevelResponse(
        previous_level=previous.value,
        enforcement_level=enforcer.level.value,
        changed_at=datetime.now(UTC),
    )
