"""Transition validation Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from flow_integrity.domain.synchronizer import SyncContext


class TransitionValidateRequest(BaseModel):
    """Schema for a proposed state transition."""

    entity_type: str = Field(..., examples=["session"])
    current_state: str = Field(..., examples=["payment_pending"])
    new_state: str = Field(..., examples=["paid"])
    # Raw mapping: out-of-catalog values are reported as UNKNOWN_STATE, not a 422 schema error
    context: dict | None = Field(
        default=None,
        examples=[{"paymentState": "confirmed"}],
    )


class TransitionValidateResponse(BaseModel):
    """Schema for an accepted transition."""

    valid: bool = True
    entity_type: str
    transition: str
    enforcement_level: str
    warning: str | None = None
    skipped: bool = False


class JoinCheckRequest(BaseModel):
    """Schema for a video-call join check."""

    current_video_state: str = Field(default="not_started")
    target_video_state: str = Field(default="waiting_for_participants")
    context: SyncContext


class JoinCheckResponse(BaseModel):
    """Schema for a join-check answer."""

    can_join: bool
    missing: list[str] = []
    message: str | None = None


class ConsistencyCheckRequest(BaseModel):
    """Schema for a stored-state audit."""

    payment_state: str
    session_state: str
    video_state: str | None = None


class ConsistencyViolationResponse(BaseModel):
    rule: str
    message: str


class ConsistencyCheckResponse(BaseModel):
    """Schema for a stored-state audit result."""

    consistent: bool
    violations: list[ConsistencyViolationResponse] = []
    required_actions: list[str] = []


class EnforcementLevelUpdate(BaseModel):
    """Schema for changing the enforcement level (admin only)."""

    level: str = Field(..., pattern="^(strict|warn|off)$")
    reason: str = Field(..., min_length=3, max_length=500)
    changed_by: str = Field(..., min_length=1, max_length=100)


class EnforcementLevelResponse(BaseModel):
    previous_level: str
    enforcement_level: str
    changed_at: datetime
