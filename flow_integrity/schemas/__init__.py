"""Pydantic schemas for request/response validation."""

from flow_integrity.schemas.transition import (
    ConsistencyCheckRequest,
    ConsistencyCheckResponse,
    EnforcementLevelResponse,
    EnforcementLevelUpdate,
    JoinCheckRequest,
    JoinCheckResponse,
    TransitionValidateRequest,
    TransitionValidateResponse,
)

__all__ = [
    "ConsistencyCheckRequest",
    "ConsistencyCheckResponse",
    "EnforcementLevelResponse",
    "EnforcementLevelUpdate",
    "JoinCheckRequest",
    "JoinCheckResponse",
    "TransitionValidateRequest",
    "TransitionValidateResponse",
]
