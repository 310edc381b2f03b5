"""Transition validation endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from flow_integrity.api.deps import get_enforcer
from flow_integrity.core.enforcement import IntegrityEnforcer
from flow_integrity.core.exceptions import ValidationError
from flow_integrity.domain.catalog import UnknownStateError
from flow_integrity.domain.consistency import check_consistency
from flow_integrity.domain.failures import FailureKind
from flow_integrity.domain.messages import KIND_MESSAGES
from flow_integrity.domain.synchronizer import missing_call_preconditions
from flow_integrity.domain.validation import validate_transition
from flow_integrity.domain.video_state import VideoState
from flow_integrity.schemas.transition import (
    ConsistencyCheckRequest,
    ConsistencyCheckResponse,
    ConsistencyViolationResponse,
    JoinCheckRequest,
    JoinCheckResponse,
    TransitionValidateRequest,
    TransitionValidateResponse,
)

router = APIRouter()


@router.post("/transitions/validate", response_model=TransitionValidateResponse)
async def validate_state_transition(
    request: TransitionValidateRequest,
    enforcer: Annotated[IntegrityEnforcer, Depends(get_enforcer)],
) -> TransitionValidateResponse:
    """Validate a proposed transition before the caller persists it."""
    outcome = enforcer.enforce(
        request.entity_type,
        request.current_state,
        request.new_state,
        request.context,
    )
    return TransitionValidateResponse(
        entity_type=outcome.entity_type,
        transition=outcome.transition,
        enforcement_level=outcome.enforcement_level.value,
        warning=outcome.warning,
        skipped=outcome.skipped,
    )


@router.post("/video/join-check", response_model=JoinCheckResponse)
async def video_join_check(request: JoinCheckRequest) -> JoinCheckResponse:
    """Tell a participant whether they may join the call, and what is missing if not.

    Joining always moves the call past not_started, so that target is refused.
    """
    if request.target_video_state == VideoState.NOT_STARTED.value:
        return JoinCheckResponse(
            can_join=False,
            missing=list(missing_call_preconditions(request.context)),
            message=KIND_MESSAGES[FailureKind.FORBIDDEN_EDGE],
        )

    result = validate_transition(
        "video",
        request.current_video_state,
        request.target_video_state,
        request.context,
    )
    if result.ok:
        return JoinCheckResponse(can_join=True)

    failure = result.failure
    missing = list(failure.fields) if failure.kind is FailureKind.ACCESS_DENIED else []
    return JoinCheckResponse(can_join=False, missing=missing, message=failure.user_message)


@router.post("/consistency/check", response_model=ConsistencyCheckResponse)
async def consistency_check(request: ConsistencyCheckRequest) -> ConsistencyCheckResponse:
    """Audit the stored states of one booking."""
    try:
        report = check_consistency(
            request.payment_state,
            request.session_state,
            request.video_state,
        )
    except UnknownStateError as exc:
        raise ValidationError(str(exc)) from None

    return ConsistencyCheckResponse(
        consistent=report.consistent,
        violations=[
            ConsistencyViolationResponse(rule=v.rule, message=v.message)
            for v in report.violations
        ],
        required_actions=[action.value for action in report.required_actions],
    )
