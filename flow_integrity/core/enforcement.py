"""Integrity enforcement levels (kill switch).

The validator only judges. IntegrityEnforcer is the caller-side policy that
decides what a rejection means at runtime:

- strict: block the transition (production default)
- warn: log the violation and let the transition through
- off: skip validation entirely (emergency only)

Level changes require an admin, emergency or startup context.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from flow_integrity.config import settings
from flow_integrity.core.exceptions import (
    IntegrityConfigLocked,
    StateTransitionError,
    ValidationError,
)
from flow_integrity.domain.validation import ContextInput, validate_transition

logger = logging.getLogger(__name__)


class EnforcementLevel(str, Enum):
    """How strictly integrity rules are enforced."""

    STRICT = "strict"
    WARN = "warn"
    OFF = "off"


@dataclass(frozen=True)
class EnforcementOutcome:
    """Result of an enforced transition check that was allowed through."""

    entity_type: str
    transition: str
    enforcement_level: EnforcementLevel
    warning: str | None = None
    skipped: bool = False


@dataclass
class EnforcementStats:
    total_checks: int = 0
    transitions_blocked: int = 0
    warnings_issued: int = 0
    checks_skipped: int = 0


def _state_text(value: object) -> str:
    return str(value.value) if isinstance(value, Enum) else str(value)


class IntegrityEnforcer:
    """Applies the configured enforcement level to transition validation."""

    def __init__(self, level: str | EnforcementLevel = EnforcementLevel.STRICT) -> None:
        self._level = self._parse_level(level)
        self._lock = threading.Lock()
        self._stats = EnforcementStats()
        self._started_at = datetime.now(UTC)
        logger.info(f"Integrity enforcement initialized at level: {self._level.value}")

    @staticmethod
    def _parse_level(level: str | EnforcementLevel) -> EnforcementLevel:
        try:
            return EnforcementLevel(level)
        except ValueError:
            raise ValidationError(f"Invalid enforcement level: {level}") from None

    @property
    def level(self) -> EnforcementLevel:
        return self._level

    def is_enforcement_enabled(self) -> bool:
        return self._level is not EnforcementLevel.OFF

    def enforce(
        self,
        entity_type: str,
        current_state: object,
        new_state: object,
        context: ContextInput = None,
    ) -> EnforcementOutcome:
        """Validate a transition under the current enforcement level.

        Raises:
            StateTransitionError: If the transition is rejected in strict mode
        """
        level = self._level
        transition = f"{_state_text(current_state)} → {_state_text(new_state)}"
        entity = _state_text(entity_type)

        if level is EnforcementLevel.OFF:
            with self._lock:
                self._stats.checks_skipped += 1
            return EnforcementOutcome(entity, transition, level, skipped=True)

        result = validate_transition(entity_type, current_state, new_state, context)  # type: ignore[arg-type]

        with self._lock:
            self._stats.total_checks += 1
            if result.ok:
                return EnforcementOutcome(entity, transition, level)
            if level is EnforcementLevel.STRICT:
                self._stats.transitions_blocked += 1
            else:
                self._stats.warnings_issued += 1

        failure = result.failure
        if level is EnforcementLevel.STRICT:
            logger.warning(
                f"Integrity violation blocked: {entity} {transition} "
                f"[{failure.kind.value}] {failure.reason}"
            )
            raise StateTransitionError(failure)

        logger.warning(
            f"Integrity violation allowed (warn mode): {entity} {transition} "
            f"[{failure.kind.value}] {failure.reason}"
        )
        return EnforcementOutcome(entity, transition, level, warning=failure.reason)

    def set_level(
        self,
        level: str | EnforcementLevel,
        reason: str = "Manual change",
        changed_by: str = "system",
        *,
        admin: bool = False,
        emergency: bool = False,
        startup: bool = False,
    ) -> EnforcementLevel:
        """Change the enforcement level.

        Raises:
            IntegrityConfigLocked: Without an admin, emergency or startup context
            ValidationError: If the level is unknown
        """
        if not (admin or emergency or startup):
            raise IntegrityConfigLocked(changed_by)

        new_level = self._parse_level(level)
        with self._lock:
            old_level = self._level
            self._level = new_level

        logger.info(
            f"Integrity enforcement changed: {old_level.value} → {new_level.value} "
            f"(reason: {reason}, by: {changed_by})"
        )
        if new_level is EnforcementLevel.OFF:
            logger.critical(f"Integrity enforcement DISABLED by {changed_by}: {reason}")
        return old_level

    def emergency_disable(self, reason: str, disabled_by: str = "system") -> None:
        self.set_level(EnforcementLevel.OFF, f"EMERGENCY: {reason}", disabled_by, emergency=True)

    def emergency_enable(self, reason: str, enabled_by: str = "system") -> None:
        self.set_level(EnforcementLevel.STRICT, f"EMERGENCY: {reason}", enabled_by, emergency=True)

    def stats(self) -> dict:
        """Get enforcement counters and rates."""
        with self._lock:
            snapshot = EnforcementStats(**vars(self._stats))
            level = self._level
        uptime = int((datetime.now(UTC) - self._started_at).total_seconds())
        checks = snapshot.total_checks

        return {
            "enforcement_level": level.value,
            "uptime_seconds": uptime,
            "total_checks": checks,
            "transitions_blocked": snapshot.transitions_blocked,
            "warnings_issued": snapshot.warnings_issued,
            "checks_skipped": snapshot.checks_skipped,
            "block_rate": round(snapshot.transitions_blocked / checks, 4) if checks else 0.0,
            "warn_rate": round(snapshot.warnings_issued / checks, 4) if checks else 0.0,
        }

    def reset_stats(self) -> None:
        with self._lock:
            self._stats = EnforcementStats()
            self._started_at = datetime.now(UTC)
        logger.info("Integrity enforcement statistics reset")

    def health_check(self) -> dict:
        stats = self.stats()
        return {
            "status": "active" if self.is_enforcement_enabled() else "disabled",
            "enforcement_level": stats["enforcement_level"],
            "uptime_seconds": stats["uptime_seconds"],
            "total_checks": stats["total_checks"],
            "is_healthy": True,
            "checked_at": datetime.now(UTC).isoformat(),
        }


integrity_enforcer = IntegrityEnforcer(settings.integrity_enforcement)
