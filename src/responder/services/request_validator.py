"""Request Validator.

Structural checks applied before a request may reach a response handler.
"""

from typing import Any

from src.responder.models.schemas import (
    ALL_ZONES,
    MAX_TRIGGER_EVENT_LENGTH,
    ZONE_SCOPED_TYPES,
    AuthLevel,
    ResponseType,
)
from src.responder.utils.logging import get_logger

logger = get_logger(__name__)

MIN_SEVERITY = 1
MAX_SEVERITY = 10


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validation_errors(request: Any) -> list[str]:
    """Return every reason the request is invalid; empty when valid."""
    if request is None:
        return ["request is missing"]

    errors: list[str] = []

    if not isinstance(request.type, ResponseType):
        errors.append(f"unknown response type: {request.type!r}")

    if not _is_int(request.severity) or not MIN_SEVERITY <= request.severity <= MAX_SEVERITY:
        errors.append(f"severity must be {MIN_SEVERITY}-{MAX_SEVERITY}, got {request.severity!r}")

    if not _is_int(request.auth_level) or not (
        AuthLevel.BASIC_STAFF <= request.auth_level <= AuthLevel.EXECUTIVE
    ):
        errors.append(f"auth_level must be 1-5, got {request.auth_level!r}")

    trigger = request.trigger_event
    if not isinstance(trigger, str) or not trigger.strip():
        errors.append("trigger_event must not be empty")
    elif len(trigger) > MAX_TRIGGER_EVENT_LENGTH:
        errors.append(f"trigger_event exceeds {MAX_TRIGGER_EVENT_LENGTH} characters")

    if not _is_int(request.target_zones) or not 0 <= request.target_zones <= ALL_ZONES:
        errors.append(f"target_zones must be a 32-bit mask, got {request.target_zones!r}")
    elif request.type in ZONE_SCOPED_TYPES and request.target_zones == 0:
        type_name = getattr(request.type, "name", request.type)
        errors.append(f"{type_name} requires at least one target zone")

    for name in ("duration", "retry_count", "timeout_seconds"):
        value = getattr(request, name)
        if not _is_int(value) or value < 0:
            errors.append(f"{name} must be a non-negative integer, got {value!r}")

    return errors


def validate_parameters(request: Any) -> bool:
    """Check a request's structural validity. No side effects beyond logging."""
    errors = validation_errors(request)
    if errors:
        logger.warning(f"Response request rejected: {'; '.join(errors)}")
        return False
    return True
