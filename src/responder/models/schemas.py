"""Data models and schemas for the facility responder.

Numeric enum values (response types, result codes, modes) are part of the
report/log contract consumed by downstream tooling and must not change.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any

ALL_ZONES = 0xFFFFFFFF
ZONE_COUNT = 32
MAX_TRIGGER_EVENT_LENGTH = 63  # 64-byte field including the terminator


class ResponseType(IntEnum):
    """Integrated response procedures."""

    LOCKDOWN = 1  # Complete facility lockdown
    NETWORK_ISOLATE = 2  # Network segmentation and isolation
    SERVICE_FAILOVER = 3  # Critical service failover
    EVACUATION = 4  # Emergency evacuation procedures
    BACKUP_ACTIVATE = 5  # Backup system activation
    COMMS_PRIORITY = 6  # Communication priority routing
    PARTIAL_CONTAIN = 7  # Partial containment measures
    FULL_RECOVERY = 8  # Full system recovery


class SystemMode(IntEnum):
    """Facility operating mode."""

    NORMAL = 0
    HEIGHTENED_SECURITY = 1
    EMERGENCY = 2
    LOCKDOWN = 3
    RECOVERY = 4


class ResponseCode(IntEnum):
    """Engine-level result codes."""

    SUCCESS = 0
    INIT_FAILED = -1
    INVALID_PARAM = -2
    HARDWARE_UNAVAILABLE = -3
    NETWORK_FAILURE = -4
    ACCESS_DENIED = -5
    TIMEOUT = -6  # Declared; no handler enforces a hard timeout
    CRITICAL_FAILURE = -99


class AuthLevel(IntEnum):
    """Declared clearance levels carried on a request."""

    BASIC_STAFF = 1
    RESEARCH = 2
    SECURITY = 3
    DEPARTMENT_HEAD = 4
    EXECUTIVE = 5


class OperationStatus(Enum):
    """Outcome of a single sub-operation."""

    SUCCESS = "success"
    FAILED = "failed"
    WARNING = "warning"


class LifecycleState(Enum):
    """Subsystem lifecycle states."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    SHUTTING_DOWN = "shutting_down"


# Types whose actuator calls are scoped by the zone mask
ZONE_SCOPED_TYPES = frozenset(
    {
        ResponseType.LOCKDOWN,
        ResponseType.NETWORK_ISOLATE,
        ResponseType.EVACUATION,
        ResponseType.PARTIAL_CONTAIN,
    }
)


def zones_in_mask(mask: int) -> list[int]:
    """Return zone indices whose bits are set, lowest first (bit 0 = zone 0)."""
    return [zone for zone in range(ZONE_COUNT) if mask & (1 << zone)]


@dataclass(frozen=True)
class ResponseRequest:
    """Caller-supplied response request. Immutable once submitted."""

    type: ResponseType
    severity: int
    target_zones: int = 0
    duration: int = 0  # seconds, consumed by the access-lock actuator only
    auth_level: int = AuthLevel.BASIC_STAFF
    trigger_event: str = ""
    timestamp: float = field(default_factory=time.time)
    retry_count: int = 0
    timeout_seconds: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": int(self.type),
            "severity": self.severity,
            "target_zones": self.target_zones,
            "duration": self.duration,
            "auth_level": int(self.auth_level),
            "trigger_event": self.trigger_event,
            "timestamp": self.timestamp,
            "retry_count": self.retry_count,
            "timeout_seconds": self.timeout_seconds,
        }


@dataclass
class SubOperationOutcome:
    """Result of one actuator call within a handler's sequence."""

    name: str
    status: OperationStatus
    code: int = 0
    attempts: int = 1
    detail: str | None = None

    @property
    def failed(self) -> bool:
        return self.status is OperationStatus.FAILED


@dataclass
class ExecutionReport:
    """Outcome of the most recently executed response."""

    response_id: int = 0
    response_type: int | None = None
    target_zones: int = 0
    trigger_event: str = ""
    start_time: float = 0.0
    end_time: float = 0.0
    overall_result: int = 0
    sub_operations: int = 0
    success_count: int = 0
    failed_count: int = 0
    warning_count: int = 0
    system_mode: SystemMode = SystemMode.NORMAL
    status_summary: str = ""
    error_details: str | None = None
    outcomes: list[SubOperationOutcome] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        if not self.end_time:
            return 0.0
        return self.end_time - self.start_time

    def to_dict(self) -> dict[str, Any]:
        """Convert report to dictionary."""
        return {
            "response_id": self.response_id,
            "response_type": self.response_type,
            "target_zones": self.target_zones,
            "trigger_event": self.trigger_event,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "overall_result": self.overall_result,
            "sub_operations": self.sub_operations,
            "success_count": self.success_count,
            "failed_count": self.failed_count,
            "warning_count": self.warning_count,
            "system_mode": self.system_mode.name,
            "status_summary": self.status_summary,
            "error_details": self.error_details,
            "outcomes": [
                {
                    "name": outcome.name,
                    "status": outcome.status.value,
                    "code": outcome.code,
                    "attempts": outcome.attempts,
                    "detail": outcome.detail,
                }
                for outcome in self.outcomes
            ],
        }


@dataclass
class SystemConfig:
    """Operator-tunable response policy."""

    max_response_time: int = 300  # seconds
    max_retry_attempts: int = 3
    enable_emergency_override: bool = True
    enable_auto_recovery: bool = False
    health_check_interval: int = 30  # seconds

    def to_dict(self) -> dict[str, Any]:
        return dict(self.__dict__)
