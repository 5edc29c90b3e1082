"""
Integrated Response Execution Engine

Dispatches response requests to their handlers, serializes executions
behind a single lock and owns the one live execution report.

Concurrency:
- execute() holds the engine lock for its whole run; one response body
  executes at a time per engine.
- emergency_sequence() returns immediately; the synthesized lockdown runs
  as a background task that queues on the same lock.
- get_last_report() takes no lock and may observe a report mid-update.
- In-flight handlers cannot be cancelled and no hard timeout is enforced.
"""

import asyncio
import time

from prometheus_client import Counter, Histogram

from src.responder.core.exceptions import (
    ConfigurationError,
    InvalidParameterError,
    SafetyInterlockError,
)
from src.responder.hal.actuators import ActuatorSuite
from src.responder.models.schemas import (
    ALL_ZONES,
    AuthLevel,
    ExecutionReport,
    OperationStatus,
    ResponseCode,
    ResponseRequest,
    ResponseType,
    SubOperationOutcome,
    SystemConfig,
    SystemMode,
)
from src.responder.services.lifecycle_manager import LifecycleManager
from src.responder.services.report_builder import FailurePolicy, ReportBuilder
from src.responder.services.request_validator import validation_errors
from src.responder.services.response_handlers import (
    DEFAULT_CRITICAL_SERVICES,
    DEFAULT_SETTLE_DELAY_S,
    OperationRunner,
    ResponseHandler,
    default_handlers,
)
from src.responder.utils.logging import LogContext, get_logger, log_info, log_warning

logger = get_logger(__name__)

EMERGENCY_SEVERITY = 10
EMERGENCY_DURATION_S = 3600
EMERGENCY_TRIGGER = "Manual emergency trigger"

RESPONSE_EXECUTIONS = Counter(
    "responder_executions_total",
    "Integrated response executions by type and overall result",
    ["response_type", "result"],
)
RESPONSE_DURATION = Histogram(
    "responder_execution_seconds",
    "Integrated response execution time in seconds",
    ["response_type"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

# Posture modes that a lesser response must not downgrade
_ESCALATED_MODES = (SystemMode.EMERGENCY, SystemMode.LOCKDOWN)


class ResponseEngine:
    """Response dispatcher with its own lock, report slot and subsystem state."""

    def __init__(
        self,
        actuators: ActuatorSuite,
        config: SystemConfig | None = None,
        handlers: dict[ResponseType, ResponseHandler] | None = None,
        failure_policy: FailurePolicy = FailurePolicy.LAST,
        critical_services: list[str] | None = None,
        settle_delay: float = DEFAULT_SETTLE_DELAY_S,
        emergency_duration: int = EMERGENCY_DURATION_S,
    ):
        """
        Initialize the engine.

        Args:
            actuators: Actuator capabilities the handlers drive
            config: Response policy; defaults to SystemConfig()
            handlers: Dispatch table; defaults to the built-in handlers
            failure_policy: Which failure sets the overall result
            critical_services: Services switched over by SERVICE_FAILOVER
            settle_delay: Pause after each service switchover, seconds
            emergency_duration: Lock duration of the emergency override lockdown
        """
        self.actuators = actuators
        self.config = config or SystemConfig()
        self.lifecycle = LifecycleManager(actuators)
        self.report_builder = ReportBuilder(failure_policy)
        self.emergency_duration = emergency_duration

        if handlers is None:
            handlers = default_handlers(critical_services or DEFAULT_CRITICAL_SERVICES, settle_delay)
        self._handlers: dict[ResponseType, ResponseHandler] = dict(handlers)

        self._lock = asyncio.Lock()
        self._last_report: ExecutionReport | None = None
        self._override_tasks: set[asyncio.Task] = set()

        self.initialized = False
        self.emergency_mode = False
        self.current_level = 0
        self.mode = SystemMode.NORMAL

    @classmethod
    def from_config(cls, app_config, actuators: ActuatorSuite) -> "ResponseEngine":
        """Build an engine from the loaded application configuration."""
        response = app_config.response
        return cls(
            actuators,
            config=app_config.to_system_config(),
            failure_policy=FailurePolicy.from_name(response.RESPONSE_FAILURE_POLICY),
            critical_services=list(app_config.facility.FACILITY_CRITICAL_SERVICES),
            settle_delay=response.RESPONSE_FAILOVER_SETTLE_DELAY_S,
            emergency_duration=app_config.facility.FACILITY_EMERGENCY_DURATION_S,
        )

    @property
    def is_locked(self) -> bool:
        """True while a response holds the execution lock."""
        return self._lock.locked()

    async def initialize(self) -> None:
        """
        Run subsystem startup. A second call while initialized is a no-op.

        Raises:
            InitializationError: With the failing stage and its code
        """
        if self.initialized:
            logger.debug("Response engine already initialized")
            return

        logger.info("Initializing integrated response system")
        await self.lifecycle.start()

        self.initialized = True
        self.emergency_mode = False
        self.current_level = 0
        self.mode = SystemMode.NORMAL
        logger.info("Integrated response system ready")

    async def execute(self, request: ResponseRequest | None) -> int:
        """
        Execute one response request, overwriting the live report.

        Args:
            request: The response to carry out

        Returns:
            0 on success, otherwise the error code also recorded in the report
        """
        if request is None:
            logger.warning("Execute rejected: no request supplied")
            return ResponseCode.INIT_FAILED

        async with self._lock:
            if not self.initialized:
                logger.warning("Execute rejected: subsystem not initialized")
                return ResponseCode.INIT_FAILED
            return await self._execute_locked(request)

    async def _execute_locked(self, request: ResponseRequest) -> int:
        report = self.report_builder.begin(request, self.mode)
        self._last_report = report
        type_name = getattr(request.type, "name", str(request.type))

        with LogContext(f"response-{report.response_id}"):
            log_info(
                logger,
                "Executing integrated response",
                trigger=request.trigger_event,
                type=type_name,
                severity=request.severity,
                zones=f"0x{request.target_zones:08X}"
                if isinstance(request.target_zones, int)
                else request.target_zones,
            )

            try:
                handler = self._handlers.get(request.type)
            except TypeError:
                handler = None

            errors = validation_errors(request) if handler is not None else []
            started = time.perf_counter()

            if handler is None:
                result = self.report_builder.reject(
                    report,
                    ResponseCode.CRITICAL_FAILURE,
                    "Unknown response type",
                    f"No handler registered for response type {type_name}",
                )
            elif errors:
                log_warning(logger, "Response request rejected", reasons="; ".join(errors))
                result = self.report_builder.reject(
                    report, ResponseCode.INVALID_PARAM, "Request rejected", "; ".join(errors)
                )
            else:
                result = await self._run_handler(handler, request, report, started)

            elapsed = time.perf_counter() - started
            RESPONSE_EXECUTIONS.labels(response_type=type_name, result=str(int(result))).inc()
            RESPONSE_DURATION.labels(response_type=type_name).observe(elapsed)
            log_info(
                logger,
                "Response execution finished",
                result=int(result),
                succeeded=report.success_count,
                failed=report.failed_count,
                warnings=report.warning_count,
            )

        return result

    async def _run_handler(
        self,
        handler: ResponseHandler,
        request: ResponseRequest,
        report: ExecutionReport,
        started: float,
    ) -> int:
        ops = OperationRunner(1 + min(request.retry_count, self.config.max_retry_attempts))
        try:
            await handler.run(request, self.actuators, ops)
        except Exception as e:
            logger.exception(f"Response handler {type(handler).__name__} raised: {e}")
            ops.outcomes.append(
                SubOperationOutcome(
                    "handler",
                    OperationStatus.FAILED,
                    ResponseCode.CRITICAL_FAILURE,
                    detail=str(e),
                )
            )

        result = self.report_builder.complete(report, ops.outcomes, handler.summary)
        self._check_deadline(request, report, time.perf_counter() - started)
        self._update_mode(request.type, result)
        return result

    def _check_deadline(
        self, request: ResponseRequest, report: ExecutionReport, elapsed: float
    ) -> None:
        limits = [
            limit
            for limit in (request.timeout_seconds, self.config.max_response_time)
            if limit > 0
        ]
        if limits and elapsed > min(limits):
            log_warning(
                logger,
                "Response exceeded its time limit",
                elapsed_s=f"{elapsed:.2f}",
                limit_s=min(limits),
            )
            self.report_builder.note_overrun(report, elapsed, min(limits))

    def _update_mode(self, response_type: ResponseType, result: int) -> None:
        if response_type is ResponseType.LOCKDOWN:
            self.mode = SystemMode.LOCKDOWN
        elif response_type is ResponseType.EVACUATION:
            self.mode = SystemMode.EMERGENCY
        elif response_type is ResponseType.FULL_RECOVERY:
            if result != ResponseCode.SUCCESS:
                return
            if self.config.enable_auto_recovery:
                self.clear_emergency()
            else:
                self.mode = SystemMode.RECOVERY
        elif self.mode not in _ESCALATED_MODES:
            self.mode = SystemMode.HEIGHTENED_SECURITY

    def emergency_sequence(self, level: int) -> asyncio.Task:
        """
        Trigger the emergency override without waiting for it.

        Sets emergency mode immediately and schedules a maximal-severity,
        all-zones lockdown on the running loop. The lockdown still queues
        behind any in-flight response.

        Args:
            level: Emergency level 1-10

        Returns:
            Task resolving to the lockdown's result code

        Raises:
            SafetyInterlockError: If the emergency override is disabled
            InvalidParameterError: If level is out of range
        """
        if not self.config.enable_emergency_override:
            raise SafetyInterlockError("Emergency override is disabled by configuration")
        if isinstance(level, bool) or not isinstance(level, int) or not 1 <= level <= 10:
            raise InvalidParameterError(f"Emergency level must be 1-10, got {level!r}")

        loop = asyncio.get_running_loop()
        logger.critical(f"Emergency sequence triggered, level {level}")

        self.emergency_mode = True
        self.current_level = level
        self.mode = SystemMode.EMERGENCY

        request = ResponseRequest(
            type=ResponseType.LOCKDOWN,
            severity=EMERGENCY_SEVERITY,
            target_zones=ALL_ZONES,
            duration=self.emergency_duration,
            auth_level=AuthLevel.EXECUTIVE,
            trigger_event=EMERGENCY_TRIGGER,
        )
        task = loop.create_task(self.execute(request), name=f"emergency-override-{level}")
        self._override_tasks.add(task)
        task.add_done_callback(self._override_tasks.discard)
        return task

    def get_last_report(self) -> ExecutionReport | None:
        """Return the live report by reference; no snapshot isolation."""
        return self._last_report

    async def subsystem_ready(self) -> bool:
        """Initialized, not in emergency mode, and hardware ready right now."""
        if not self.initialized or self.emergency_mode:
            return False
        return await self.lifecycle.check_hardware()

    def get_system_status(self) -> SystemMode:
        return self.mode

    def clear_emergency(self) -> None:
        """Leave emergency mode and return to normal operation."""
        if self.emergency_mode:
            logger.info(f"Clearing emergency mode (level {self.current_level})")
        self.emergency_mode = False
        self.current_level = 0
        self.mode = SystemMode.NORMAL

    def update_config(self, config: SystemConfig) -> None:
        """
        Apply a new response policy.

        Raises:
            ConfigurationError: If any value is out of range
        """
        if not isinstance(config, SystemConfig):
            raise ConfigurationError("update_config requires a SystemConfig")
        if config.max_response_time <= 0:
            raise ConfigurationError("max_response_time must be positive")
        if config.max_retry_attempts < 0:
            raise ConfigurationError("max_retry_attempts must not be negative")
        if config.health_check_interval <= 0:
            raise ConfigurationError("health_check_interval must be positive")

        self.config = config
        logger.info(f"Response configuration updated: {config.to_dict()}")

    def register_handler(self, response_type: ResponseType, handler: ResponseHandler) -> None:
        """Install or replace the handler for a response type."""
        if not isinstance(response_type, ResponseType):
            raise InvalidParameterError(f"Unknown response type: {response_type!r}")
        self._handlers[response_type] = handler
        logger.info(f"Handler registered for {response_type.name}: {type(handler).__name__}")

    def has_handler(self, response_type: ResponseType) -> bool:
        return response_type in self._handlers

    async def cleanup(self) -> None:
        """Tear down subsystems once any in-flight response finishes."""
        if not self.initialized:
            logger.debug("Cleanup skipped: subsystem not initialized")
            return

        async with self._lock:
            if not self.initialized:
                return
            logger.info("Cleaning up response system resources")
            await self.lifecycle.stop()
            self.initialized = False
            self.mode = SystemMode.NORMAL

        logger.info("Response system cleanup complete")

    def get_status(self) -> dict:
        """Get engine status information."""
        return {
            "initialized": self.initialized,
            "emergency_mode": self.emergency_mode,
            "current_level": self.current_level,
            "system_mode": self.mode.name,
            "lifecycle_state": self.lifecycle.state.value,
            "executing": self.is_locked,
            "pending_overrides": len(self._override_tasks),
            "failure_policy": self.report_builder.policy.value,
            "config": self.config.to_dict(),
        }
