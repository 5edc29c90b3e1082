"""
Response Handlers

One strategy per response type. Each handler runs its fixed sequence of
sub-operations against the actuators and records an ordered outcome per
step. Every declared step runs regardless of earlier failures.

Handler-local failure codes:
    Lockdown:        -1 access lock, -2 network isolation, -3 service stop
    NetworkIsolate:  -1 zone rule, -2 aggregate rule
    ServiceFailover: -1 primary stop, -2 backup start
    Evacuation:      -1 route unlock
    BackupActivate, PartialContain, FullRecovery: -1
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence

from src.responder.core.exceptions import ActuatorError
from src.responder.hal.actuators import ActuatorSuite
from src.responder.models.schemas import (
    OperationStatus,
    ResponseRequest,
    ResponseType,
    SubOperationOutcome,
    zones_in_mask,
)
from src.responder.utils.logging import get_logger, log_error

logger = get_logger(__name__)

DEFAULT_SETTLE_DELAY_S = 0.5
DEFAULT_CRITICAL_SERVICES = (
    "facility-core",
    "auth-service",
    "network-monitor",
    "database-service",
)


class OperationRunner:
    """Runs one handler's sub-operations and accumulates their outcomes."""

    def __init__(self, max_attempts: int = 1):
        self.max_attempts = max(1, max_attempts)
        self.outcomes: list[SubOperationOutcome] = []

    async def run(
        self,
        name: str,
        call: Callable[[], Awaitable[bool]],
        failure_code: int,
        warn_only: bool = False,
    ) -> bool:
        """
        Attempt a sub-operation until it succeeds or attempts run out.

        Args:
            name: Sub-operation name recorded on the outcome
            call: Zero-argument coroutine factory returning success
            failure_code: Code recorded when every attempt fails
            warn_only: Record a final failure as a warning that carries no code

        Returns:
            True if an attempt succeeded
        """
        detail = None
        attempts = 0
        for attempts in range(1, self.max_attempts + 1):
            try:
                if await call():
                    self.outcomes.append(
                        SubOperationOutcome(name, OperationStatus.SUCCESS, 0, attempts)
                    )
                    logger.debug(f"Sub-operation {name} succeeded (attempt {attempts})")
                    return True
                detail = "actuator reported failure"
            except ActuatorError as e:
                detail = f"hardware fault on {e.actuator}: {e}"
                log_error(
                    logger, "Actuator hardware fault", operation=name, actuator=e.actuator
                )
            except Exception as e:
                detail = f"actuator raised: {e}"
                logger.error(f"Sub-operation {name} raised: {e}")

        if warn_only:
            self.outcomes.append(
                SubOperationOutcome(name, OperationStatus.WARNING, 0, attempts, detail)
            )
            logger.warning(f"Sub-operation {name} degraded: {detail}")
        else:
            self.outcomes.append(
                SubOperationOutcome(name, OperationStatus.FAILED, failure_code, attempts, detail)
            )
            logger.error(f"Sub-operation {name} failed with code {failure_code}: {detail}")
        return False

    async def fire(self, name: str, call: Callable[[], Awaitable[None]]) -> None:
        """Run a fire-and-forget step; it cannot signal failure."""
        try:
            await call()
        except Exception as e:
            # No failure channel exists for these calls
            logger.error(f"Fire-and-forget step {name} raised: {e}")
            self.outcomes.append(
                SubOperationOutcome(name, OperationStatus.WARNING, 0, 1, f"raised: {e}")
            )
            return
        self.outcomes.append(SubOperationOutcome(name, OperationStatus.SUCCESS))


class ResponseHandler(ABC):
    """Strategy executing the sub-operation sequence of one response type."""

    summary: str = ""

    @abstractmethod
    async def run(
        self, request: ResponseRequest, actuators: ActuatorSuite, ops: OperationRunner
    ) -> None:
        """Run every sub-operation, recording outcomes on `ops`."""


class LockdownHandler(ResponseHandler):
    summary = "Lockdown sequence completed"

    async def run(self, request, actuators, ops):
        zones = request.target_zones
        logger.info(f"Executing lockdown, severity {request.severity}, zones 0x{zones:08X}")

        await ops.run(
            "lock_physical_access",
            lambda: actuators.access.lock_physical_access(zones, request.duration),
            -1,
        )
        await ops.run(
            "isolate_network_segments",
            lambda: actuators.network.isolate_segments(zones, request.severity),
            -2,
        )
        await ops.run(
            "stop_non_critical_services",
            lambda: actuators.services.stop_non_critical_services(zones),
            -3,
        )
        await ops.run(
            "enhance_surveillance",
            lambda: actuators.surveillance.enhance_surveillance(zones),
            0,
            warn_only=True,
        )


class NetworkIsolationHandler(ResponseHandler):
    summary = "Network isolation completed"

    async def run(self, request, actuators, ops):
        network = actuators.network
        logger.info(f"Executing network isolation, zones 0x{request.target_zones:08X}")

        await ops.run("prepare_isolation", network.prepare_isolation, 0, warn_only=True)

        for zone in zones_in_mask(request.target_zones):
            await ops.run(
                f"isolate_zone_{zone}",
                lambda zone=zone: network.add_zone_rule(zone),
                -1,
            )

        await ops.run("apply_isolation", network.apply_isolation, -2)


class ServiceFailoverHandler(ResponseHandler):
    summary = "Service failover completed"

    def __init__(
        self,
        critical_services: Sequence[str],
        settle_delay: float = DEFAULT_SETTLE_DELAY_S,
    ):
        self.critical_services = list(critical_services)
        self.settle_delay = settle_delay

    async def run(self, request, actuators, ops):
        services = actuators.services
        logger.info(f"Executing service failover for {len(self.critical_services)} services")

        for name in self.critical_services:
            backup = f"{name}-backup"
            await ops.run(f"stop_{name}", lambda name=name: services.stop_service(name), -1)
            await ops.run(
                f"start_{backup}", lambda backup=backup: services.start_service(backup), -2
            )
            if self.settle_delay > 0:
                await asyncio.sleep(self.settle_delay)


class EvacuationHandler(ResponseHandler):
    summary = "Evacuation protocol completed"

    async def run(self, request, actuators, ops):
        zones = request.target_zones
        logger.info(f"Executing evacuation protocol, zones 0x{zones:08X}")

        await ops.run(
            "unlock_evacuation_routes",
            lambda: actuators.access.unlock_evacuation_routes(zones),
            -1,
        )
        await ops.fire(
            "activate_evacuation_lighting",
            lambda: actuators.evacuation.activate_evacuation_lighting(zones),
        )
        await ops.fire(
            "power_down_non_essential",
            lambda: actuators.power.power_down_non_essential(zones),
        )
        await ops.fire("enable_emergency_comms", actuators.comms.enable_emergency_comms)


class BackupActivationHandler(ResponseHandler):
    summary = "Emergency backups activated"

    async def run(self, request, actuators, ops):
        await ops.run(
            "activate_emergency_backups",
            lambda: actuators.backups.activate_emergency_backups(request.severity),
            -1,
        )


class PartialContainmentHandler(ResponseHandler):
    summary = "Partial containment completed"

    async def run(self, request, actuators, ops):
        await ops.run(
            "execute_partial_containment",
            lambda: actuators.backups.execute_partial_containment(request),
            -1,
        )


class FullRecoveryHandler(ResponseHandler):
    summary = "Full recovery sequence completed"

    async def run(self, request, actuators, ops):
        await ops.run(
            "execute_recovery_sequence",
            lambda: actuators.backups.execute_recovery_sequence(request),
            -1,
        )


def default_handlers(
    critical_services: Sequence[str],
    settle_delay: float = DEFAULT_SETTLE_DELAY_S,
) -> dict[ResponseType, ResponseHandler]:
    """Build the built-in dispatch table. COMMS_PRIORITY has no handler."""
    return {
        ResponseType.LOCKDOWN: LockdownHandler(),
        ResponseType.NETWORK_ISOLATE: NetworkIsolationHandler(),
        ResponseType.SERVICE_FAILOVER: ServiceFailoverHandler(critical_services, settle_delay),
        ResponseType.EVACUATION: EvacuationHandler(),
        ResponseType.BACKUP_ACTIVATE: BackupActivationHandler(),
        ResponseType.PARTIAL_CONTAIN: PartialContainmentHandler(),
        ResponseType.FULL_RECOVERY: FullRecoveryHandler(),
    }
