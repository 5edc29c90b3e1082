"""
Simulated actuators for running without facility hardware.

Each call is logged and recorded. An operation named in `fail_on` reports
failure; one named in `fault_on` raises ActuatorError as a hardware fault would.
"""

import logging
from typing import Any

from src.responder.core.exceptions import ActuatorError
from src.responder.hal.actuators import (
    AccessControl,
    ActuatorSuite,
    BackupSystems,
    Communications,
    EvacuationInfrastructure,
    NetworkSegmentation,
    PowerControl,
    ServiceControl,
    Surveillance,
)
from src.responder.models.schemas import ResponseRequest

logger = logging.getLogger(__name__)


class SimulatedActuator:
    """Shared call recording and failure injection."""

    domain = "SIM"

    def __init__(
        self, fail_on: set[str] | None = None, fault_on: set[str] | None = None
    ) -> None:
        self.fail_on: set[str] = set(fail_on or ())
        self.fault_on: set[str] = set(fault_on or ())
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def _record(self, operation: str, **params: Any) -> bool:
        self.calls.append((operation, params))
        if operation in self.fault_on:
            logger.info(f"[{self.domain}] {operation} {params} -> FAULT")
            raise ActuatorError(f"{operation} hardware fault", actuator=self.domain)
        ok = operation not in self.fail_on
        logger.info(f"[{self.domain}] {operation} {params} -> {'ok' if ok else 'FAILED'}")
        return ok

    def call_count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)


class SimulatedAccessControl(SimulatedActuator, AccessControl):
    domain = "ACCESS"

    async def initialize(self) -> bool:
        return self._record("initialize")

    async def lock_physical_access(self, zones: int, duration: int) -> bool:
        return self._record("lock_physical_access", zones=f"0x{zones:08X}", duration=duration)

    async def unlock_evacuation_routes(self, zones: int) -> bool:
        return self._record("unlock_evacuation_routes", zones=f"0x{zones:08X}")

    async def restore_normal_access(self) -> None:
        self._record("restore_normal_access")


class SimulatedNetworkSegmentation(SimulatedActuator, NetworkSegmentation):
    domain = "NETWORK"

    def __init__(
        self,
        fail_on: set[str] | None = None,
        fault_on: set[str] | None = None,
        fail_zones: set[int] | None = None,
    ):
        super().__init__(fail_on, fault_on)
        self.fail_zones: set[int] = set(fail_zones or ())
        self.zone_rules: list[int] = []

    async def initialize(self) -> bool:
        return self._record("initialize")

    async def isolate_segments(self, zones: int, severity: int) -> bool:
        return self._record("isolate_segments", zones=f"0x{zones:08X}", severity=severity)

    async def prepare_isolation(self) -> bool:
        self.zone_rules.clear()
        return self._record("prepare_isolation")

    async def add_zone_rule(self, zone: int) -> bool:
        ok = self._record("add_zone_rule", zone=zone)
        if zone in self.fail_zones:
            logger.info(f"[{self.domain}] zone {zone} rule rejected")
            return False
        if ok:
            self.zone_rules.append(zone)
        return ok

    async def apply_isolation(self) -> bool:
        return self._record("apply_isolation")

    async def clear_rules(self) -> None:
        self.zone_rules.clear()
        self._record("clear_rules")


class SimulatedServiceControl(SimulatedActuator, ServiceControl):
    domain = "SERVICE"

    def __init__(
        self,
        fail_on: set[str] | None = None,
        fault_on: set[str] | None = None,
        fail_services: set[str] | None = None,
    ):
        super().__init__(fail_on, fault_on)
        self.fail_services: set[str] = set(fail_services or ())

    async def stop_non_critical_services(self, zones: int) -> bool:
        return self._record("stop_non_critical_services", zones=f"0x{zones:08X}")

    async def stop_service(self, name: str) -> bool:
        return self._record("stop_service", name=name) and name not in self.fail_services

    async def start_service(self, name: str) -> bool:
        return self._record("start_service", name=name) and name not in self.fail_services

    async def stop_emergency_services(self) -> None:
        self._record("stop_emergency_services")


class SimulatedSurveillance(SimulatedActuator, Surveillance):
    domain = "SURVEILLANCE"

    async def enhance_surveillance(self, zones: int) -> bool:
        return self._record("enhance_surveillance", zones=f"0x{zones:08X}")


class SimulatedEvacuationInfrastructure(SimulatedActuator, EvacuationInfrastructure):
    domain = "EVACUATION"

    async def activate_evacuation_lighting(self, zones: int) -> None:
        self._record("activate_evacuation_lighting", zones=f"0x{zones:08X}")


class SimulatedPowerControl(SimulatedActuator, PowerControl):
    domain = "POWER"

    def __init__(
        self,
        fail_on: set[str] | None = None,
        fault_on: set[str] | None = None,
        hardware_ready: bool = True,
    ):
        super().__init__(fail_on, fault_on)
        self.hardware_ready = hardware_ready

    async def check_readiness(self) -> bool:
        return self._record("check_readiness") and self.hardware_ready

    async def power_down_non_essential(self, zones: int) -> None:
        self._record("power_down_non_essential", zones=f"0x{zones:08X}")


class SimulatedCommunications(SimulatedActuator, Communications):
    domain = "COMMS"

    async def enable_emergency_comms(self) -> None:
        self._record("enable_emergency_comms")


class SimulatedBackupSystems(SimulatedActuator, BackupSystems):
    domain = "BACKUP"

    async def activate_emergency_backups(self, severity: int) -> bool:
        return self._record("activate_emergency_backups", severity=severity)

    async def execute_partial_containment(self, request: ResponseRequest) -> bool:
        return self._record("execute_partial_containment", zones=f"0x{request.target_zones:08X}")

    async def execute_recovery_sequence(self, request: ResponseRequest) -> bool:
        return self._record("execute_recovery_sequence", trigger=request.trigger_event)


def create_simulated_suite(
    fail_on: set[str] | None = None, fault_on: set[str] | None = None
) -> ActuatorSuite:
    """Build a suite of simulated actuators sharing one failure set and one fault set."""
    return ActuatorSuite(
        access=SimulatedAccessControl(fail_on, fault_on),
        network=SimulatedNetworkSegmentation(fail_on, fault_on),
        services=SimulatedServiceControl(fail_on, fault_on),
        surveillance=SimulatedSurveillance(fail_on, fault_on),
        evacuation=SimulatedEvacuationInfrastructure(fail_on, fault_on),
        power=SimulatedPowerControl(fail_on, fault_on),
        comms=SimulatedCommunications(fail_on, fault_on),
        backups=SimulatedBackupSystems(fail_on, fault_on),
    )
