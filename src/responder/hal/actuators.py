"""
Actuator capability interfaces.

One narrow interface per facility domain. Every call is idempotent and
signals success or failure through its return value; zones and services are
passed as structured data, never interpolated into command text.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.responder.models.schemas import ResponseRequest


class AccessControl(ABC):
    """Physical door and lock control."""

    @abstractmethod
    async def initialize(self) -> bool:
        """Bring the access-control subsystem online."""

    @abstractmethod
    async def lock_physical_access(self, zones: int, duration: int) -> bool:
        """Lock all doors in the zone mask for `duration` seconds."""

    @abstractmethod
    async def unlock_evacuation_routes(self, zones: int) -> bool:
        """Release locks along evacuation routes in the zone mask."""

    @abstractmethod
    async def restore_normal_access(self) -> None:
        """Return every door to its normal schedule."""


class NetworkSegmentation(ABC):
    """Network firewall and segmentation control."""

    @abstractmethod
    async def initialize(self) -> bool:
        """Bring the network subsystem online."""

    @abstractmethod
    async def isolate_segments(self, zones: int, severity: int) -> bool:
        """Isolate the network segments serving the zone mask."""

    @abstractmethod
    async def prepare_isolation(self) -> bool:
        """Reset the emergency rule set before per-zone rules are added."""

    @abstractmethod
    async def add_zone_rule(self, zone: int) -> bool:
        """Install one isolation rule for a single zone index."""

    @abstractmethod
    async def apply_isolation(self) -> bool:
        """Activate the emergency rule set on forwarded traffic."""

    @abstractmethod
    async def clear_rules(self) -> None:
        """Remove every emergency rule."""


class ServiceControl(ABC):
    """Service lifecycle management."""

    @abstractmethod
    async def stop_non_critical_services(self, zones: int) -> bool:
        """Stop services not required during a lockdown."""

    @abstractmethod
    async def stop_service(self, name: str) -> bool:
        """Stop one named service instance."""

    @abstractmethod
    async def start_service(self, name: str) -> bool:
        """Start one named service instance."""

    @abstractmethod
    async def stop_emergency_services(self) -> None:
        """Stop services started for emergency operation."""


class Surveillance(ABC):
    """Camera and monitoring control."""

    @abstractmethod
    async def enhance_surveillance(self, zones: int) -> bool:
        """Raise monitoring coverage for the zone mask."""


class EvacuationInfrastructure(ABC):
    """Evacuation lighting and signage. Calls cannot report failure."""

    @abstractmethod
    async def activate_evacuation_lighting(self, zones: int) -> None:
        """Switch on evacuation lighting for the zone mask."""


class PowerControl(ABC):
    """Facility power distribution."""

    @abstractmethod
    async def check_readiness(self) -> bool:
        """Report whether facility hardware is ready for actuation."""

    @abstractmethod
    async def power_down_non_essential(self, zones: int) -> None:
        """Shed non-essential loads in the zone mask."""


class Communications(ABC):
    """Emergency communication channels."""

    @abstractmethod
    async def enable_emergency_comms(self) -> None:
        """Enable facility-wide emergency communications."""


class BackupSystems(ABC):
    """Backup activation and composite containment/recovery procedures."""

    @abstractmethod
    async def activate_emergency_backups(self, severity: int) -> bool:
        """Activate emergency backups scaled to severity."""

    @abstractmethod
    async def execute_partial_containment(self, request: ResponseRequest) -> bool:
        """Run the composite partial-containment procedure."""

    @abstractmethod
    async def execute_recovery_sequence(self, request: ResponseRequest) -> bool:
        """Run the composite full-recovery procedure."""


@dataclass
class ActuatorSuite:
    """The full set of actuators an engine drives."""

    access: AccessControl
    network: NetworkSegmentation
    services: ServiceControl
    surveillance: Surveillance
    evacuation: EvacuationInfrastructure
    power: PowerControl
    comms: Communications
    backups: BackupSystems
