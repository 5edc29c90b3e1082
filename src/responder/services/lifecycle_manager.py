"""
Subsystem Lifecycle Manager

Sequences actuator startup (hardware readiness, network, access control)
and best-effort teardown (restore access, clear network rules, stop
emergency services).
"""

from src.responder.core.base_service import BaseService
from src.responder.core.exceptions import HardwareError, InitializationError
from src.responder.hal.actuators import ActuatorSuite
from src.responder.models.schemas import LifecycleState
from src.responder.utils.logging import get_logger, log_error

logger = get_logger(__name__)

# Stage result codes reported on InitializationError
HARDWARE_STAGE_CODE = -2
NETWORK_STAGE_CODE = -3
ACCESS_CONTROL_STAGE_CODE = -4


class LifecycleManager(BaseService):
    """Drives UNINITIALIZED -> INITIALIZING -> READY -> SHUTTING_DOWN."""

    def __init__(self, actuators: ActuatorSuite):
        super().__init__("subsystem_lifecycle")
        self.actuators = actuators
        self.state = LifecycleState.UNINITIALIZED

    @property
    def is_ready(self) -> bool:
        return self.state is LifecycleState.READY

    async def check_hardware(self) -> bool:
        """Evaluate hardware readiness now; actuator errors count as not ready."""
        try:
            return await self.actuators.power.check_readiness()
        except HardwareError as e:
            log_error(logger, "Hardware fault during readiness check", error=e)
            return False
        except Exception as e:
            logger.error(f"Hardware readiness check raised: {e}")
            return False

    async def start_service(self) -> None:
        """Run the startup stages in order, failing fast on the first failure."""
        self.state = LifecycleState.INITIALIZING
        stages = (
            ("hardware", HARDWARE_STAGE_CODE, self.check_hardware),
            ("network", NETWORK_STAGE_CODE, self.actuators.network.initialize),
            ("access_control", ACCESS_CONTROL_STAGE_CODE, self.actuators.access.initialize),
        )
        for stage, code, run_stage in stages:
            try:
                ok = await run_stage()
            except Exception as e:
                self.state = LifecycleState.UNINITIALIZED
                raise InitializationError(f"{stage} stage raised: {e}", stage, code) from e

            if not ok:
                self.state = LifecycleState.UNINITIALIZED
                logger.error(f"Subsystem startup failed at stage: {stage}")
                raise InitializationError(f"{stage} stage failed", stage, code)

            logger.info(f"Startup stage complete: {stage}")

        self.state = LifecycleState.READY

    async def stop_service(self) -> None:
        """Run every teardown step; a failing step never aborts the rest."""
        self.state = LifecycleState.SHUTTING_DOWN
        steps = (
            ("restore_normal_access", self.actuators.access.restore_normal_access),
            ("clear_network_rules", self.actuators.network.clear_rules),
            ("stop_emergency_services", self.actuators.services.stop_emergency_services),
        )
        for name, step in steps:
            try:
                await step()
            except Exception as e:
                logger.error(f"Teardown step {name} failed: {e}")

        self.state = LifecycleState.UNINITIALIZED
