"""
Unit tests for response handlers and the sub-operation runner.

Handlers are driven directly against simulated actuators; outcome order
and codes are what the engine later aggregates into the report.
"""

import pytest

from src.responder.hal.simulated import (
    SimulatedAccessControl,
    SimulatedNetworkSegmentation,
    SimulatedServiceControl,
    create_simulated_suite,
)
from src.responder.models.schemas import OperationStatus, ResponseType
from src.responder.services.response_handlers import (
    BackupActivationHandler,
    EvacuationHandler,
    FullRecoveryHandler,
    LockdownHandler,
    NetworkIsolationHandler,
    OperationRunner,
    PartialContainmentHandler,
    ServiceFailoverHandler,
    default_handlers,
)


def names(ops):
    return [outcome.name for outcome in ops.outcomes]


class FlakyCall:
    """Coroutine factory failing a fixed number of times before succeeding."""

    def __init__(self, failures: int, raises: bool = False):
        self.failures = failures
        self.raises = raises
        self.calls = 0

    async def __call__(self) -> bool:
        self.calls += 1
        if self.calls <= self.failures:
            if self.raises:
                raise RuntimeError("controller timeout")
            return False
        return True


class TestOperationRunner:
    """Test retries and outcome recording."""

    @pytest.mark.asyncio
    async def test_success_recorded(self):
        ops = OperationRunner()

        assert await ops.run("step", FlakyCall(0), -1) is True

        outcome = ops.outcomes[0]
        assert outcome.status is OperationStatus.SUCCESS
        assert outcome.code == 0
        assert outcome.attempts == 1

    @pytest.mark.asyncio
    async def test_failure_records_code(self):
        ops = OperationRunner()

        assert await ops.run("step", FlakyCall(5), -3) is False

        outcome = ops.outcomes[0]
        assert outcome.failed
        assert outcome.code == -3
        assert outcome.detail == "actuator reported failure"

    @pytest.mark.asyncio
    async def test_retries_stop_at_first_success(self):
        ops = OperationRunner(max_attempts=4)
        call = FlakyCall(2)

        assert await ops.run("step", call, -1) is True

        assert call.calls == 3
        assert ops.outcomes[0].attempts == 3

    @pytest.mark.asyncio
    async def test_retries_exhausted(self):
        ops = OperationRunner(max_attempts=3)
        call = FlakyCall(10)

        await ops.run("step", call, -2)

        assert call.calls == 3
        assert ops.outcomes[0].attempts == 3
        assert ops.outcomes[0].code == -2

    @pytest.mark.asyncio
    async def test_raising_actuator_counts_as_failure(self):
        ops = OperationRunner()

        assert await ops.run("step", FlakyCall(1, raises=True), -1) is False

        assert ops.outcomes[0].failed
        assert "controller timeout" in ops.outcomes[0].detail

    @pytest.mark.asyncio
    async def test_hardware_fault_recorded_with_actuator(self, caplog):
        access = SimulatedAccessControl(fault_on={"lock_physical_access"})
        ops = OperationRunner(max_attempts=2)

        ok = await ops.run("lock", lambda: access.lock_physical_access(0b1, 60), -1)

        assert ok is False
        assert access.call_count("lock_physical_access") == 2
        outcome = ops.outcomes[0]
        assert outcome.code == -1
        assert outcome.detail == "hardware fault on ACCESS: lock_physical_access hardware fault"
        assert "Actuator hardware fault | operation=lock actuator=ACCESS" in caplog.messages

    @pytest.mark.asyncio
    async def test_warn_only_failure_is_warning_without_code(self):
        ops = OperationRunner()

        await ops.run("step", FlakyCall(1), -7, warn_only=True)

        outcome = ops.outcomes[0]
        assert outcome.status is OperationStatus.WARNING
        assert outcome.code == 0
        assert not outcome.failed

    @pytest.mark.asyncio
    async def test_fire_records_success(self):
        ops = OperationRunner()

        async def step():
            return None

        await ops.fire("lighting", step)

        assert ops.outcomes[0].status is OperationStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_fire_exception_becomes_warning(self):
        ops = OperationRunner()

        async def step():
            raise RuntimeError("relay stuck")

        await ops.fire("lighting", step)

        assert ops.outcomes[0].status is OperationStatus.WARNING
        assert ops.outcomes[0].code == 0

    def test_attempts_never_below_one(self):
        assert OperationRunner(max_attempts=0).max_attempts == 1


class TestLockdownHandler:
    """Test the lockdown sequence."""

    @pytest.mark.asyncio
    async def test_sequence_order(self, make_request):
        actuators = create_simulated_suite()
        ops = OperationRunner()

        await LockdownHandler().run(make_request(), actuators, ops)

        assert names(ops) == [
            "lock_physical_access",
            "isolate_network_segments",
            "stop_non_critical_services",
            "enhance_surveillance",
        ]
        assert all(outcome.status is OperationStatus.SUCCESS for outcome in ops.outcomes)

    @pytest.mark.asyncio
    async def test_all_steps_run_despite_failures(self, make_request):
        actuators = create_simulated_suite(
            fail_on={"lock_physical_access", "isolate_segments", "stop_non_critical_services"}
        )
        ops = OperationRunner()

        await LockdownHandler().run(make_request(), actuators, ops)

        assert [outcome.code for outcome in ops.outcomes] == [-1, -2, -3, 0]
        assert actuators.surveillance.call_count("enhance_surveillance") == 1

    @pytest.mark.asyncio
    async def test_hardware_fault_does_not_stop_sequence(self, make_request):
        actuators = create_simulated_suite(fault_on={"isolate_segments"})
        ops = OperationRunner()

        await LockdownHandler().run(make_request(), actuators, ops)

        assert [outcome.code for outcome in ops.outcomes] == [0, -2, 0, 0]
        assert ops.outcomes[1].detail.startswith("hardware fault on NETWORK")

    @pytest.mark.asyncio
    async def test_surveillance_failure_is_warning(self, make_request):
        actuators = create_simulated_suite(fail_on={"enhance_surveillance"})
        ops = OperationRunner()

        await LockdownHandler().run(make_request(), actuators, ops)

        assert ops.outcomes[-1].status is OperationStatus.WARNING
        assert not any(outcome.failed for outcome in ops.outcomes)

    @pytest.mark.asyncio
    async def test_passes_zones_and_duration(self, make_request):
        actuators = create_simulated_suite()

        await LockdownHandler().run(
            make_request(target_zones=0b101, duration=900), actuators, OperationRunner()
        )

        assert actuators.access.calls[0] == (
            "lock_physical_access",
            {"zones": "0x00000005", "duration": 900},
        )


class TestNetworkIsolationHandler:
    """Test per-zone network isolation."""

    @pytest.mark.asyncio
    async def test_rule_per_set_zone_lowest_first(self, make_request):
        actuators = create_simulated_suite()
        ops = OperationRunner()

        await NetworkIsolationHandler().run(
            make_request(ResponseType.NETWORK_ISOLATE, target_zones=0b10010001), actuators, ops
        )

        assert names(ops) == [
            "prepare_isolation",
            "isolate_zone_0",
            "isolate_zone_4",
            "isolate_zone_7",
            "apply_isolation",
        ]
        assert actuators.network.zone_rules == [0, 4, 7]

    @pytest.mark.asyncio
    async def test_highest_zone_included(self, make_request):
        actuators = create_simulated_suite()

        await NetworkIsolationHandler().run(
            make_request(ResponseType.NETWORK_ISOLATE, target_zones=1 << 31),
            actuators,
            OperationRunner(),
        )

        assert actuators.network.zone_rules == [31]

    @pytest.mark.asyncio
    async def test_failed_zone_does_not_stop_others(self, make_request):
        actuators = create_simulated_suite()
        actuators.network = SimulatedNetworkSegmentation(fail_zones={1})
        ops = OperationRunner()

        await NetworkIsolationHandler().run(
            make_request(ResponseType.NETWORK_ISOLATE, target_zones=0b111), actuators, ops
        )

        codes = {outcome.name: outcome.code for outcome in ops.outcomes}
        assert codes["isolate_zone_1"] == -1
        assert codes["isolate_zone_2"] == 0
        assert codes["apply_isolation"] == 0
        assert actuators.network.zone_rules == [0, 2]

    @pytest.mark.asyncio
    async def test_aggregate_failure_code(self, make_request):
        actuators = create_simulated_suite(fail_on={"apply_isolation"})
        ops = OperationRunner()

        await NetworkIsolationHandler().run(
            make_request(ResponseType.NETWORK_ISOLATE, target_zones=1), actuators, ops
        )

        assert ops.outcomes[-1].code == -2

    @pytest.mark.asyncio
    async def test_prepare_failure_is_warning(self, make_request):
        actuators = create_simulated_suite(fail_on={"prepare_isolation"})
        ops = OperationRunner()

        await NetworkIsolationHandler().run(
            make_request(ResponseType.NETWORK_ISOLATE, target_zones=1), actuators, ops
        )

        assert ops.outcomes[0].status is OperationStatus.WARNING


class TestServiceFailoverHandler:
    """Test critical service switchover."""

    @pytest.mark.asyncio
    async def test_stop_then_start_backup_per_service(self, make_request):
        actuators = create_simulated_suite()
        ops = OperationRunner()

        await ServiceFailoverHandler(["auth-service", "database-service"], settle_delay=0).run(
            make_request(ResponseType.SERVICE_FAILOVER), actuators, ops
        )

        assert names(ops) == [
            "stop_auth-service",
            "start_auth-service-backup",
            "stop_database-service",
            "start_database-service-backup",
        ]
        assert [params["name"] for _, params in actuators.services.calls] == [
            "auth-service",
            "auth-service-backup",
            "database-service",
            "database-service-backup",
        ]

    @pytest.mark.asyncio
    async def test_failure_codes(self, make_request):
        actuators = create_simulated_suite()
        actuators.services = SimulatedServiceControl(
            fail_services={"auth-service", "facility-core-backup"}
        )
        ops = OperationRunner()

        await ServiceFailoverHandler(["facility-core", "auth-service"], settle_delay=0).run(
            make_request(ResponseType.SERVICE_FAILOVER), actuators, ops
        )

        codes = {outcome.name: outcome.code for outcome in ops.outcomes}
        assert codes == {
            "stop_facility-core": 0,
            "start_facility-core-backup": -2,
            "stop_auth-service": -1,
            "start_auth-service-backup": 0,
        }


class TestEvacuationHandler:
    """Test the evacuation protocol."""

    @pytest.mark.asyncio
    async def test_route_unlock_then_fire_and_forget_steps(self, make_request):
        actuators = create_simulated_suite()
        ops = OperationRunner()

        await EvacuationHandler().run(make_request(ResponseType.EVACUATION), actuators, ops)

        assert names(ops) == [
            "unlock_evacuation_routes",
            "activate_evacuation_lighting",
            "power_down_non_essential",
            "enable_emergency_comms",
        ]

    @pytest.mark.asyncio
    async def test_route_unlock_failure_code(self, make_request):
        actuators = create_simulated_suite(fail_on={"unlock_evacuation_routes"})
        ops = OperationRunner()

        await EvacuationHandler().run(make_request(ResponseType.EVACUATION), actuators, ops)

        assert ops.outcomes[0].code == -1
        assert actuators.comms.call_count("enable_emergency_comms") == 1


class TestSingleStepHandlers:
    """Test handlers that delegate to one backup-system call."""

    @pytest.mark.parametrize(
        "handler,response_type,operation",
        [
            (BackupActivationHandler(), ResponseType.BACKUP_ACTIVATE, "activate_emergency_backups"),
            (PartialContainmentHandler(), ResponseType.PARTIAL_CONTAIN, "execute_partial_containment"),
            (FullRecoveryHandler(), ResponseType.FULL_RECOVERY, "execute_recovery_sequence"),
        ],
    )
    @pytest.mark.asyncio
    async def test_single_step(self, handler, response_type, operation, make_request):
        ok_ops = OperationRunner()
        await handler.run(make_request(response_type), create_simulated_suite(), ok_ops)

        failed_ops = OperationRunner()
        await handler.run(
            make_request(response_type), create_simulated_suite(fail_on={operation}), failed_ops
        )

        assert names(ok_ops) == [operation]
        assert ok_ops.outcomes[0].code == 0
        assert failed_ops.outcomes[0].code == -1


class TestDefaultHandlers:
    """Test the built-in dispatch table."""

    def test_comms_priority_has_no_handler(self):
        handlers = default_handlers(["facility-core"])

        assert ResponseType.COMMS_PRIORITY not in handlers
        assert set(handlers) == set(ResponseType) - {ResponseType.COMMS_PRIORITY}

    def test_failover_uses_configured_services(self):
        handlers = default_handlers(["a", "b"], settle_delay=0.1)
        failover = handlers[ResponseType.SERVICE_FAILOVER]

        assert failover.critical_services == ["a", "b"]
        assert failover.settle_delay == 0.1

    def test_every_handler_has_summary(self):
        for handler in default_handlers(["a"]).values():
            assert handler.summary
