"""
Shared pytest fixtures for responder tests.
These fixtures are available to all test files automatically.
"""

import pytest
import pytest_asyncio

from src.responder.hal.actuators import ActuatorSuite
from src.responder.hal.simulated import create_simulated_suite
from src.responder.models.schemas import ALL_ZONES, ResponseRequest, ResponseType
from src.responder.services.response_engine import ResponseEngine


def pytest_collection_modifyitems(config, items):
    """Mark tests by directory."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
        elif "property" in path:
            item.add_marker(pytest.mark.property)


def build_request(response_type: ResponseType = ResponseType.LOCKDOWN, **overrides) -> ResponseRequest:
    """Build a valid request, overriding any field."""
    params = {
        "type": response_type,
        "severity": 5,
        "target_zones": 0b1011,
        "duration": 600,
        "auth_level": 3,
        "trigger_event": "Perimeter breach sensor 4",
    }
    params.update(overrides)
    return ResponseRequest(**params)


@pytest.fixture
def make_request():
    """Factory for valid response requests."""
    return build_request


@pytest.fixture
def lockdown_request():
    """Maximal lockdown across every zone."""
    return build_request(
        ResponseType.LOCKDOWN, severity=10, target_zones=ALL_ZONES, duration=3600
    )


@pytest.fixture
def actuators() -> ActuatorSuite:
    """Simulated actuators that all succeed."""
    return create_simulated_suite()


@pytest.fixture
def engine(actuators) -> ResponseEngine:
    """Uninitialized engine with no failover settle delay."""
    return ResponseEngine(actuators, settle_delay=0)


@pytest_asyncio.fixture
async def ready_engine(engine):
    """Initialized engine, cleaned up after the test."""
    await engine.initialize()
    yield engine
    await engine.cleanup()
