import random

import pytest

from trafficsim.core.incident_registry import IncidentRegistry
from trafficsim.core.road_network import RoadNetwork
from trafficsim.core.routing_service import RoutePlanner


class FakeClock:
    """Simulated-seconds clock the tests move by hand."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def network() -> RoadNetwork:
    return RoadNetwork(rng=random.Random(7))


@pytest.fixture
def incidents(clock: FakeClock) -> IncidentRegistry:
    return IncidentRegistry(clock=clock, rng=random.Random(11))


@pytest.fixture
def planner(network: RoadNetwork, incidents: IncidentRegistry) -> RoutePlanner:
    return RoutePlanner(network, incidents)
