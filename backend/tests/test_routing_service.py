import itertools
import random

import pytest

from trafficsim.core.cost_model import effective_cost
from trafficsim.core.incident_registry import IncidentRegistry
from trafficsim.core.road_network import RoadNetwork
from trafficsim.core.routing_service import RoutePlanner
from trafficsim.core.vehicle_profiles import make_vehicle
from trafficsim.data.default_map import DEFAULT_ROADS
from trafficsim.errors import NoPathFound, TrivialRoute, UnknownNode
from trafficsim.models import RoadType


def _cost_or_none(planner: RoutePlanner, source: str, destination: str, vehicle):
    try:
        return planner.compute_route(source, destination, vehicle).total_time_seconds
    except NoPathFound:
        return None


def test_same_source_and_destination_is_trivial(network: RoadNetwork, planner: RoutePlanner) -> None:
    network.load_roads(DEFAULT_ROADS)
    for node in ("Downtown", "Nowhere"):
        with pytest.raises(TrivialRoute):
            planner.compute_route(node, node, make_vehicle("car"))


def test_unknown_endpoints_are_rejected(network: RoadNetwork, planner: RoutePlanner) -> None:
    network.add_road("A", "B", 100, 0)
    with pytest.raises(UnknownNode):
        planner.compute_route("A", "Nowhere", make_vehicle("car"))
    with pytest.raises(UnknownNode):
        planner.compute_route("Nowhere", "B", make_vehicle("car"))


def test_single_road_route(network: RoadNetwork, planner: RoutePlanner) -> None:
    network.add_road("A", "B", 100, 0, "General")

    route = planner.compute_route("A", "B", make_vehicle("car"))

    assert route.path == ["A", "B"]
    assert route.total_time_seconds == 100
    assert route.total_distance == 100
    assert route.total_toll == 0
    assert route.vehicle == "Car"


def test_blocked_only_road_means_no_path(network: RoadNetwork, planner: RoutePlanner) -> None:
    network.add_road("A", "B", 100, 0, "General")
    network.manual_block("A", "B", True)

    with pytest.raises(NoPathFound):
        planner.compute_route("A", "B", make_vehicle("car"))
    # reverse direction is untouched
    assert planner.compute_route("B", "A", make_vehicle("car")).total_time_seconds == 100


def test_vehicle_cannot_use_road_type(network: RoadNetwork, planner: RoutePlanner) -> None:
    network.add_road("A", "B", 100, 0, "Bus Lane")

    with pytest.raises(NoPathFound):
        planner.compute_route("A", "B", make_vehicle("bike"))
    assert planner.compute_route("A", "B", make_vehicle("bus")).total_time_seconds == 142


def test_storm_weather_raises_route_cost(network: RoadNetwork, planner: RoutePlanner) -> None:
    network.add_road("A", "B", 100, 0, "General")
    network.apply_weather_effect(0.6)
    assert planner.compute_route("A", "B", make_vehicle("car")).total_time_seconds == 166


def test_picks_faster_multi_hop_route_and_sums_tolls(network: RoadNetwork, planner: RoutePlanner) -> None:
    network.add_road("A", "B", 100, 0, "Highway")
    network.add_road("B", "C", 50, 0, "Bridge")
    network.add_road("A", "C", 400, 0, "General")

    route = planner.compute_route("A", "C", make_vehicle("car"))

    assert route.path == ["A", "B", "C"]
    assert route.total_time_seconds == 150
    assert route.total_toll == 8
    assert route.total_distance == 150
    assert [segment.road_type for segment in route.segments] == [RoadType.HIGHWAY, RoadType.BRIDGE]
    assert route.eco is not None and route.eco.co2_kg == pytest.approx(18.0)


def test_distance_uses_base_weight_not_dynamic_weight(network: RoadNetwork, planner: RoutePlanner) -> None:
    network.add_road("A", "B", 100, 20, "Tunnel")
    network.apply_rush_hour()
    congestion = network.neighbors("A")[0].congestion

    route = planner.compute_route("A", "B", make_vehicle("car"))

    assert route.total_distance == 100
    assert route.total_toll == 7
    assert route.total_time_seconds == int(150 * (1 + 0.1 * congestion) + 20)


def test_cheapest_parallel_edge_is_used(network: RoadNetwork, planner: RoutePlanner) -> None:
    network.add_road("A", "B", 300, 0, "General")
    network.add_road("A", "B", 120, 0, "Highway")

    route = planner.compute_route("A", "B", make_vehicle("car"))
    assert route.total_time_seconds == 120
    assert route.total_toll == 5

    # blocking the cheaper parallel road falls back to the other one
    for edge in network.edges_between("A", "B"):
        if edge.road_type is RoadType.HIGHWAY:
            edge.blocked = True
    route = planner.compute_route("A", "B", make_vehicle("car"))
    assert route.total_time_seconds == 300
    assert route.total_toll == 0


def test_incident_forces_detour_until_it_expires(clock, network: RoadNetwork, incidents: IncidentRegistry,
                                                 planner: RoutePlanner) -> None:
    network.add_road("A", "Main St", 50, 0, "General")
    network.add_road("Main St", "C", 50, 0, "General")
    network.add_road("A", "C", 200, 0, "General")
    car = make_vehicle("car")
    assert planner.compute_route("A", "C", car).path == ["A", "Main St", "C"]

    incidents.report("Main St", "Accident", 3, RoadType.GENERAL)
    detour = planner.compute_route("A", "C", car)
    assert detour.path == ["A", "C"]
    assert detour.total_time_seconds == 200

    clock.advance(301)
    assert planner.compute_route("A", "C", car).total_time_seconds == 100


def test_emergency_vehicle_uses_emergency_roads_and_is_faster(network: RoadNetwork, planner: RoutePlanner) -> None:
    network.load_roads(DEFAULT_ROADS)

    with pytest.raises(NoPathFound):
        planner.compute_route("Downtown", "Emergency Hospital", make_vehicle("car"))

    ambulance = planner.compute_route("Downtown", "Emergency Hospital", make_vehicle("ambulance", emergency=True))
    assert ambulance.path == ["Downtown", "Airport", "Emergency Hospital"]
    # (500 + 120) / 1.5 + (100 + 10) / 1.5
    assert ambulance.total_time_seconds == 413 + 73
    assert ambulance.total_toll == 5
    assert ambulance.emergency is True


def test_query_leaves_network_state_untouched(network: RoadNetwork, planner: RoutePlanner) -> None:
    network.load_roads(DEFAULT_ROADS)
    network.apply_rush_hour()
    before = network.export_snapshot()

    planner.compute_route("Downtown", "Uptown", make_vehicle("car"))

    assert network.export_snapshot() == before


def test_blocking_never_lowers_optimal_cost(incidents: IncidentRegistry) -> None:
    rng = random.Random(2024)
    road_types = ["General", "Highway", "Bridge", "Tunnel"]
    car = make_vehicle("car")

    for _ in range(5):
        network = RoadNetwork(rng=rng)
        nodes = [f"N{i}" for i in range(7)]
        for u, v in itertools.combinations(nodes, 2):
            if rng.random() < 0.4:
                network.add_road(u, v, rng.randint(10, 200), rng.randint(0, 30), rng.choice(road_types))
        planner = RoutePlanner(network, incidents)
        present = [n for n in nodes if network.has_node(n)]
        pairs = [(s, d) for s, d in itertools.permutations(present, 2)]
        baseline = {pair: _cost_or_none(planner, *pair, car) for pair in pairs}

        for edge in list(network.iter_edges()):
            edge.blocked = True
            for pair in pairs:
                before = baseline[pair]
                after = _cost_or_none(planner, *pair, car)
                if before is None:
                    assert after is None
                elif after is not None:
                    assert after >= before
            edge.blocked = False


def test_route_cost_matches_sum_of_segment_costs(network: RoadNetwork, planner: RoutePlanner) -> None:
    network.load_roads(DEFAULT_ROADS)
    network.apply_rush_hour()
    network.apply_weather_effect(0.85)
    bike = make_vehicle("bike")

    route = planner.compute_route("Bike Trail", "Market St", bike)

    assert route.path[0] == "Bike Trail" and route.path[-1] == "Market St"
    assert route.total_time_seconds == sum(segment.cost_seconds for segment in route.segments)
    for segment in route.segments:
        costs = [effective_cost(e, bike) for e in network.edges_between(segment.source, segment.destination)]
        assert segment.cost_seconds == min(costs)


def test_compare_vehicles_reports_each_outcome(network: RoadNetwork, planner: RoutePlanner) -> None:
    network.add_road("A", "B", 300, 0, "General")
    network.add_road("B", "C", 100, 0, "Bus Lane")

    outcomes = planner.compare_vehicles(
        "A", "C", [make_vehicle("car"), make_vehicle("bus"), make_vehicle("ambulance", emergency=True)]
    )

    assert outcomes["car"] == "no_path_found"
    assert outcomes["bus"].total_time_seconds == 428 + 142
    assert outcomes["ambulance:emergency"] == "no_path_found"


def test_query_reads_incident_clock_once(clock, network: RoadNetwork) -> None:
    reads = []

    def ticking_clock() -> float:
        # each read moves time forward, like a wall clock would
        reads.append(clock.now)
        clock.advance(1)
        return reads[-1]

    incidents = IncidentRegistry(clock=ticking_clock, rng=random.Random(1))
    network.add_road("A", "Main St", 50, 0, "General")
    network.add_road("Main St", "C", 50, 0, "General")
    network.add_road("A", "C", 200, 0, "General")
    incidents.report("Main St", "Accident", 2, RoadType.GENERAL)
    clock.advance(299)  # the next read is the last second the incident is live
    reads.clear()

    route = RoutePlanner(network, incidents).compute_route("A", "C", make_vehicle("car"))

    assert reads == [300.0]
    assert route.path == ["A", "C"]
