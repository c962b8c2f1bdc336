from typing import Dict, Iterable, List, Optional, Tuple, Union

import networkx as nx

from trafficsim.core.cost_model import eco_stats, effective_cost, toll_fee
from trafficsim.core.incident_registry import IncidentRegistry
from trafficsim.core.road_network import RoadNetwork
from trafficsim.core.vehicle_profiles import VehicleProfile
from trafficsim.errors import NoPathFound, RouteError, TrivialRoute, UnknownNode
from trafficsim.logging_utils import log_event
from trafficsim.models import Edge, RouteResult, RouteSegment


class RoutePlanner:
    """
    Fastest-route search over the current network state. Holds no state of its own:
    each query builds its own distance/predecessor scratch inside networkx.

    Tie-break: among parallel roads between two nodes the cheapest admissible one is
    taken (lowest key when equal); among frontier entries with equal distance the one
    pushed first is settled first, and an equal-cost detour never replaces a path
    already found.
    """

    def __init__(self, network: RoadNetwork, incidents: IncidentRegistry):
        self.network = network
        self.incidents = incidents

    def is_admissible(self, edge: Edge, from_node: str, vehicle: VehicleProfile,
                      now: Optional[float] = None) -> bool:
        if edge.blocked:
            return False
        if self.incidents.is_blocking(edge, from_node, now):
            return False
        return vehicle.can_use(edge.road_type)

    def compute_route(self, source: str, destination: str, vehicle: VehicleProfile) -> RouteResult:
        if source == destination:
            raise TrivialRoute(
                "Source and destination are identical, no route needed",
                details={"node": source},
            )

        # Network first, registry second: one consistent snapshot for the whole query
        with self.network.lock, self.incidents.lock:
            for role, node in (("source", source), ("destination", destination)):
                if not self.network.has_node(node):
                    raise UnknownNode(
                        f"{role.capitalize()} node '{node}' doesn't exist in the map",
                        details={role: node},
                    )

            now = self.incidents.now()
            chosen: Dict[Tuple[str, str], Edge] = {}

            def segment_cost(u: str, w: str, parallel: Dict[int, Dict]) -> Optional[int]:
                best: Optional[Tuple[int, Edge]] = None
                for data in parallel.values():
                    edge = data["edge"]
                    if not self.is_admissible(edge, u, vehicle, now):
                        continue
                    cost = effective_cost(edge, vehicle)
                    if best is None or cost < best[0]:
                        best = (cost, edge)
                if best is None:
                    return None  # hides the hop from the search
                chosen[(u, w)] = best[1]
                return best[0]

            try:
                total_time, path = nx.single_source_dijkstra(
                    self.network.graph, source, target=destination, weight=segment_cost
                )
            except nx.NetworkXNoPath:
                log_event("route_not_found", source=source, destination=destination, vehicle=vehicle.kind.value)
                raise NoPathFound(
                    f"No path exists from {source} to {destination} for {vehicle.name}",
                    details={"source": source, "destination": destination, "vehicle": vehicle.kind.value},
                ) from None

            segments = self._build_segments(path, chosen, vehicle)

        total_distance = sum(segment.base_weight for segment in segments)
        result = RouteResult(
            path=path,
            total_time_seconds=int(total_time),
            total_toll=sum(segment.toll for segment in segments),
            total_distance=total_distance,
            vehicle=vehicle.name,
            emergency=vehicle.emergency,
            segments=segments,
            eco=eco_stats(vehicle, total_distance),
        )
        log_event("route_computed", source=source, destination=destination, vehicle=vehicle.kind.value,
                  hops=len(segments), total_time_seconds=result.total_time_seconds, total_toll=result.total_toll)
        return result

    def _build_segments(self, path: List[str], chosen: Dict[Tuple[str, str], Edge],
                        vehicle: VehicleProfile) -> List[RouteSegment]:
        segments = []
        for u, w in zip(path, path[1:]):
            edge = chosen[(u, w)]
            segments.append(
                RouteSegment(
                    source=u,
                    destination=w,
                    road_type=edge.road_type,
                    base_weight=edge.base_weight,  # distance ignores weather and congestion
                    cost_seconds=effective_cost(edge, vehicle),
                    toll=toll_fee(edge.road_type),
                )
            )
        return segments

    def compare_vehicles(self, source: str, destination: str,
                         vehicles: Iterable[VehicleProfile]) -> Dict[str, Union[RouteResult, str]]:
        """Same query for several vehicles; failed queries report their reason code."""
        outcomes: Dict[str, Union[RouteResult, str]] = {}
        for vehicle in vehicles:
            label = f"{vehicle.kind.value}:emergency" if vehicle.emergency else vehicle.kind.value
            try:
                outcomes[label] = self.compute_route(source, destination, vehicle)
            except RouteError as exc:
                outcomes[label] = exc.reason_code
        return outcomes
