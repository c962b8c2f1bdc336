import math
import random
import threading
from typing import Iterable, List, Optional, Tuple, Union

import networkx as nx

from trafficsim.errors import InvalidInput, UnknownNode
from trafficsim.logging_utils import log_event
from trafficsim.models import BaseEdge, Edge, RoadType, SnapshotRow

MAX_CONGESTION = 5
RUSH_HOUR_FACTOR = 1.5

# (source, destination, weight, signal delay, road type)
RoadSpec = Tuple[str, str, int, int, Union[RoadType, str]]


def _parse_road_type(road_type: Union[RoadType, str]) -> RoadType:
    try:
        parsed = RoadType(road_type)
    except ValueError:
        raise InvalidInput(
            f"Unknown road type '{road_type}'",
            details={"allowed": [r.value for r in RoadType if r is not RoadType.ALL]},
        ) from None
    if parsed is RoadType.ALL:
        raise InvalidInput("'All' is a wildcard and cannot be the type of a road")
    return parsed


class RoadNetwork:
    """
    Bidirectional road graph. Every road is stored as two directed multigraph edges,
    each carrying an Edge record (mutable runtime state) wrapping its immutable BaseEdge.
    Parallel roads between the same pair of nodes are kept side by side.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.graph = nx.MultiDiGraph()
        self.lock = threading.RLock()
        self._rng = rng or random.Random()

    # --- Mutation boundary ---
    def add_road(self, u: str, v: str, weight: int, signal_delay: int = 0,
                 road_type: Union[RoadType, str] = RoadType.GENERAL) -> Tuple[Edge, Edge]:
        if not isinstance(u, str) or not isinstance(v, str) or not u.strip() or not v.strip():
            raise InvalidInput("Node names cannot be empty", details={"source": u, "destination": v})
        if u == v:
            raise InvalidInput("Start and end nodes cannot be the same for a road", details={"node": u})
        if isinstance(weight, bool) or not isinstance(weight, int) or weight <= 0:
            raise InvalidInput("Weight must be a positive integer", details={"weight": weight})
        if isinstance(signal_delay, bool) or not isinstance(signal_delay, int) or signal_delay < 0:
            raise InvalidInput("Signal delay cannot be negative", details={"signal_delay": signal_delay})
        parsed_type = _parse_road_type(road_type)

        with self.lock:
            forward = self._insert_edge(u, v, weight, signal_delay, parsed_type)
            backward = self._insert_edge(v, u, weight, signal_delay, parsed_type)

        log_event("road_added", source=u, destination=v, weight=weight,
                  signal_delay=signal_delay, road_type=parsed_type.value)
        return forward, backward

    def _insert_edge(self, u: str, v: str, weight: int, signal_delay: int, road_type: RoadType) -> Edge:
        key = self.graph.new_edge_key(u, v)
        base = BaseEdge(source=u, destination=v, weight=weight, signal_delay=signal_delay, road_type=road_type)
        edge = Edge(base=base, key=key, weight=float(weight))
        self.graph.add_edge(u, v, key=key, edge=edge)
        return edge

    def load_roads(self, roads: Iterable[RoadSpec]) -> int:
        count = 0
        for source, destination, weight, delay, road_type in roads:
            self.add_road(source, destination, weight, delay, road_type)
            count += 1
        return count

    # --- Reads ---
    def has_node(self, node: str) -> bool:
        return self.graph.has_node(node)

    def nodes(self) -> List[str]:
        with self.lock:
            return list(self.graph.nodes())

    def edge_count(self) -> int:
        return self.graph.number_of_edges()

    def neighbors(self, node: str) -> List[Edge]:
        with self.lock:
            if not self.graph.has_node(node):
                raise UnknownNode(f"Node '{node}' doesn't exist in the map", details={"node": node})
            return [data["edge"] for _, _, data in self.graph.out_edges(node, data=True)]

    def edges_between(self, u: str, v: str) -> List[Edge]:
        with self.lock:
            if not self.graph.has_edge(u, v):
                return []
            return [data["edge"] for data in self.graph[u][v].values()]

    def iter_edges(self) -> List[Edge]:
        return [edge for _, _, edge in self.graph.edges(data="edge")]

    # --- Dynamic state ---
    def apply_weather_effect(self, multiplier: float) -> None:
        if multiplier is None or not math.isfinite(multiplier) or multiplier <= 0:
            raise InvalidInput("Weather multiplier must be a finite positive number", details={"multiplier": multiplier})
        with self.lock:
            for edge in self.iter_edges():
                # Always from the base weight, so successive weather changes never compound
                edge.weight = edge.base_weight / multiplier
        log_event("weather_applied", multiplier=multiplier, edges=self.edge_count())

    def apply_rush_hour(self) -> None:
        with self.lock:
            for edge in self.iter_edges():
                edge.weight = edge.base_weight * RUSH_HOUR_FACTOR
                edge.congestion = self._rng.randint(1, MAX_CONGESTION)
        log_event("rush_hour_applied", edges=self.edge_count())

    def clear_congestion(self) -> None:
        with self.lock:
            for edge in self.iter_edges():
                edge.congestion = 0
        log_event("congestion_cleared", edges=self.edge_count())

    def manual_block(self, u: str, v: str, blocked: bool = True, bidirectional: bool = False) -> int:
        pairs = [(u, v), (v, u)] if bidirectional else [(u, v)]
        with self.lock:
            targets = [edge for a, b in pairs for edge in self.edges_between(a, b)]
            if not targets:
                raise InvalidInput(f"No road from '{u}' to '{v}'", details={"source": u, "destination": v})
            for edge in targets:
                edge.blocked = blocked
        log_event("road_block_changed", source=u, destination=v, blocked=blocked,
                  bidirectional=bidirectional, edges=len(targets))
        return len(targets)

    # --- Export ---
    def export_snapshot(self) -> List[SnapshotRow]:
        with self.lock:
            return [
                SnapshotRow(
                    source=edge.source,
                    dest=edge.destination,
                    road_type=edge.road_type,
                    base_weight=edge.base_weight,
                    current_weight=edge.weight,
                    signal_delay=edge.signal_delay,
                    blocked=edge.blocked,
                    congestion=edge.congestion,
                )
                for edge in self.iter_edges()
            ]
