from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(eq=False)
class TrafficError(ValueError):
    """Base for every recoverable error the routing core reports to its callers."""

    message: str
    details: Optional[Dict[str, Any]] = None

    reason_code = "traffic_error"

    def __str__(self) -> str:
        return self.message


class InvalidInput(TrafficError):
    # Rejected at a mutation boundary; the network is left unchanged
    reason_code = "invalid_input"


class UnknownNode(TrafficError):
    reason_code = "unknown_node"


class TrivialRoute(TrafficError):
    reason_code = "trivial_route"


class NoPathFound(TrafficError):
    # A normal query outcome rather than a fault
    reason_code = "no_path_found"


RouteError = (TrivialRoute, UnknownNode, NoPathFound)
