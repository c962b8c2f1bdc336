import random
import threading
import time
from typing import Callable, List, Optional, Union

from trafficsim.errors import InvalidInput
from trafficsim.logging_utils import log_event
from trafficsim.models import Edge, Incident, RoadType

INCIDENT_TTL_SECONDS = 300.0

INCIDENT_LOCATIONS = ["Main St", "Highway 1", "Downtown", "Central Bridge", "Suburban Tunnel", "Industrial Zone"]
INCIDENT_CATEGORIES = ["Construction", "Accident", "Smart Light Outage", "Roadwork", "Metro Delay", "Flooding"]
INCIDENT_ROAD_TYPES = [
    RoadType.GENERAL, RoadType.BIKE_LANE, RoadType.BUS_LANE, RoadType.EMERGENCY,
    RoadType.HIGHWAY, RoadType.BRIDGE, RoadType.TUNNEL,
]


class IncidentRegistry:
    """
    Time-bounded incident store. Incidents are never deleted explicitly: once older
    than the TTL they are ignored by every read, and purged on the next listing.
    The clock returns simulated seconds; tests pass a fixed clock for determinism.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None,
                 rng: Optional[random.Random] = None,
                 ttl_seconds: float = INCIDENT_TTL_SECONDS):
        self._clock = clock or time.monotonic
        self._rng = rng or random.Random()
        self.ttl_seconds = ttl_seconds
        self._incidents: List[Incident] = []
        self.lock = threading.RLock()

    def now(self) -> float:
        return self._clock()

    def _is_live(self, incident: Incident, now: float) -> bool:
        return now - incident.created_at <= self.ttl_seconds

    def report(self, location: str, category: str, severity: int = 1,
               road_type: Union[RoadType, str] = RoadType.ALL) -> Incident:
        if not location or not location.strip():
            raise InvalidInput("Incident location cannot be empty")
        if not 1 <= severity <= 3:
            raise InvalidInput("Incident severity must be between 1 and 3", details={"severity": severity})
        try:
            affected = RoadType(road_type)
        except ValueError:
            raise InvalidInput(f"Unknown road type '{road_type}'") from None

        incident = Incident(
            location=location,
            category=category,
            severity=severity,
            road_type=affected,
            created_at=self._clock(),
        )
        with self.lock:
            self._incidents.append(incident)
        log_event("incident_reported", location=location, category=category,
                  severity=severity, road_type=affected.value)
        return incident

    def generate(self, probability_numerator: int = 1, probability_denominator: int = 3) -> Optional[Incident]:
        if probability_denominator <= 0 or not 0 <= probability_numerator <= probability_denominator:
            raise InvalidInput(
                "Incident probability must be a fraction in [0, 1]",
                details={"numerator": probability_numerator, "denominator": probability_denominator},
            )
        if self._rng.randrange(probability_denominator) >= probability_numerator:
            return None
        return self.report(
            location=self._rng.choice(INCIDENT_LOCATIONS),
            category=self._rng.choice(INCIDENT_CATEGORIES),
            severity=self._rng.randint(1, 3),
            road_type=self._rng.choice(INCIDENT_ROAD_TYPES),
        )

    def is_blocking(self, edge: Edge, from_node: str, now: Optional[float] = None) -> bool:
        """A route query passes the time it read once, so incidents cannot expire mid-search."""
        if now is None:
            now = self._clock()
        edge_type = edge.road_type.value
        with self.lock:
            for incident in self._incidents:
                if not self._is_live(incident, now):
                    continue
                if incident.location != from_node and incident.location != edge.destination:
                    continue
                affected = incident.road_type.value
                if affected == edge_type or incident.road_type is RoadType.ALL or affected in edge_type:
                    return True
        return False

    def list_active(self) -> List[Incident]:
        now = self._clock()
        with self.lock:
            before = len(self._incidents)
            self._incidents = [i for i in self._incidents if self._is_live(i, now)]
            purged = before - len(self._incidents)
            active = sorted(reversed(self._incidents), key=lambda i: i.created_at, reverse=True)
        if purged:
            log_event("incidents_expired", purged=purged, remaining=len(active))
        return active

    def age_of(self, incident: Incident) -> float:
        return self._clock() - incident.created_at

    def __len__(self) -> int:
        # Stored entries, expired ones included until the next listing
        return len(self._incidents)
