from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RoadType(str, Enum):
    GENERAL = "General"
    HIGHWAY = "Highway"
    BRIDGE = "Bridge"
    TUNNEL = "Tunnel"
    BIKE_LANE = "Bike Lane"
    BUS_LANE = "Bus Lane"
    EMERGENCY = "Emergency"
    ALL = "All"  # wildcard: vehicle allowed sets and incident targets only


# --- Graph records ---
class BaseEdge(BaseModel):
    """Original attributes of one direction of a road. Never mutated after add_road."""

    model_config = ConfigDict(frozen=True)

    source: str
    destination: str
    weight: int  # seconds
    signal_delay: int  # seconds
    road_type: RoadType


class Edge(BaseModel):
    """Runtime state for one direction of a road, rewritten in place by weather / rush hour."""

    base: BaseEdge
    key: int  # parallel-edge key inside the multigraph
    weight: float
    congestion: int = 0
    blocked: bool = False

    @property
    def source(self) -> str:
        return self.base.source

    @property
    def destination(self) -> str:
        return self.base.destination

    @property
    def road_type(self) -> RoadType:
        return self.base.road_type

    @property
    def signal_delay(self) -> int:
        return self.base.signal_delay

    @property
    def base_weight(self) -> int:
        return self.base.weight


class SnapshotRow(BaseModel):
    # Field order is the export contract consumed by reporting collaborators
    source: str
    dest: str
    road_type: RoadType
    base_weight: int
    current_weight: float
    signal_delay: int
    blocked: bool
    congestion: int


class Incident(BaseModel):
    model_config = ConfigDict(frozen=True)

    location: str
    category: str
    severity: int = Field(ge=1, le=3)
    road_type: RoadType
    created_at: float  # simulated seconds


# --- Route output ---
class RouteSegment(BaseModel):
    source: str
    destination: str
    road_type: RoadType
    base_weight: int
    cost_seconds: int
    toll: int


class EcoStats(BaseModel):
    co2_kg: float
    fuel_efficiency: float


class RouteResult(BaseModel):
    path: List[str]
    total_time_seconds: int
    total_toll: int
    total_distance: int
    vehicle: str
    emergency: bool = False
    segments: List[RouteSegment] = Field(default_factory=list)
    eco: Optional[EcoStats] = None


class CityStats(BaseModel):
    weather: str
    weather_message: str
    weather_multiplier: float
    active_incidents: int
    time_multiplier: int
    simulation_time: float
    tick: int
    total_nodes: int
    total_road_segments: int


# --- Input models ---
class RoadRequest(BaseModel):
    source: str
    destination: str
    weight: int
    signal_delay: int = 0
    road_type: str = RoadType.GENERAL.value


class BlockRequest(BaseModel):
    source: str
    destination: str
    blocked: bool = True
    bidirectional: bool = False


class RouteRequest(BaseModel):
    source: str
    destination: str
    vehicle: str = "car"
    emergency: bool = False
    strategy: Optional[str] = None  # "fastest" / "emergency" override vehicle + emergency


class CompareRequest(BaseModel):
    source: str
    destination: str
    vehicles: List[str] = Field(default_factory=lambda: ["car", "ambulance"])
    emergency: Dict[str, bool] = Field(default_factory=lambda: {"ambulance": True})


class WeatherUpdate(BaseModel):
    weather: str


class IncidentReport(BaseModel):
    location: str
    category: str
    severity: int = 1
    road_type: str = RoadType.ALL.value


class TimeMultiplierUpdate(BaseModel):
    multiplier: int
