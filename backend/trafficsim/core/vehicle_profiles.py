from enum import Enum
from typing import Dict, FrozenSet, Tuple, Union

from pydantic import BaseModel

from trafficsim.errors import InvalidInput
from trafficsim.models import RoadType

EMERGENCY_SPEED_BOOST = 1.5


class VehicleKind(str, Enum):
    CAR = "car"
    BIKE = "bike"
    BUS = "bus"
    AMBULANCE = "ambulance"
    POLICE = "police"
    FIRE_TRUCK = "fire_truck"


class RouteStrategy(str, Enum):
    FASTEST = "fastest"
    EMERGENCY = "emergency"


_STANDARD_ROADS = (RoadType.GENERAL, RoadType.HIGHWAY, RoadType.BRIDGE, RoadType.TUNNEL)
_EMERGENCY_ROADS = frozenset(_STANDARD_ROADS + (RoadType.EMERGENCY,))

# kind -> (display name, base speed multiplier, fuel rate, allowed road types)
VEHICLE_CATALOG: Dict[VehicleKind, Tuple[str, float, float, FrozenSet[RoadType]]] = {
    VehicleKind.CAR: ("Car", 1.0, 0.7, frozenset(_STANDARD_ROADS)),
    VehicleKind.BIKE: ("Bike", 1.2, 0.3, frozenset(_STANDARD_ROADS + (RoadType.BIKE_LANE,))),
    VehicleKind.BUS: ("Bus", 0.7, 1.5, frozenset(_STANDARD_ROADS + (RoadType.BUS_LANE,))),
    VehicleKind.AMBULANCE: ("Ambulance", 1.0, 1.0, _EMERGENCY_ROADS),
    VehicleKind.POLICE: ("Police", 1.0, 1.1, _EMERGENCY_ROADS),
    VehicleKind.FIRE_TRUCK: ("Fire Truck", 1.0, 1.8, _EMERGENCY_ROADS),
}


class VehicleProfile(BaseModel):
    kind: VehicleKind
    name: str
    base_speed_multiplier: float
    fuel_rate: float
    emergency: bool = False
    allowed_road_types: FrozenSet[RoadType]

    @property
    def speed_multiplier(self) -> float:
        # Always derived from the stored base so repeated toggles cannot drift
        if self.emergency:
            return self.base_speed_multiplier * EMERGENCY_SPEED_BOOST
        return self.base_speed_multiplier

    def toggle_emergency(self) -> bool:
        self.emergency = not self.emergency
        return self.emergency

    def can_use(self, road_type: Union[RoadType, str]) -> bool:
        if RoadType.ALL in self.allowed_road_types:
            return True
        try:
            return RoadType(road_type) in self.allowed_road_types
        except ValueError:
            return False


def parse_vehicle_kind(kind: Union[VehicleKind, str]) -> VehicleKind:
    if isinstance(kind, VehicleKind):
        return kind
    normalized = str(kind).strip().lower().replace(" ", "_").replace("-", "_")
    try:
        return VehicleKind(normalized)
    except ValueError:
        raise InvalidInput(
            f"Unknown vehicle kind '{kind}'",
            details={"allowed": [k.value for k in VehicleKind]},
        ) from None


def make_vehicle(kind: Union[VehicleKind, str], emergency: bool = False) -> VehicleProfile:
    vehicle_kind = parse_vehicle_kind(kind)
    name, speed, fuel_rate, allowed = VEHICLE_CATALOG[vehicle_kind]
    return VehicleProfile(
        kind=vehicle_kind,
        name=name,
        base_speed_multiplier=speed,
        fuel_rate=fuel_rate,
        emergency=emergency,
        allowed_road_types=allowed,
    )


def profile_for_strategy(strategy: Union[RouteStrategy, str]) -> VehicleProfile:
    """Fastest routes a regular car; emergency routes an ambulance with its siren on."""
    try:
        chosen = RouteStrategy(strategy)
    except ValueError:
        raise InvalidInput(
            f"Unknown routing strategy '{strategy}'",
            details={"allowed": [s.value for s in RouteStrategy]},
        ) from None
    if chosen is RouteStrategy.EMERGENCY:
        return make_vehicle(VehicleKind.AMBULANCE, emergency=True)
    return make_vehicle(VehicleKind.CAR)
