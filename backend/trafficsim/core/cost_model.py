from typing import Dict, Union

from trafficsim.core.vehicle_profiles import VehicleKind, VehicleProfile
from trafficsim.models import EcoStats, Edge, RoadType

CONGESTION_DELAY_PER_LEVEL = 0.1  # +10% travel time per congestion unit

TOLL_FEES: Dict[RoadType, int] = {
    RoadType.HIGHWAY: 5,
    RoadType.BRIDGE: 3,
    RoadType.TUNNEL: 7,
}

CO2_KG_PER_DISTANCE_UNIT = 0.12
BUS_CO2_FACTOR = 2.5


def effective_cost(edge: Edge, vehicle: VehicleProfile) -> int:
    """Seconds to traverse `edge` for `vehicle`; the only quantity route search minimizes."""
    loaded_weight = edge.weight * (1.0 + CONGESTION_DELAY_PER_LEVEL * edge.congestion)
    return int((loaded_weight + edge.signal_delay) / vehicle.speed_multiplier)


def toll_fee(road_type: Union[RoadType, str]) -> int:
    # Reported with a route, never added to its cost
    try:
        return TOLL_FEES.get(RoadType(road_type), 0)
    except ValueError:
        return 0


def eco_stats(vehicle: VehicleProfile, distance: float) -> EcoStats:
    co2_per_unit = CO2_KG_PER_DISTANCE_UNIT
    if vehicle.kind is VehicleKind.BUS:
        co2_per_unit *= BUS_CO2_FACTOR
    elif vehicle.kind is VehicleKind.BIKE:
        co2_per_unit = 0.0

    fuel_efficiency = 1.0 / vehicle.fuel_rate if vehicle.fuel_rate > 0 else 0.0
    return EcoStats(
        co2_kg=round(distance * co2_per_unit, 2),
        fuel_efficiency=round(fuel_efficiency, 2),
    )
