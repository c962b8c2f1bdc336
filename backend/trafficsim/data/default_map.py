from typing import List

from trafficsim.core.road_network import RoadSpec
from trafficsim.models import RoadType

DEFAULT_ROADS: List[RoadSpec] = [
    # Highway system
    ("Downtown", "Midtown", 300, 60, RoadType.HIGHWAY),
    ("Midtown", "Uptown", 400, 80, RoadType.HIGHWAY),
    ("Downtown", "Airport", 500, 120, RoadType.HIGHWAY),
    # City streets
    ("Downtown", "Market St", 120, 30, RoadType.GENERAL),
    ("Market St", "City Hall", 90, 20, RoadType.GENERAL),
    ("City Hall", "Uptown", 180, 40, RoadType.GENERAL),
    ("Downtown", "Residential Area", 150, 25, RoadType.GENERAL),
    ("Market St", "Industrial Zone", 250, 50, RoadType.GENERAL),
    # Special routes
    ("Midtown", "Bike Trail", 150, 10, RoadType.BIKE_LANE),
    ("City Hall", "Bus Terminal", 200, 30, RoadType.BUS_LANE),
    ("Airport", "Emergency Hospital", 100, 10, RoadType.EMERGENCY),
    ("Uptown", "Suburban Tunnel", 350, 70, RoadType.TUNNEL),
    ("Residential Area", "Central Bridge", 200, 40, RoadType.BRIDGE),
]
