from typing import List, Optional, Sequence

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from trafficsim.core.road_network import RoadSpec
from trafficsim.core.simulation_manager import TrafficSimulation
from trafficsim.core.vehicle_profiles import make_vehicle, parse_vehicle_kind, profile_for_strategy
from trafficsim.data.default_map import DEFAULT_ROADS
from trafficsim.errors import NoPathFound, TrafficError, UnknownNode
from trafficsim.logging_utils import log_event
from trafficsim.models import (
    BlockRequest, CityStats, CompareRequest, Edge, Incident, IncidentReport,
    RoadRequest, RouteRequest, SnapshotRow, TimeMultiplierUpdate, WeatherUpdate,
)
from trafficsim.settings import settings

app = FastAPI(title="Traffic Routing Simulation API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# The single simulation context for this process; replaced wholesale by reset_simulation()
SIMULATION = TrafficSimulation()

_STATUS_BY_ERROR = {UnknownNode: 404}

# Manual steps run synchronously on the event loop
MAX_MANUAL_STEPS = 3600


def reset_simulation(roads: Sequence[RoadSpec] = ()) -> TrafficSimulation:
    global SIMULATION
    simulation = TrafficSimulation()
    # Build fully before swapping, so a rejected road leaves the current map in place
    simulation.network.load_roads(roads)
    SIMULATION = simulation
    return SIMULATION


@app.exception_handler(TrafficError)
async def traffic_error_handler(request: Request, exc: TrafficError):
    return JSONResponse(
        status_code=_STATUS_BY_ERROR.get(type(exc), 400),
        content={"reason_code": exc.reason_code, "message": exc.message, "details": exc.details or {}},
    )


@app.on_event("startup")
async def startup_event():
    reset_simulation(DEFAULT_ROADS if settings.load_default_map else ())
    if settings.run_simulation_loop:
        SIMULATION.start()
    log_event("api_started", default_map=settings.load_default_map, simulation_loop=settings.run_simulation_loop)


@app.on_event("shutdown")
async def shutdown_event():
    await SIMULATION.stop()
    log_event("api_stopped")


# --- Map ---
@app.post("/map/load", status_code=201)
async def load_city_map(roads: List[RoadRequest]):
    previous = SIMULATION
    simulation = reset_simulation(
        [(road.source, road.destination, road.weight, road.signal_delay, road.road_type) for road in roads]
    )
    if previous.running:
        await previous.stop()
        simulation.start()
    return {"message": "City map loaded successfully.", "roads": len(roads)}


@app.post("/roads", status_code=201)
async def add_road_endpoint(road: RoadRequest):
    SIMULATION.network.add_road(road.source, road.destination, road.weight, road.signal_delay, road.road_type)
    return {"message": f"Road added: {road.source} <-> {road.destination} ({road.road_type})"}


@app.get("/roads/{node}/neighbors", response_model=List[Edge])
async def get_neighbors_endpoint(node: str):
    return SIMULATION.network.neighbors(node)


@app.get("/map/roads/conditions", response_model=List[SnapshotRow])
async def get_road_conditions_endpoint():
    return SIMULATION.network.export_snapshot()


# --- Traffic conditions ---
@app.put("/traffic/block")
async def block_road_endpoint(update: BlockRequest):
    changed = SIMULATION.network.manual_block(update.source, update.destination, update.blocked, update.bidirectional)
    return {"message": "Road block updated.", "edges": changed}


@app.post("/traffic/rush-hour")
async def rush_hour_endpoint():
    SIMULATION.apply_rush_hour()
    return {"message": "Rush hour applied! Traffic is heavier and slower."}


@app.post("/traffic/clear")
async def clear_congestion_endpoint():
    SIMULATION.network.clear_congestion()
    return {"message": "Congestion cleared."}


@app.put("/weather")
async def set_weather_endpoint(update: WeatherUpdate):
    state = SIMULATION.set_weather(update.weather)
    return state


# --- Routing ---
@app.post("/routes")
async def compute_route_endpoint(request: RouteRequest):
    if request.strategy:
        vehicle = profile_for_strategy(request.strategy)
    else:
        vehicle = make_vehicle(request.vehicle, emergency=request.emergency)
    try:
        route = SIMULATION.compute_route(request.source, request.destination, vehicle)
    except NoPathFound as exc:
        # Unreachable is a normal outcome, not a client error
        return {"status": "no_path", "reason_code": exc.reason_code, "message": exc.message}
    return {"status": "ok", "route": route}


@app.post("/routes/compare")
async def compare_routes_endpoint(request: CompareRequest):
    # Keys are normalized like vehicle kinds, so display names match snake_case
    emergency = {parse_vehicle_kind(kind): flag for kind, flag in request.emergency.items()}
    vehicles = []
    for kind in request.vehicles:
        vehicle_kind = parse_vehicle_kind(kind)
        vehicles.append(make_vehicle(vehicle_kind, emergency=emergency.get(vehicle_kind, False)))
    outcomes = SIMULATION.planner.compare_vehicles(request.source, request.destination, vehicles)
    return {"results": outcomes}


# --- Incidents ---
@app.get("/incidents", response_model=List[Incident])
async def list_incidents_endpoint():
    return SIMULATION.incidents.list_active()


@app.post("/incidents/generate")
async def generate_incident_endpoint():
    incident: Optional[Incident] = SIMULATION.generate_incident()
    return {"generated": incident is not None, "incident": incident}


@app.post("/incidents", response_model=Incident, status_code=201)
async def report_incident_endpoint(report: IncidentReport):
    return SIMULATION.incidents.report(report.location, report.category, report.severity, report.road_type)


# --- Simulation ---
@app.put("/simulation/time-multiplier")
async def set_time_multiplier_endpoint(update: TimeMultiplierUpdate):
    SIMULATION.clock.set_time_multiplier(update.multiplier)
    return {"time_multiplier": SIMULATION.clock.time_multiplier}


@app.post("/simulation/step")
async def step_simulation_endpoint(steps: int = Query(1, ge=0, le=MAX_MANUAL_STEPS)):
    for _ in range(steps):
        SIMULATION.step()
    return SIMULATION.stats()


@app.get("/system/stats", response_model=CityStats)
async def get_system_stats_endpoint():
    return SIMULATION.stats()
