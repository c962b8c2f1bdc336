import asyncio
import random
from typing import Optional, Union

from trafficsim.core.incident_registry import IncidentRegistry
from trafficsim.core.road_network import RoadNetwork
from trafficsim.core.routing_service import RoutePlanner
from trafficsim.core.vehicle_profiles import VehicleProfile
from trafficsim.core.weather import CLEAR_WEATHER, WeatherState, WeatherType
from trafficsim.errors import InvalidInput
from trafficsim.logging_utils import log_event
from trafficsim.models import CityStats, Incident, RouteResult
from trafficsim.settings import Settings, settings as default_settings

ALLOWED_TIME_MULTIPLIERS = (0, 1, 2, 5)  # pause, normal, 2x, 5x


class SimulationClock:
    """Discrete tick source. Simulated time only moves when tick() is called."""

    def __init__(self, seconds_per_tick: int = 1, time_multiplier: int = 1):
        self.seconds_per_tick = seconds_per_tick
        self.time_multiplier = 1
        self.set_time_multiplier(time_multiplier)
        self.ticks = 0
        self._now = 0.0

    def now(self) -> float:
        return self._now

    def set_time_multiplier(self, multiplier: int) -> None:
        if multiplier not in ALLOWED_TIME_MULTIPLIERS:
            raise InvalidInput(
                f"Unsupported time multiplier {multiplier}",
                details={"allowed": list(ALLOWED_TIME_MULTIPLIERS)},
            )
        self.time_multiplier = multiplier

    @property
    def paused(self) -> bool:
        return self.time_multiplier == 0

    def tick(self) -> float:
        """Advance one step; returns the simulated seconds that elapsed (0 while paused)."""
        if self.paused:
            return 0.0
        elapsed = float(self.seconds_per_tick * self.time_multiplier)
        self.ticks += 1
        self._now += elapsed
        return elapsed


class TrafficSimulation:
    """
    Owns the network, the incident registry, the weather and the clock, and applies
    weather rotation / incident generation as discrete steps between queries.
    """

    def __init__(self, config: Optional[Settings] = None,
                 rng: Optional[random.Random] = None):
        self.config = config or default_settings
        self.rng = rng or random.Random(self.config.random_seed)
        self.clock = SimulationClock(self.config.sim_seconds_per_tick, self.config.sim_time_multiplier)
        self.network = RoadNetwork(rng=self.rng)
        self.incidents = IncidentRegistry(clock=self.clock.now, rng=self.rng,
                                          ttl_seconds=self.config.incident_ttl_s)
        self.planner = RoutePlanner(self.network, self.incidents)
        self.weather: WeatherState = CLEAR_WEATHER

        self._task: Optional[asyncio.Task] = None
        self._stop = False

    # --- Discrete events ---
    def step(self) -> None:
        before = self.clock.now()
        elapsed = self.clock.tick()
        if elapsed <= 0:
            return

        interval = self.config.weather_update_interval_s
        if int(self.clock.now() // interval) > int(before // interval):
            self.rotate_weather()

        if self.clock.ticks % self.config.incident_every_ticks == 0:
            self.generate_incident()

    def set_weather(self, weather: Union[WeatherType, str]) -> WeatherState:
        self.weather = WeatherState.of(weather)
        self.network.apply_weather_effect(self.weather.multiplier)
        log_event("weather_update", weather=self.weather.weather.value,
                  multiplier=self.weather.multiplier, description=self.weather.message)
        return self.weather

    def rotate_weather(self) -> WeatherState:
        return self.set_weather(self.rng.choice(list(WeatherType)))

    def generate_incident(self) -> Optional[Incident]:
        return self.incidents.generate(
            self.config.incident_probability_numerator,
            self.config.incident_probability_denominator,
        )

    def apply_rush_hour(self) -> None:
        self.network.apply_rush_hour()

    def compute_route(self, source: str, destination: str, vehicle: VehicleProfile) -> RouteResult:
        return self.planner.compute_route(source, destination, vehicle)

    def stats(self) -> CityStats:
        return CityStats(
            weather=self.weather.weather.value,
            weather_message=self.weather.message,
            weather_multiplier=self.weather.multiplier,
            active_incidents=len(self.incidents.list_active()),
            time_multiplier=self.clock.time_multiplier,
            simulation_time=self.clock.now(),
            tick=self.clock.ticks,
            total_nodes=len(self.network.nodes()),
            total_road_segments=self.network.edge_count(),
        )

    # --- Async driver ---
    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run(self) -> None:
        log_event("simulation_loop_started", step_interval_s=self.config.sim_step_interval_s)
        while not self._stop:
            # step() has no await points, so no query can observe a half-applied update
            self.step()
            await asyncio.sleep(self.config.sim_step_interval_s)
        log_event("simulation_loop_stopped", simulation_time=self.clock.now())

    def start(self) -> asyncio.Task:
        if not self.running:
            self._stop = False
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self, timeout: float = 5.0) -> None:
        self._stop = True
        if not self.running:
            return
        try:
            await asyncio.wait_for(self._task, timeout=timeout)
        except asyncio.TimeoutError:
            log_event("simulation_loop_cancelled", timeout=timeout)
            self._task.cancel()
