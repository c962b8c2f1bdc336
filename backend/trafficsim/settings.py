from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Env-driven runtime knobs. Domain constants (tolls, boosts, MAX_CONGESTION) live with the code that uses them."""

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: Optional[str] = Field(default=None, alias="LOG_DIR")

    # Simulation loop pacing: every SIM_STEP_INTERVAL_S real seconds one tick happens,
    # and each tick advances simulated time by SIM_SECONDS_PER_TICK * time multiplier.
    sim_step_interval_s: float = Field(default=1.0, gt=0.0, alias="SIM_STEP_INTERVAL_S")
    sim_seconds_per_tick: int = Field(default=1, ge=1, alias="SIM_SECONDS_PER_TICK")
    sim_time_multiplier: int = Field(default=1, ge=0, alias="SIM_TIME_MULTIPLIER")
    weather_update_interval_s: int = Field(default=30, ge=1, alias="WEATHER_UPDATE_INTERVAL_S")
    incident_every_ticks: int = Field(default=10, ge=1, alias="INCIDENT_EVERY_TICKS")

    incident_ttl_s: float = Field(default=300.0, gt=0.0, alias="INCIDENT_TTL_S")
    incident_probability_numerator: int = Field(default=1, ge=0, alias="INCIDENT_PROBABILITY_NUMERATOR")
    incident_probability_denominator: int = Field(default=3, ge=1, alias="INCIDENT_PROBABILITY_DENOMINATOR")

    random_seed: Optional[int] = Field(default=None, alias="RANDOM_SEED")
    load_default_map: bool = Field(default=True, alias="LOAD_DEFAULT_MAP")
    run_simulation_loop: bool = Field(default=True, alias="RUN_SIMULATION_LOOP")


settings = Settings()
