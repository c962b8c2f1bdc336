from enum import Enum
from typing import Dict, Union

from pydantic import BaseModel, ConfigDict

from trafficsim.errors import InvalidInput


class WeatherType(str, Enum):
    SUNNY = "sunny"
    RAIN = "rain"
    SNOW = "snow"
    FOG = "fog"
    STORM = "storm"


# Speed factor: edge weight is divided by it, so 0.6 makes a road ~67% slower
WEATHER_MULTIPLIERS: Dict[WeatherType, float] = {
    WeatherType.SUNNY: 1.0,
    WeatherType.RAIN: 0.85,
    WeatherType.SNOW: 0.7,
    WeatherType.FOG: 0.8,
    WeatherType.STORM: 0.6,
}

WEATHER_MESSAGES: Dict[WeatherType, str] = {
    WeatherType.SUNNY: "Normal conditions",
    WeatherType.RAIN: "Wet roads (15% slower)",
    WeatherType.SNOW: "Icy roads (30% slower)",
    WeatherType.FOG: "Low visibility (20% slower)",
    WeatherType.STORM: "Dangerous conditions (40% slower)",
}


class WeatherState(BaseModel):
    model_config = ConfigDict(frozen=True)

    weather: WeatherType
    multiplier: float
    message: str

    @classmethod
    def of(cls, weather: Union[WeatherType, str]) -> "WeatherState":
        if isinstance(weather, WeatherType):
            kind = weather
        else:
            try:
                kind = WeatherType(str(weather).strip().lower())
            except ValueError:
                raise InvalidInput(
                    f"Unknown weather '{weather}'",
                    details={"allowed": [w.value for w in WeatherType]},
                ) from None
        return cls(weather=kind, multiplier=WEATHER_MULTIPLIERS[kind], message=WEATHER_MESSAGES[kind])


CLEAR_WEATHER = WeatherState.of(WeatherType.SUNNY)
