#!/usr/bin/env python3
#
###################################################################
# Project: HalifaxBridges
# File: bridges_app/schemas.py
# Purpose: Pydantic models + enums for traffic, weather and alerts.
#
# Description of code and how it works:
# - Enum values are the lower-case wire strings the frontend switches on.
# - Records are rebuilt wholesale on every fetch; nothing mutates them.
#
# Author: Tim Canady
# Created: 2026-10-12
#
# Version: 0.5.0
# Last Modified: 2026-10-17 by Tim Canady
#
# Revision History:
# - 0.5.0 (2026-10-17): BridgeStatus; degraded flag on TrafficData.
# - 0.3.0 (2026-10-14): WeatherAlert urgency/certainty.
# - 0.1.0 (2026-10-12): Initial models.
###################################################################
#
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

# ---- traffic ------------------------------------------------------------------

class TrafficLevel(str, Enum):
    LIGHT = "light"
    MODERATE = "moderate"
    HEAVY = "heavy"
    CLOSED = "closed"
    UNKNOWN = "unknown"

class FuckLevel(str, Enum):
    NOT = "not"
    KINDA = "kinda"
    VERY = "very"
    ABSOLUTELY = "absolutely"

class BridgeDirection(BaseModel):
    direction: str  # "Halifax Bound" | "Dartmouth Bound"
    level: TrafficLevel
    camera_url: str

class Bridge(BaseModel):
    name: str  # "Macdonald" | "MacKay"
    halifax_bound: BridgeDirection
    dartmouth_bound: BridgeDirection

    def levels(self) -> List[TrafficLevel]:
        return [self.halifax_bound.level, self.dartmouth_bound.level]

class TrafficData(BaseModel):
    macdonald: Bridge
    mackay: Bridge
    last_updated: datetime
    is_fucked: bool
    fuck_level: FuckLevel
    degraded: bool = False

class BridgeStatus(BaseModel):
    is_fucked: bool
    reason: str
    severity: str  # good | moderate | bad | critical

# ---- weather ------------------------------------------------------------------

class WeatherCondition(str, Enum):
    CLEAR = "clear"
    CLOUDY = "cloudy"
    FOG = "fog"
    DRIZZLE = "drizzle"
    RAIN = "rain"
    HEAVY_RAIN = "heavy_rain"
    FREEZING_RAIN = "freezing_rain"
    SNOW = "snow"
    HEAVY_SNOW = "heavy_snow"
    BLIZZARD = "blizzard"
    THUNDERSTORM = "thunderstorm"
    HURRICANE = "hurricane"
    UNKNOWN = "unknown"

class WeatherSeverity(str, Enum):
    FINE = "fine"
    MEH = "meh"
    ROUGH = "rough"
    FUCKED = "fucked"
    APOCALYPTIC = "apocalyptic"

class WeatherData(BaseModel):
    temperature: float            # Celsius
    feels_like: float             # wind chill / humidex
    wind_speed: float             # km/h
    wind_gusts: float             # km/h
    precipitation: float          # mm
    snowfall: float               # cm
    humidity: float               # %
    visibility: float             # km
    condition: WeatherCondition
    condition_code: int           # WMO
    is_day: bool
    last_updated: datetime
    severity: WeatherSeverity
    maritimer_saying: str
    short_status: str
    is_fucked: bool

# ---- alerts -------------------------------------------------------------------

class AlertType(str, Enum):
    WINTER_STORM_WARNING = "winter_storm_warning"
    WINTER_STORM_WATCH = "winter_storm_watch"
    BLIZZARD_WARNING = "blizzard_warning"
    SNOWFALL_WARNING = "snowfall_warning"
    FREEZING_RAIN_WARNING = "freezing_rain_warning"
    WIND_WARNING = "wind_warning"
    HURRICANE_WARNING = "hurricane_warning"
    HURRICANE_WATCH = "hurricane_watch"
    TROPICAL_STORM_WARNING = "tropical_storm_warning"
    SEVERE_THUNDERSTORM_WARNING = "severe_thunderstorm_warning"
    SEVERE_THUNDERSTORM_WATCH = "severe_thunderstorm_watch"
    TORNADO_WARNING = "tornado_warning"
    TORNADO_WATCH = "tornado_watch"
    FOG_ADVISORY = "fog_advisory"
    SPECIAL_WEATHER_STATEMENT = "special_weather_statement"
    WEATHER_ADVISORY = "weather_advisory"
    HEAT_WARNING = "heat_warning"
    COLD_WARNING = "cold_warning"
    STORM_SURGE_WARNING = "storm_surge_warning"
    UNKNOWN = "unknown"

class AlertSeverity(str, Enum):
    EXTREME = "extreme"
    SEVERE = "severe"
    MODERATE = "moderate"
    MINOR = "minor"
    UNKNOWN = "unknown"

class WeatherAlert(BaseModel):
    id: str
    type: AlertType
    severity: AlertSeverity
    title: str
    headline: str
    description: str
    instruction: str
    areas: List[str] = Field(default_factory=list)
    url: Optional[str] = None
    effective: datetime
    expires: datetime
    is_active: bool
    is_upcoming: bool
    urgency: str    # Immediate | Expected
    certainty: str  # Likely | Possible
