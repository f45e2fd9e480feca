#!/usr/bin/env python3
#
###################################################################
# Project: HalifaxBridges
# File: bridges_app/classifiers.py
# Purpose: Pure level classifiers (traffic, weather, alerts).
#
# Description of code and how it works:
# - Keyword classification is an ordered list of (predicate, result) rules;
#   the first matching rule wins, so list order IS the precedence.
# - TrafficLevel checks "closed" after heavy/moderate/light, so a fragment
#   like "light ... closed" resolves to light.
# - Weather: WMO code bands -> condition, then blizzard/hurricane overrides,
#   then ordered severity tiers evaluated most severe first.
# - Alerts: type from description keywords, severity from a fixed table.
# - No I/O, no clock, no randomness in this module.
#
# Author: Tim Canady
# Created: 2026-10-12
#
# Version: 0.6.0
# Last Modified: 2026-10-17 by Tim Canady
#
# Revision History:
# - 0.6.0 (2026-10-17): Per-bridge assessment (detail view).
# - 0.5.0 (2026-10-16): Alert rules as ordered table; overlay mapping.
# - 0.3.0 (2026-10-14): Weather severity tiers.
# - 0.1.0 (2026-10-12): Traffic level + fuck level.
###################################################################
#
from __future__ import annotations

from collections import Counter
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .schemas import (
    AlertSeverity,
    AlertType,
    Bridge,
    BridgeStatus,
    FuckLevel,
    TrafficLevel,
    WeatherCondition,
    WeatherSeverity,
)

Rule = Tuple[Callable[[str], bool], object]

def _has(*words: str) -> Callable[[str], bool]:
    """Predicate: every word occurs in the (already lower-cased) text."""
    return lambda text: all(w in text for w in words)

def _any(*words: str) -> Callable[[str], bool]:
    return lambda text: any(w in text for w in words)

def first_match(rules: Sequence[Rule], text: str, default):
    lowered = (text or "").lower()
    for predicate, result in rules:
        if predicate(lowered):
            return result
    return default

# ---- traffic ------------------------------------------------------------------

TRAFFIC_LEVEL_RULES: List[Rule] = [
    (_any("heavy", "high"), TrafficLevel.HEAVY),
    (_any("moderate", "medium"), TrafficLevel.MODERATE),
    (_any("light", "low"), TrafficLevel.LIGHT),
    (_any("closed"), TrafficLevel.CLOSED),
]

def parse_traffic_level(text: Optional[str]) -> TrafficLevel:
    return first_match(TRAFFIC_LEVEL_RULES, text or "", TrafficLevel.UNKNOWN)

def fuck_level_from_levels(levels: Iterable[TrafficLevel]) -> FuckLevel:
    """Composite level over all four directions; depends only on the multiset."""
    counts = Counter(levels)
    closed = counts[TrafficLevel.CLOSED]
    heavy = counts[TrafficLevel.HEAVY]
    moderate = counts[TrafficLevel.MODERATE]

    if closed >= 2:
        return FuckLevel.ABSOLUTELY
    if closed >= 1 or heavy >= 3:
        return FuckLevel.VERY
    if heavy >= 2 or (heavy >= 1 and moderate >= 2):
        return FuckLevel.KINDA
    return FuckLevel.NOT

def calculate_fuck_level(macdonald: Bridge, mackay: Bridge) -> Tuple[bool, FuckLevel]:
    level = fuck_level_from_levels(macdonald.levels() + mackay.levels())
    return level is not FuckLevel.NOT, level

def assess_bridge(bridge: Bridge) -> BridgeStatus:
    counts = Counter(bridge.levels())
    closed = counts[TrafficLevel.CLOSED]
    heavy = counts[TrafficLevel.HEAVY]
    moderate = counts[TrafficLevel.MODERATE]

    if closed > 0:
        reason = "Both directions closed!" if closed == 2 else "One direction closed!"
        return BridgeStatus(is_fucked=True, reason=reason, severity="critical")
    if heavy >= 2:
        return BridgeStatus(is_fucked=True, reason="Heavy traffic both ways", severity="bad")
    if heavy == 1:
        return BridgeStatus(is_fucked=True, reason="Heavy traffic one direction", severity="bad")
    if moderate >= 2:
        return BridgeStatus(is_fucked=False, reason="Moderate traffic both ways", severity="moderate")
    if moderate == 1:
        return BridgeStatus(is_fucked=False, reason="Mostly light traffic", severity="good")
    return BridgeStatus(is_fucked=False, reason="Smooth sailing", severity="good")

# ---- weather ------------------------------------------------------------------

# (low, high) inclusive WMO code bands; https://open-meteo.com/en/docs
WEATHER_CODE_BANDS: List[Tuple[int, int, WeatherCondition]] = [
    (0, 2, WeatherCondition.CLEAR),
    (3, 3, WeatherCondition.CLOUDY),
    (45, 48, WeatherCondition.FOG),
    (51, 55, WeatherCondition.DRIZZLE),
    (56, 57, WeatherCondition.FREEZING_RAIN),
    (66, 67, WeatherCondition.FREEZING_RAIN),
    (61, 63, WeatherCondition.RAIN),
    (80, 81, WeatherCondition.RAIN),
    (65, 65, WeatherCondition.HEAVY_RAIN),
    (82, 82, WeatherCondition.HEAVY_RAIN),
    (71, 73, WeatherCondition.SNOW),
    (85, 86, WeatherCondition.SNOW),
    (75, 75, WeatherCondition.HEAVY_SNOW),
    (77, 77, WeatherCondition.HEAVY_SNOW),
    (95, 99, WeatherCondition.THUNDERSTORM),
]

BLIZZARD_WIND_KMH = 40
HURRICANE_GUST_KMH = 120

def map_weather_code(code: int) -> WeatherCondition:
    for low, high, condition in WEATHER_CODE_BANDS:
        if low <= code <= high:
            return condition
    return WeatherCondition.UNKNOWN

def apply_condition_overrides(condition: WeatherCondition, wind_speed: float, wind_gusts: float) -> WeatherCondition:
    if condition in (WeatherCondition.SNOW, WeatherCondition.HEAVY_SNOW) and wind_speed > BLIZZARD_WIND_KMH:
        condition = WeatherCondition.BLIZZARD
    if wind_gusts > HURRICANE_GUST_KMH:
        condition = WeatherCondition.HURRICANE
    return condition

_FUCKED_CONDITIONS = {WeatherCondition.BLIZZARD, WeatherCondition.HURRICANE, WeatherCondition.HEAVY_SNOW}
_ROUGH_CONDITIONS = {
    WeatherCondition.HEAVY_RAIN, WeatherCondition.FREEZING_RAIN,
    WeatherCondition.THUNDERSTORM, WeatherCondition.SNOW,
}
_MEH_CONDITIONS = {WeatherCondition.RAIN, WeatherCondition.DRIZZLE, WeatherCondition.FOG}

def calculate_severity(condition: WeatherCondition, wind_speed: float, wind_gusts: float,
                       feels_like: float, snowfall: float, visibility: float) -> WeatherSeverity:
    """Ordered tiers, most severe first. ``visibility`` is in km."""
    if wind_gusts > 100 or (snowfall > 5 and wind_speed > 50) or visibility < 0.1:
        return WeatherSeverity.APOCALYPTIC

    if (condition in _FUCKED_CONDITIONS
            or wind_gusts > 70
            or feels_like < -25
            or (snowfall > 2 and wind_speed > 30)
            or visibility < 0.5):
        return WeatherSeverity.FUCKED

    if (condition in _ROUGH_CONDITIONS
            or wind_speed > 50
            or feels_like < -15
            or visibility < 1):
        return WeatherSeverity.ROUGH

    if condition in _MEH_CONDITIONS or wind_speed > 30 or feels_like < -5:
        return WeatherSeverity.MEH

    return WeatherSeverity.FINE

_SHORT_STATUS: Dict[WeatherSeverity, str] = {
    WeatherSeverity.APOCALYPTIC: "ABSOLUTELY FUCKED",
    WeatherSeverity.FUCKED: "IT'S FUCKED",
    WeatherSeverity.ROUGH: "Rough",
    WeatherSeverity.MEH: "Meh",
    WeatherSeverity.FINE: "All Good",
}

def short_status(severity: WeatherSeverity) -> str:
    return _SHORT_STATUS[severity]

def is_weather_fucked(severity: WeatherSeverity) -> bool:
    return severity in (WeatherSeverity.FUCKED, WeatherSeverity.APOCALYPTIC)

_CONDITION_LABELS: Dict[WeatherCondition, str] = {
    WeatherCondition.CLEAR: "Clear",
    WeatherCondition.CLOUDY: "Cloudy",
    WeatherCondition.FOG: "Foggy",
    WeatherCondition.DRIZZLE: "Drizzle",
    WeatherCondition.RAIN: "Rain",
    WeatherCondition.HEAVY_RAIN: "Heavy Rain",
    WeatherCondition.FREEZING_RAIN: "Freezing Rain",
    WeatherCondition.SNOW: "Snow",
    WeatherCondition.HEAVY_SNOW: "Heavy Snow",
    WeatherCondition.BLIZZARD: "Blizzard",
    WeatherCondition.THUNDERSTORM: "Thunderstorm",
    WeatherCondition.HURRICANE: "Hurricane",
    WeatherCondition.UNKNOWN: "Unknown",
}

def condition_label(condition: WeatherCondition) -> str:
    return _CONDITION_LABELS[condition]

# ---- alerts -------------------------------------------------------------------

# Most specific phrase combinations first
ALERT_TYPE_RULES: List[Rule] = [
    (_has("blizzard", "warning"), AlertType.BLIZZARD_WARNING),
    (_has("winter storm", "warning"), AlertType.WINTER_STORM_WARNING),
    (_has("winter storm", "watch"), AlertType.WINTER_STORM_WATCH),
    (_has("snowfall", "warning"), AlertType.SNOWFALL_WARNING),
    (_any("freezing rain", "freezing drizzle"), AlertType.FREEZING_RAIN_WARNING),
    (_has("wind", "warning"), AlertType.WIND_WARNING),
    (_has("hurricane", "warning"), AlertType.HURRICANE_WARNING),
    (_has("hurricane", "watch"), AlertType.HURRICANE_WATCH),
    (_any("tropical storm"), AlertType.TROPICAL_STORM_WARNING),
    (_has("severe thunderstorm", "warning"), AlertType.SEVERE_THUNDERSTORM_WARNING),
    (_has("severe thunderstorm", "watch"), AlertType.SEVERE_THUNDERSTORM_WATCH),
    (_has("tornado", "warning"), AlertType.TORNADO_WARNING),
    (_has("tornado", "watch"), AlertType.TORNADO_WATCH),
    (_any("fog"), AlertType.FOG_ADVISORY),
    (_any("heat"), AlertType.HEAT_WARNING),
    (_any("cold"), AlertType.COLD_WARNING),
    (_any("storm surge"), AlertType.STORM_SURGE_WARNING),
    (_any("special weather"), AlertType.SPECIAL_WEATHER_STATEMENT),
    (_any("advisory"), AlertType.WEATHER_ADVISORY),
]

def classify_alert_type(text: Optional[str]) -> AlertType:
    return first_match(ALERT_TYPE_RULES, text or "", AlertType.UNKNOWN)

ALERT_SEVERITY_TABLE: Dict[AlertType, AlertSeverity] = {
    AlertType.TORNADO_WARNING: AlertSeverity.EXTREME,
    AlertType.HURRICANE_WARNING: AlertSeverity.EXTREME,
    AlertType.BLIZZARD_WARNING: AlertSeverity.EXTREME,

    AlertType.WINTER_STORM_WARNING: AlertSeverity.SEVERE,
    AlertType.SEVERE_THUNDERSTORM_WARNING: AlertSeverity.SEVERE,
    AlertType.TROPICAL_STORM_WARNING: AlertSeverity.SEVERE,
    AlertType.STORM_SURGE_WARNING: AlertSeverity.SEVERE,

    AlertType.FREEZING_RAIN_WARNING: AlertSeverity.MODERATE,
    AlertType.SNOWFALL_WARNING: AlertSeverity.MODERATE,
    AlertType.WIND_WARNING: AlertSeverity.MODERATE,
    AlertType.WINTER_STORM_WATCH: AlertSeverity.MODERATE,
    AlertType.TORNADO_WATCH: AlertSeverity.MODERATE,
    AlertType.SEVERE_THUNDERSTORM_WATCH: AlertSeverity.MODERATE,
    AlertType.HURRICANE_WATCH: AlertSeverity.MODERATE,

    AlertType.FOG_ADVISORY: AlertSeverity.MINOR,
    AlertType.WEATHER_ADVISORY: AlertSeverity.MINOR,
    AlertType.SPECIAL_WEATHER_STATEMENT: AlertSeverity.MINOR,
    AlertType.HEAT_WARNING: AlertSeverity.MINOR,
    AlertType.COLD_WARNING: AlertSeverity.MINOR,
}

SEVERITY_RANK: Dict[AlertSeverity, int] = {
    AlertSeverity.EXTREME: 0,
    AlertSeverity.SEVERE: 1,
    AlertSeverity.MODERATE: 2,
    AlertSeverity.MINOR: 3,
    AlertSeverity.UNKNOWN: 4,
}

def alert_severity(alert_type: AlertType, text: Optional[str] = None) -> AlertSeverity:
    severity = ALERT_SEVERITY_TABLE.get(alert_type, AlertSeverity.UNKNOWN)
    # minor bucket: an actual "warning" (e.g. heat warning) outranks an advisory
    if severity is AlertSeverity.MINOR and "warning" in (text or "").lower():
        return AlertSeverity.MODERATE
    return severity

_ALERT_OVERLAY: Dict[AlertType, WeatherCondition] = {
    AlertType.BLIZZARD_WARNING: WeatherCondition.BLIZZARD,
    AlertType.WINTER_STORM_WARNING: WeatherCondition.BLIZZARD,
    AlertType.SNOWFALL_WARNING: WeatherCondition.HEAVY_SNOW,
    AlertType.FREEZING_RAIN_WARNING: WeatherCondition.FREEZING_RAIN,
    AlertType.HURRICANE_WARNING: WeatherCondition.HURRICANE,
    AlertType.HURRICANE_WATCH: WeatherCondition.HURRICANE,
    AlertType.TROPICAL_STORM_WARNING: WeatherCondition.HURRICANE,
    AlertType.SEVERE_THUNDERSTORM_WARNING: WeatherCondition.THUNDERSTORM,
    AlertType.SEVERE_THUNDERSTORM_WATCH: WeatherCondition.THUNDERSTORM,
    AlertType.TORNADO_WARNING: WeatherCondition.THUNDERSTORM,
    AlertType.FOG_ADVISORY: WeatherCondition.FOG,
    AlertType.WIND_WARNING: WeatherCondition.HEAVY_RAIN,
}

def alert_type_to_condition(alert_type: AlertType) -> Optional[WeatherCondition]:
    """Condition the overlay should draw while this alert is in force."""
    return _ALERT_OVERLAY.get(alert_type)
