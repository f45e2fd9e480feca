#!/usr/bin/env python3
#
###################################################################
# Project: HalifaxBridges
# File: bridges_app/sayings.py
# Purpose: Maritimer flavor lines per weather severity.
#
# Description of code and how it works:
# - One pool of preset phrases per severity, picked uniformly.
# - Temperature extremes override everything; fog and freezing rain
#   override the severity pool.
# - The random source is injectable so tests can pin the output.
#
# Author: Tim Canady
# Created: 2026-10-14
#
# Version: 0.2.0
# Last Modified: 2026-10-15 by Tim Canady
###################################################################
#
from __future__ import annotations

import random
from typing import Dict, List, Optional

from .schemas import WeatherCondition, WeatherSeverity

SAYINGS: Dict[WeatherSeverity, List[str]] = {
    WeatherSeverity.APOCALYPTIC: [
        "Holy shit, stay home b'y!",
        "She's right wild out there!",
        "Lord tunderin' Jesus!",
        "Don't even think about it, bud",
        "The bridges are the least of yer worries!",
        "Even the seagulls are hiding",
        "Tim Hortons might be closed, that's how bad",
    ],
    WeatherSeverity.FUCKED: [
        "IT'S ABSOLUTELY FUCKED OUT THERE!",
        "She's blowin' a gale, b'y!",
        "Wouldn't send the dog out in this",
        "Better grab a double-double and wait it out",
        "The harbour's right angry today",
        "Batten down the hatches!",
        "Perfect donair weather (stay inside)",
    ],
    WeatherSeverity.ROUGH: [
        "It's a bit gnarly out there",
        "Dress warm, bud",
        "She's spittin' sideways",
        "Gonna need the good windshield wipers",
        "Not the day for a walk on the waterfront",
        "Might want that extra coffee",
        "The wind'll cut right through ya",
    ],
    WeatherSeverity.MEH: [
        "Could be worse, could be better",
        "Bit damp out there",
        "Standard Halifax, really",
        "You'll live",
        "Nothing a good toque can't fix",
        "Just another day on the East Coast",
        "Bring a jacket, probably",
    ],
    WeatherSeverity.FINE: [
        "She's right beautiful out!",
        "Perfect day for the bridges",
        "Go on, get out there!",
        "Rare sunny day, enjoy it b'y!",
        "Even the bridges are happy",
        "Great day for a donair on the waterfront",
        "The harbour's calm as glass",
    ],
}

FOG_SAYINGS = [
    "Can't see the nose on yer face",
    "Pea soup fog, classic Halifax",
    "The fog's rolled in thick",
]

COLD_SAYING = "Cold enough to freeze the balls off a brass monkey!"
HOT_SAYING = "Hotter than a two-dollar pistol!"
FREEZING_RAIN_SAYING = "Black ice special - drive like nan's in the car"

def pick_saying(severity: WeatherSeverity, condition: WeatherCondition, temperature: float,
                rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()

    if temperature < -20:
        return COLD_SAYING
    if temperature > 30:
        return HOT_SAYING

    if condition is WeatherCondition.FOG:
        return rng.choice(FOG_SAYINGS)
    if condition is WeatherCondition.FREEZING_RAIN:
        return FREEZING_RAIN_SAYING

    return rng.choice(SAYINGS[severity])
