"""
Default cast - The twelve survivors a season is drawn from.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class CastEntry:
    """Template a Survivor is created from."""
    name: str
    description: str
    physical_stat: int
    mental_stat: int
    personality_stat: int


SURVIVOR_DATABASE: list[CastEntry] = [
    CastEntry("Alex", "A former athlete who excels in physical challenges.", 85, 60, 70),
    CastEntry("Jordan", "A strategic thinker with a quick wit.", 65, 90, 75),
    CastEntry("Morgan", "A social butterfly who forms strong alliances.", 60, 70, 90),
    CastEntry("Casey", "A wilderness expert with survival skills.", 80, 75, 65),
    CastEntry("Taylor", "A cunning player who plays behind the scenes.", 70, 85, 65),
    CastEntry("Riley", "A tough competitor with a strong work ethic.", 75, 65, 80),
    CastEntry("Avery", "A brilliant puzzle solver with a quiet demeanor.", 55, 95, 60),
    CastEntry("Cameron", "A charming diplomat who mediates conflicts.", 65, 75, 85),
    CastEntry("Jamie", "An endurance specialist with a never-give-up attitude.", 90, 60, 70),
    CastEntry("Quinn", "A balanced player with a keen awareness of the game.", 75, 75, 75),
    CastEntry("Skyler", "A resourceful competitor who adapts to any situation.", 70, 80, 75),
    CastEntry("Blake", "A competitive powerhouse with a bold personality.", 85, 65, 70),
]


def get_cast_entry(name: str) -> CastEntry | None:
    for entry in SURVIVOR_DATABASE:
        if entry.name.lower() == name.lower():
            return entry
    return None
