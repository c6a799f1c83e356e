"""
Season Setup - Creates the initial game state.

This module handles:
- Creating the human survivor (a cast member or a newcomer)
- Shuffling the rest of the cast with a seed for determinism
- Dividing the NPCs between the two starting tribes
- Initial relationships within each tribe
"""

from __future__ import annotations
import random
from typing import TYPE_CHECKING

from ..bots.personality import random_trait
from ..engine_core.state import (
    DEFAULT_MERGE_DAY,
    GamePhase,
    GameState,
    Survivor,
    Tribe,
    TRIBE_COLORS,
    TRIBE_NAMES,
)
from .cast import SURVIVOR_DATABASE, CastEntry, get_cast_entry

if TYPE_CHECKING:
    from ..relationships.graph import RelationshipGraph


DEFAULT_NPC_COUNT = 9
HUMAN_DEFAULT_STAT = 60


def setup_season(
    human_name: str = "Player",
    random_seed: int | None = None,
    cast: list[CastEntry] | None = None,
    num_npcs: int = DEFAULT_NPC_COUNT,
    merge_day: int = DEFAULT_MERGE_DAY,
    rng: random.Random | None = None,
    graph: RelationshipGraph | None = None,
) -> GameState:
    """
    Set up a new season.

    Args:
        human_name: Name for the human survivor. A cast member's name
            plays as that cast member.
        random_seed: Seed for deterministic shuffling (ignored if rng given)
        cast: Cast to draw NPCs from (defaults to SURVIVOR_DATABASE)
        num_npcs: Number of NPCs (2 or more)
        merge_day: Day the tribes merge
        rng: Shared random source
        graph: Relationship graph to register survivors in and initialize

    Returns:
        Initial GameState with two tribes, the human in the first
    """
    if num_npcs < 2:
        raise ValueError("A season needs at least two NPCs")

    rng = rng or random.Random(random_seed)
    pool = list(cast or SURVIVOR_DATABASE)

    human = _create_human(human_name, pool)
    pool = [entry for entry in pool if entry.name.lower() != human.name.lower()]
    if len(pool) < num_npcs:
        raise ValueError(f"Cast has {len(pool)} survivors, {num_npcs} NPCs requested")

    rng.shuffle(pool)
    npcs = [
        _create_npc(agent_id, entry, rng)
        for agent_id, entry in enumerate(pool[:num_npcs], start=human.agent_id + 1)
    ]

    # Human's tribe takes the larger half
    split = (num_npcs + 1) // 2
    tribes = [
        Tribe(name=TRIBE_NAMES[0], color=TRIBE_COLORS[0], members=[human] + npcs[:split]),
        Tribe(name=TRIBE_NAMES[1], color=TRIBE_COLORS[1], members=npcs[split:]),
    ]

    seed = random_seed if random_seed is not None else rng.randint(0, 999999)
    state = GameState(
        game_id=f"season_{seed}",
        phase=GamePhase.PRE_MERGE,
        day=1,
        merge_day=merge_day,
        tribes=tribes,
        player_id=human.agent_id,
        random_seed=seed,
    )

    if graph is not None:
        for tribe in tribes:
            graph.initialize_tribe(tribe)

    return state


def _create_human(name: str, cast: list[CastEntry]) -> Survivor:
    entry = get_cast_entry(name) if name else None
    if entry and entry in cast:
        return _from_entry(1, entry, is_human=True)
    return Survivor(
        agent_id=1,
        name=name or "Player",
        description="You",
        is_human=True,
        physical_stat=HUMAN_DEFAULT_STAT,
        mental_stat=HUMAN_DEFAULT_STAT,
        personality_stat=HUMAN_DEFAULT_STAT,
    )


def _create_npc(agent_id: int, entry: CastEntry, rng: random.Random) -> Survivor:
    npc = _from_entry(agent_id, entry, is_human=False)
    npc.trait = random_trait(rng)
    return npc


def _from_entry(agent_id: int, entry: CastEntry, is_human: bool) -> Survivor:
    return Survivor(
        agent_id=agent_id,
        name=entry.name,
        description=entry.description,
        is_human=is_human,
        physical_stat=entry.physical_stat,
        mental_stat=entry.mental_stat,
        personality_stat=entry.personality_stat,
    )
