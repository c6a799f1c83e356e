"""
Alliance Registry - Group formation, dissolution, and bloc voting.

Alliances are built on top of the relationship graph:
- Two survivors may form one at affinity >= 60
- A newcomer needs >= 50 from every current member
- An alliance that drops below two members is dissolved immediately

At Tribal Council the registry turns alliances into votes: the strongest
alliance picks its target first and its members keep that vote even if a
weaker alliance they also belong to wants someone else.

The registry never reacts to relationship changes by itself.
reevaluate_alliances() is the explicit hook callers run after changing
affinities.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Collection, Iterable
import logging
import random

if TYPE_CHECKING:
    from ..engine_core.state import Survivor, Tribe
    from ..relationships.graph import RelationshipGraph


logger = logging.getLogger(__name__)

JOIN_THRESHOLD = 60
ADMIT_THRESHOLD = 50

# Re-evaluation after relationship changes
BOND_THRESHOLD = 75
BOND_FORM_CHANCE = 0.2
RIFT_THRESHOLD = 30
RIFT_BREAK_CHANCE = 0.3

# Daily NPC alliance formation
NPC_FORMATION_CHANCE = 0.3
NPC_FORMATION_MIN_TRIBE = 3

ALLIANCE_ADJECTIVES = [
    "Hidden", "Secret", "Strong", "Power", "Loyal", "Stealth",
    "Unbreakable", "Core", "Strategic", "Ultimate", "Final",
]
ALLIANCE_NOUNS = [
    "Alliance", "Pact", "Trust", "Coalition", "Circle", "Team",
    "Allies", "Union", "Bond", "League", "Partnership", "Syndicate",
]


@dataclass(eq=False)
class Alliance:
    """
    A voting bloc.

    strength is the mean pairwise affinity among members, kept current by
    the registry whenever membership changes.
    """
    alliance_id: int
    name: str
    members: list[Survivor] = field(default_factory=list)
    strength: float = 0.0

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def member_ids(self) -> list[int]:
        return [m.agent_id for m in self.members]

    def contains(self, agent_id: int) -> bool:
        return any(m.agent_id == agent_id for m in self.members)


class AllianceRegistry:
    """
    Owns every alliance in the game.

    Usage:
        registry = AllianceRegistry(graph, rng=rng)
        alliance = registry.try_form(alex, jordan)
        if alliance:
            registry.add_member(alliance, morgan)
        votes = registry.compute_bloc_votes(tribe, immune_ids={casey.agent_id})
    """

    def __init__(self, graph: RelationshipGraph, rng: random.Random | None = None):
        self.graph = graph
        self.rng = rng or graph.rng
        self._alliances: list[Alliance] = []
        self._next_id = 1

    @property
    def alliances(self) -> list[Alliance]:
        return list(self._alliances)

    def get(self, alliance_id: int) -> Alliance | None:
        for alliance in self._alliances:
            if alliance.alliance_id == alliance_id:
                return alliance
        return None

    def alliances_of(self, survivor: Survivor) -> list[Alliance]:
        return [a for a in self._alliances if a.contains(survivor.agent_id)]

    def share_alliance(self, a: Survivor, b: Survivor) -> bool:
        return any(
            alliance.contains(a.agent_id) and alliance.contains(b.agent_id)
            for alliance in self._alliances
        )

    # =========================================================================
    # Formation and membership
    # =========================================================================

    def try_form(self, a: Survivor, b: Survivor, name: str | None = None) -> Alliance | None:
        """
        Form a two-person alliance.

        Returns None if a's affinity toward b is below the join threshold
        or the two already share an alliance.
        """
        affinity = self.graph.get_affinity(a.agent_id, b.agent_id)
        if affinity < JOIN_THRESHOLD:
            logger.debug("%s and %s too far apart (%s) to ally", a.name, b.name, affinity)
            return None
        if self.share_alliance(a, b):
            return None

        if name is None:
            if a.is_human:
                name = f"{a.name}'s Alliance with {b.name}"
            else:
                name = f"{a.name} & {b.name} Alliance"

        alliance = Alliance(alliance_id=self._next_id, name=name, members=[a, b])
        self._next_id += 1
        self._alliances.append(alliance)
        self.recalculate_strength(alliance)

        logger.info("Formed alliance %r (strength %.1f)", alliance.name, alliance.strength)
        return alliance

    def add_member(self, alliance: Alliance, newcomer: Survivor) -> bool:
        """Admit newcomer only if every current member accepts them."""
        if alliance.contains(newcomer.agent_id):
            return False

        for member in alliance.members:
            if self.graph.get_affinity(member.agent_id, newcomer.agent_id) < ADMIT_THRESHOLD:
                return False

        alliance.members.append(newcomer)
        self.recalculate_strength(alliance)
        return True

    def remove_member(self, alliance: Alliance, member: Survivor) -> bool:
        """Remove a member, dissolving the alliance if fewer than two remain."""
        if not alliance.contains(member.agent_id):
            return False

        alliance.members = [m for m in alliance.members if m.agent_id != member.agent_id]
        if alliance.size < 2:
            self.disband(alliance)
            return True

        self.recalculate_strength(alliance)
        return True

    def remove_survivor(self, survivor: Survivor) -> int:
        """Drop a survivor from every alliance. Returns how many they left."""
        alliances = self.alliances_of(survivor)
        for alliance in alliances:
            self.remove_member(alliance, survivor)
        return len(alliances)

    def disband(self, alliance: Alliance):
        self._alliances = [a for a in self._alliances if a.alliance_id != alliance.alliance_id]
        logger.info("Alliance %r dissolved", alliance.name)

    def recalculate_strength(self, alliance: Alliance):
        """Mean pairwise affinity among members (0 for fewer than two)."""
        members = alliance.members
        if len(members) <= 1:
            alliance.strength = 0.0
            return

        total = 0
        pairs = 0
        for i in range(len(members)):
            for j in range(i + 1, len(members)):
                total += self.graph.get_affinity(members[i].agent_id, members[j].agent_id)
                pairs += 1
        alliance.strength = total / pairs

    def update_strengths(self):
        for alliance in self._alliances:
            self.recalculate_strength(alliance)

    # =========================================================================
    # Re-evaluation hooks
    # =========================================================================

    def reevaluate_alliances(
        self,
        a: Survivor,
        b: Survivor,
        tribes: Iterable[Tribe],
    ) -> list[str]:
        """
        React to a changed relationship between a and b.

        Strong bonds between tribe mates may become a new alliance; a rift
        may push the less-liked of the two out of alliances they share.
        Returns descriptions of what changed.
        """
        changes = []
        affinity = self.graph.get_affinity(a.agent_id, b.agent_id)

        if affinity >= BOND_THRESHOLD and not self.share_alliance(a, b):
            same_tribe = any(
                t.contains(a.agent_id) and t.contains(b.agent_id) for t in tribes
            )
            if same_tribe and self.rng.random() < BOND_FORM_CHANCE:
                alliance = self.try_form(a, b)
                if alliance:
                    changes.append(f"{a.name} and {b.name} formed {alliance.name}")

        if affinity < RIFT_THRESHOLD:
            shared = [
                al for al in self._alliances
                if al.contains(a.agent_id) and al.contains(b.agent_id)
            ]
            for alliance in shared:
                if self.rng.random() >= RIFT_BREAK_CHANCE:
                    continue
                leaving = self._less_liked(alliance, a, b)
                self.remove_member(alliance, leaving)
                changes.append(f"{leaving.name} left {alliance.name}")

        for change in changes:
            logger.info(change)
        return changes

    def _less_liked(self, alliance: Alliance, a: Survivor, b: Survivor) -> Survivor:
        """Of a and b, the one with the lower mean affinity to the other members."""
        others = [m for m in alliance.members if m.agent_id not in {a.agent_id, b.agent_id}]
        if not others:
            return b

        a_avg = sum(self.graph.get_affinity(a.agent_id, m.agent_id) for m in others) / len(others)
        b_avg = sum(self.graph.get_affinity(b.agent_id, m.agent_id) for m in others) / len(others)
        return a if a_avg < b_avg else b

    def form_npc_alliances(self, tribes: Iterable[Tribe]) -> list[Alliance]:
        """
        Daily chance for NPCs in each tribe to band together.

        Picks two or three NPCs at random; the first two must be able to
        form an alliance, the third joins only with unanimous consent.
        """
        formed = []
        for tribe in tribes:
            if tribe.size < NPC_FORMATION_MIN_TRIBE:
                continue
            npcs = [m for m in tribe.members if not m.is_human]
            if len(npcs) < 2 or self.rng.random() >= NPC_FORMATION_CHANCE:
                continue

            shuffled = list(npcs)
            self.rng.shuffle(shuffled)
            size = min(self.rng.randint(2, 3), len(shuffled))
            chosen = shuffled[:size]

            if any(all(al.contains(m.agent_id) for m in chosen) for al in self._alliances):
                continue

            alliance = self.try_form(chosen[0], chosen[1], name=f"The {self.random_name()}")
            if not alliance:
                continue
            for extra in chosen[2:]:
                self.add_member(alliance, extra)
            formed.append(alliance)
        return formed

    def random_name(self) -> str:
        return f"{self.rng.choice(ALLIANCE_ADJECTIVES)} {self.rng.choice(ALLIANCE_NOUNS)}"

    def suggest_allies(self, survivor: Survivor, tribe: Tribe) -> list[Survivor]:
        """Tribe mates survivor could ally with, warmest first."""
        candidates = [
            m for m in tribe.members
            if m.agent_id != survivor.agent_id
            and self.graph.get_affinity(survivor.agent_id, m.agent_id) >= JOIN_THRESHOLD
        ]
        candidates.sort(
            key=lambda m: self.graph.get_affinity(survivor.agent_id, m.agent_id),
            reverse=True,
        )
        return candidates

    # =========================================================================
    # Bloc voting
    # =========================================================================

    def compute_bloc_votes(
        self,
        tribe: Tribe,
        immune_ids: Collection[int],
        voters: Collection[int] | None = None,
        candidates: Collection[int] | None = None,
    ) -> dict[int, int]:
        """
        Votes cast by alliances at this council (voter id -> target id).

        Args:
            tribe: The tribe at council
            immune_ids: Survivors that cannot be targeted
            voters: Ids allowed to vote this pass (default: whole tribe)
            candidates: Ids that may be voted for (default: whole tribe);
                restricted to the tied survivors during a revote

        Human members never receive a bloc vote; they vote on their own.
        """
        self.update_strengths()
        votes: dict[int, int] = {}

        relevant = [
            al for al in self._alliances
            if any(tribe.contains(m.agent_id) for m in al.members)
        ]
        relevant = sorted(relevant, key=lambda al: al.strength, reverse=True)

        for alliance in relevant:
            voting_members = [
                m for m in tribe.members
                if alliance.contains(m.agent_id)
                and not m.is_human
                and (voters is None or m.agent_id in voters)
            ]
            if len(voting_members) < 2:
                continue

            target = self._bloc_target(alliance, voting_members, tribe, immune_ids, candidates)
            if target is None:
                continue

            for member in voting_members:
                if member.agent_id not in votes:
                    votes[member.agent_id] = target.agent_id

            logger.debug("%s votes as a bloc against %s", alliance.name, target.name)

        return votes

    def _bloc_target(
        self,
        alliance: Alliance,
        voting_members: list[Survivor],
        tribe: Tribe,
        immune_ids: Collection[int],
        candidates: Collection[int] | None,
    ) -> Survivor | None:
        target = None
        lowest = None
        for potential in tribe.members:
            if alliance.contains(potential.agent_id) or potential.agent_id in immune_ids:
                continue
            if candidates is not None and potential.agent_id not in candidates:
                continue

            total = sum(
                self.graph.get_affinity(m.agent_id, potential.agent_id)
                for m in voting_members
            )
            average = total / len(voting_members)
            if lowest is None or average < lowest:
                lowest = average
                target = potential
        return target
