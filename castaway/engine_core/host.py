"""
Game Host - The interface the vote engine uses to reach the surrounding game.

The engine never looks the game up through globals. Whoever constructs it
passes a GameHost, and the engine only uses the methods below.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .state import Survivor, Tribe
    from .results import EliminationResult


class GameHost(ABC):
    """
    Abstract base class for the game surrounding a Tribal Council.

    Read-only queries plus the two notifications the engine emits after an
    elimination.
    """

    @abstractmethod
    def get_tribes(self) -> list[Tribe]:
        """All tribes still in play."""
        pass

    @abstractmethod
    def get_player_tribe(self) -> Tribe | None:
        """The tribe holding the human player, if any."""
        pass

    @abstractmethod
    def get_player_agent(self) -> Survivor | None:
        """The human player's survivor, if any."""
        pass

    @abstractmethod
    def is_post_merge(self) -> bool:
        """Whether the season has passed its merge point."""
        pass

    @abstractmethod
    def add_to_jury(self, survivor: Survivor):
        """Induct a post-merge elimination into the jury."""
        pass

    @abstractmethod
    def on_eliminated(self, result: EliminationResult):
        """Advance the outer state machine after an elimination."""
        pass
