"""
Session module - In-memory seasons and the council loop.
"""

from .council_loop import CouncilLoop, CouncilResult, LoopState
from .manager import Session, SessionManager, SessionState

__all__ = [
    "CouncilLoop",
    "CouncilResult",
    "LoopState",
    "Session",
    "SessionManager",
    "SessionState",
]
