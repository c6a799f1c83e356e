"""
Relationships module - Pairwise affinity between survivors.
"""

from .graph import (
    RelationshipGraph,
    RelationshipEdge,
    RelationshipTier,
    UnknownSurvivorError,
)

__all__ = [
    "RelationshipGraph",
    "RelationshipEdge",
    "RelationshipTier",
    "UnknownSurvivorError",
]
