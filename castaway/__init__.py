"""
Castaway - Tribal Council Engine

A deterministic, seedable engine for the voting side of a Survivor-style
elimination game. It provides:
- A relationship graph (pairwise affinity between survivors)
- An alliance registry (formation, dissolution, bloc voting)
- A vote resolution engine (votes, idols, revotes, rock draws)
- Sessions and a REST API for a presentation layer
"""

__version__ = "0.1.0"
