"""
Setlist Generation Module: build a full setlist from a song pool.

- Greedy per-slot fill (no backtracking), sets in ascending order
- Energy-curve fit, vocal pacing penalty, freshness bonus
- Random pick among the top candidates from an injected source
- Output: ordered items plus warnings
"""

__all__ = ["energy", "selector", "pacing", "warnings", "setlist"]
