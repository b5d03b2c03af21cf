"""
Error types for setlist editing and generation.

Insufficient songs and pacing problems are not errors: they come back as
warning objects alongside a successful result (see generate.warnings).
"""

from typing import Optional


class SetlistError(Exception):
    """Base class for all setlist engine errors."""
    pass


class DuplicateSongError(SetlistError):
    """Raised when a song already present in the setlist is inserted or swapped in."""

    def __init__(self, song_id: str, item_id: Optional[str] = None):
        self.song_id = song_id
        self.item_id = item_id
        super().__init__(f"Song {song_id} is already in this setlist")


class DuplicateItemError(SetlistError):
    """Raised when an explicit item id collides with an existing item."""
    pass


class NotFoundError(SetlistError, KeyError):
    """Raised when an operation references an item id not in the collection."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item not found: {item_id}")

    def __str__(self) -> str:
        # KeyError repr-quotes its message otherwise
        return f"Item not found: {self.item_id}"


class InvalidPositionError(SetlistError, ValueError):
    """Raised for negative positions or set indices."""
    pass


class ContiguityError(SetlistError):
    """Raised when a set's positions are not exactly 0..n-1 after an edit."""
    pass


class GenerationError(SetlistError, ValueError):
    """Raised when a generation request is malformed (bad set configuration)."""
    pass
