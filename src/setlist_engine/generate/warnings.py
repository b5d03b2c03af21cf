"""
Warnings returned as data alongside a successful result.

None of these are errors: a short song pool or an imperfect vocal run is
something a person (or another generation pass) resolves.
"""

from dataclasses import dataclass
from typing import Tuple, Dict, Any


@dataclass(frozen=True)
class SetlistWarning:
    set_index: int

    @property
    def kind(self) -> str:
        return "warning"

    @property
    def message(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return f"Set {self.set_index}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "set_index": self.set_index, "message": str(self)}


@dataclass(frozen=True)
class CapacityWarning(SetlistWarning):
    """A run of 0-based positions that could not be filled."""

    first_position: int = 0
    last_position: int = 0

    @property
    def kind(self) -> str:
        return "capacity"

    @property
    def positions(self) -> Tuple[int, ...]:
        return tuple(range(self.first_position, self.last_position + 1))

    @property
    def message(self) -> str:
        if self.first_position == self.last_position:
            return f"Not enough songs available for position {self.first_position}"
        return (
            f"Not enough songs available for positions "
            f"{self.first_position}-{self.last_position}"
        )


@dataclass(frozen=True)
class PacingWarning(SetlistWarning):
    """Three consecutive high vocal-intensity songs."""

    titles: Tuple[str, ...] = ()
    start_position: int = 0

    @property
    def kind(self) -> str:
        return "pacing"

    @property
    def message(self) -> str:
        return f"High vocal intensity: 3 songs in a row ({', '.join(self.titles)})"


@dataclass(frozen=True)
class PinWarning(SetlistWarning):
    """A pinned slot that generation could not honour."""

    song_id: str = ""
    position: int = 0
    reason: str = ""

    @property
    def kind(self) -> str:
        return "pin"

    @property
    def message(self) -> str:
        return f"Pinned song {self.song_id} at position {self.position} skipped: {self.reason}"
