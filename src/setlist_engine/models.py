"""
Plain data containers exchanged with the host application.

Songs are read-only catalog records; setlist items are the ordered
(set_index, position) assignments the store keeps contiguous. Every container
round-trips through to_dict()/from_dict() so callers can hand the engine the
documents straight from their store (camelCase keys are accepted).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Tuple


RATING_MIN = 1
RATING_MAX = 5


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in data (snake_case or camelCase)."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Normalize a timestamp to an aware UTC datetime.

    Accepts datetimes (naive ones are taken as UTC), epoch milliseconds
    (the host store's native format) and ISO-8601 strings.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    raise ValueError(f"Unsupported timestamp: {value!r}")


@dataclass(frozen=True)
class Song:
    """Immutable catalog record, as far as the engine needs to see it."""

    id: str
    title: str
    artist: str = ""
    vocal_intensity: int = 3
    energy_level: int = 3
    play_count: int = 0
    last_played_at: Optional[datetime] = None
    tags: Tuple[str, ...] = ()

    def __post_init__(self):
        for name in ("vocal_intensity", "energy_level"):
            value = getattr(self, name)
            if not RATING_MIN <= value <= RATING_MAX:
                raise ValueError(
                    f"Song {self.id}: {name}={value} out of bounds [{RATING_MIN}, {RATING_MAX}]"
                )
        if self.play_count < 0:
            raise ValueError(f"Song {self.id}: play_count must be >= 0")
        # Frozen; naive datetimes are taken as UTC like from_dict does
        object.__setattr__(self, "last_played_at", parse_timestamp(self.last_played_at))

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Song":
        song_id = _pick(data, "id", "_id", "songId")
        if song_id is None:
            raise ValueError(f"Song record has no id: {data!r}")
        tags = _pick(data, "tags", default=())
        return cls(
            id=str(song_id),
            title=_pick(data, "title", default=""),
            artist=_pick(data, "artist", default=""),
            vocal_intensity=int(_pick(data, "vocal_intensity", "vocalIntensity", default=3)),
            energy_level=int(_pick(data, "energy_level", "energyLevel", default=3)),
            play_count=int(_pick(data, "play_count", "playCount", default=0)),
            last_played_at=parse_timestamp(_pick(data, "last_played_at", "lastPlayedAt")),
            tags=tuple(str(t).lower() for t in tags),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "vocal_intensity": self.vocal_intensity,
            "energy_level": self.energy_level,
            "play_count": self.play_count,
            "last_played_at": self.last_played_at.isoformat() if self.last_played_at else None,
            "tags": list(self.tags),
        }


@dataclass(frozen=True)
class SetConfig:
    """Shape of one set: its index and its target song count."""

    set_index: int
    songs_per_set: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SetConfig":
        return cls(
            set_index=int(_pick(data, "set_index", "setIndex")),
            songs_per_set=int(_pick(data, "songs_per_set", "songsPerSet")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"set_index": self.set_index, "songs_per_set": self.songs_per_set}


@dataclass(frozen=True)
class SetlistItem:
    """One song placed at (set_index, position) within a setlist."""

    id: str
    song_id: str
    set_index: int
    position: int
    is_pinned: bool = False
    gig_notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SetlistItem":
        return cls(
            id=str(_pick(data, "id", "_id")),
            song_id=str(_pick(data, "song_id", "songId")),
            set_index=int(_pick(data, "set_index", "setIndex")),
            position=int(_pick(data, "position")),
            is_pinned=bool(_pick(data, "is_pinned", "isPinned", default=False)),
            gig_notes=_pick(data, "gig_notes", "gigNotes"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "song_id": self.song_id,
            "set_index": self.set_index,
            "position": self.position,
            "is_pinned": self.is_pinned,
            "gig_notes": self.gig_notes,
        }


@dataclass(frozen=True)
class PinnedSlot:
    """A locked (set_index, position, song_id) assignment."""

    set_index: int
    position: int
    song_id: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PinnedSlot":
        return cls(
            set_index=int(_pick(data, "set_index", "setIndex")),
            position=int(_pick(data, "position")),
            song_id=str(_pick(data, "song_id", "songId")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"set_index": self.set_index, "position": self.position, "song_id": self.song_id}


@dataclass(frozen=True)
class TemplateSlot:
    """Template slot; song_id is None for a reserved but empty position."""

    position: int
    song_id: Optional[str] = None


@dataclass(frozen=True)
class TemplateSet:
    set_index: int
    songs_per_set: int
    pinned_slots: Tuple[TemplateSlot, ...] = ()


@dataclass(frozen=True)
class Template:
    """Reusable setlist shape with optional pinned songs."""

    name: str
    sets: Tuple[TemplateSet, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Template":
        sets = []
        for set_data in _pick(data, "sets", "setsConfig", default=[]):
            slots = tuple(
                TemplateSlot(
                    position=int(slot["position"]),
                    song_id=_pick(slot, "song_id", "songId"),
                )
                for slot in _pick(set_data, "pinned_slots", "pinnedSlots", default=[])
            )
            sets.append(
                TemplateSet(
                    set_index=int(_pick(set_data, "set_index", "setIndex")),
                    songs_per_set=int(_pick(set_data, "songs_per_set", "songsPerSet")),
                    pinned_slots=slots,
                )
            )
        return cls(name=str(data.get("name", "")).strip(), sets=tuple(sets))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "sets": [
                {
                    "set_index": s.set_index,
                    "songs_per_set": s.songs_per_set,
                    "pinned_slots": [
                        {"position": slot.position, "song_id": slot.song_id}
                        for slot in s.pinned_slots
                    ],
                }
                for s in self.sets
            ],
        }


def index_songs(songs: List[Song]) -> Dict[str, Song]:
    """Build a song_id -> Song lookup."""
    return {song.id: song for song in songs}
