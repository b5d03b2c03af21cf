"""
Setlist Generation: fill every open slot of every set in one pass.

Sets are filled in ascending set index from a single song pool shared by
the whole run, so a song used in set 1 cannot come back in set 2. Pinned
slots are placed first and their songs leave the pool up front.

Running short of songs or breaking vocal pacing never fails a run: both are
reported as warnings next to whatever could be placed.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any, Iterable, Tuple

from ..errors import DuplicateSongError, GenerationError
from ..models import PinnedSlot, SetConfig, SetlistItem, Song, parse_timestamp
from ..store.items import OrderedItemStore
from .energy import FLOW_PRESETS
from .pacing import find_pacing_violations
from .selector import GenerationConstraints, RandomSource, Slot, SongSelector
from .warnings import CapacityWarning, PinWarning, SetlistWarning

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedItem:
    """A song assigned to (set_index, position) by generation."""

    set_index: int
    position: int
    song_id: str
    is_pinned: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "set_index": self.set_index,
            "position": self.position,
            "song_id": self.song_id,
            "is_pinned": self.is_pinned,
        }


@dataclass
class GenerationResult:
    """Generated items sorted by (set_index, position), plus warnings."""

    items: List[GeneratedItem] = field(default_factory=list)
    warnings: List[SetlistWarning] = field(default_factory=list)

    @property
    def messages(self) -> List[str]:
        return [str(w) for w in self.warnings]

    def items_for_set(self, set_index: int) -> List[GeneratedItem]:
        return [i for i in self.items if i.set_index == set_index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [i.to_dict() for i in self.items],
            "warnings": self.messages,
        }


def _capacity_warnings(set_index: int, positions: List[int]) -> List[CapacityWarning]:
    """Collapse unfilled positions into one warning per contiguous run."""
    warnings = []
    run_start = None
    previous = None
    for position in positions:
        if run_start is None:
            run_start = position
        elif position != previous + 1:
            warnings.append(CapacityWarning(set_index, run_start, previous))
            run_start = position
        previous = position
    if run_start is not None:
        warnings.append(CapacityWarning(set_index, run_start, previous))
    return warnings


class SetlistGenerator:
    """
    Generation engine.

    Holds only its scoring weights and random source; every call to
    generate() works from the arguments it is given.
    """

    def __init__(
        self,
        constraints: Optional[GenerationConstraints] = None,
        rng: Optional[RandomSource] = None,
    ):
        """
        Args:
            constraints: Scoring weights (defaults when None)
            rng: Random source for the top-k pick (SystemRandom when None)
        """
        self.constraints = constraints or GenerationConstraints()
        self.selector = SongSelector(self.constraints, rng)

    @staticmethod
    def _validate_sets(sets_config: List[SetConfig]) -> List[SetConfig]:
        seen = set()
        for config in sets_config:
            if config.set_index < 1:
                raise GenerationError(f"set_index must be >= 1, got {config.set_index}")
            if config.songs_per_set < 1:
                raise GenerationError(
                    f"Set {config.set_index}: songs_per_set must be >= 1, got {config.songs_per_set}"
                )
            if config.set_index in seen:
                raise GenerationError(f"Set {config.set_index} configured twice")
            seen.add(config.set_index)
        return sorted(sets_config, key=lambda c: c.set_index)

    def _resolve_pins(
        self,
        pinned_slots: Iterable[PinnedSlot],
        sets: List[SetConfig],
        catalog: Dict[str, Song],
        excluded: set,
    ) -> Tuple[Dict[int, Dict[int, Song]], List[PinWarning]]:
        """Place pins per set; returns set_index -> {position: song} and warnings."""
        capacity = {c.set_index: c.songs_per_set for c in sets}
        placed: Dict[int, Dict[int, Song]] = {c.set_index: {} for c in sets}
        placed_songs = set()
        warnings = []

        for pin in sorted(pinned_slots, key=lambda p: (p.set_index, p.position)):
            if pin.set_index not in capacity:
                logger.info(f"Pin for unconfigured set {pin.set_index} ignored")
                continue
            song = catalog.get(pin.song_id)
            if song is None:
                logger.info(f"Pinned song {pin.song_id} not in catalog; skipping")
                continue

            reason = None
            if pin.song_id in excluded:
                reason = "song is excluded"
            elif not 0 <= pin.position < capacity[pin.set_index]:
                reason = f"outside a set of {capacity[pin.set_index]}"
            elif pin.position in placed[pin.set_index]:
                reason = "position already pinned"
            elif pin.song_id in placed_songs:
                reason = "song already pinned"

            if reason:
                logger.warning(f"Set {pin.set_index}: pin {pin.song_id}@{pin.position} skipped ({reason})")
                warnings.append(PinWarning(pin.set_index, pin.song_id, pin.position, reason))
                continue

            placed[pin.set_index][pin.position] = song
            placed_songs.add(pin.song_id)

        return placed, warnings

    def generate(
        self,
        songs: Iterable[Song],
        sets_config: Iterable[SetConfig],
        pinned_slots: Iterable[PinnedSlot] = (),
        excluded_song_ids: Iterable[str] = (),
        flow_preset: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> GenerationResult:
        """
        Assign songs to every open slot of every set.

        Args:
            songs: Song catalog (the pool, before pins and exclusions)
            sets_config: Shape of the setlist
            pinned_slots: Locked (set, position, song) assignments
            excluded_song_ids: Songs that must not appear
            flow_preset: Energy curve family (config default when None)
            now: Reference time for freshness (current UTC time when None; naive means UTC)

        Returns:
            GenerationResult with items sorted by (set_index, position)

        Raises:
            GenerationError: On malformed set configuration or unknown preset
        """
        preset = flow_preset or self.constraints.flow_preset
        if preset not in FLOW_PRESETS:
            raise GenerationError(f"Unknown flow preset: {preset}")
        now = parse_timestamp(now) or datetime.now(timezone.utc)

        sets = self._validate_sets(list(sets_config))
        catalog: Dict[str, Song] = {}
        for song in songs:
            catalog.setdefault(song.id, song)
        excluded = set(excluded_song_ids)

        placed, pin_warnings = self._resolve_pins(pinned_slots, sets, catalog, excluded)
        pinned_ids = {song.id for slots in placed.values() for song in slots.values()}
        pool = [s for s in catalog.values() if s.id not in excluded and s.id not in pinned_ids]

        logger.info(
            f"Generating {len(sets)} sets ({preset}) from pool of {len(pool)} "
            f"({len(excluded)} excluded, {len(pinned_ids)} pinned)"
        )

        result = GenerationResult(warnings=list(pin_warnings))
        threshold = self.constraints.high_intensity_threshold

        for config in sets:
            set_index, songs_per_set = config.set_index, config.songs_per_set
            slots = placed[set_index]
            pinned_positions = set(slots)
            unfilled = []

            for position in range(songs_per_set):
                if position in pinned_positions:
                    continue
                if not pool:
                    unfilled.append(position)
                    continue

                previous = [slots[p] for p in range(position) if p in slots]
                slot = Slot(set_index, position, songs_per_set, len(sets), preset)
                chosen = self.selector.choose(pool, slot, previous, now)
                slots[position] = chosen
                pool = [s for s in pool if s.id != chosen.id]

            if unfilled:
                capacity_warnings = _capacity_warnings(set_index, unfilled)
                for w in capacity_warnings:
                    logger.warning(str(w))
                result.warnings.extend(capacity_warnings)

            ordered = sorted(slots.items())
            result.warnings.extend(
                find_pacing_violations([song for _, song in ordered], set_index, threshold)
            )
            result.items.extend(
                GeneratedItem(set_index, position, song.id, position in pinned_positions)
                for position, song in ordered
            )

            logger.debug(f"Set {set_index}: {len(ordered)}/{songs_per_set} slots filled")

        result.items.sort(key=lambda i: (i.set_index, i.position))
        logger.info(
            f"✅ Generated {len(result.items)} items with {len(result.warnings)} warnings"
        )
        return result


def generate(
    songs: Iterable[Song],
    sets_config: Iterable[SetConfig],
    pinned_slots: Iterable[PinnedSlot] = (),
    excluded_song_ids: Iterable[str] = (),
    rng: Optional[RandomSource] = None,
    flow_preset: Optional[str] = None,
    now: Optional[datetime] = None,
    config=None,
) -> GenerationResult:
    """
    Generate a complete setlist.

    Args:
        songs: Song catalog
        sets_config: Shape of the setlist
        pinned_slots: Locked assignments to keep
        excluded_song_ids: Songs to leave out
        rng: Random source (random.Random or callable n -> [0, n)); seed it for replays
        flow_preset: Energy curve family; config's flow_preset when None
        now: Reference time for freshness
        config: Loaded Config for scoring weights (built-in defaults when None)

    Returns:
        GenerationResult
    """
    constraints = GenerationConstraints.from_config(config) if config is not None else None
    generator = SetlistGenerator(constraints, rng)
    return generator.generate(songs, sets_config, pinned_slots, excluded_song_ids, flow_preset, now)


def pinned_slots_from_items(items: Iterable[SetlistItem]) -> List[PinnedSlot]:
    """Pins of an existing setlist, to regenerate around them."""
    return [
        PinnedSlot(set_index=i.set_index, position=i.position, song_id=i.song_id)
        for i in sorted(items, key=lambda i: (i.set_index, i.position))
        if i.is_pinned
    ]


def write_generated(
    items: Iterable[SetlistItem],
    result: GenerationResult,
    keep_pinned: bool = False,
) -> List[SetlistItem]:
    """
    Replace a setlist's contents with a generation result.

    Clears the setlist, then inserts every generated item in
    (set_index, position) order through the store's insert, so the result
    holds the same invariants as any manual edit. A generated song that is
    already among the retained items is skipped.
    """
    store = OrderedItemStore(items)
    store.clear_all(keep_pinned=keep_pinned)

    skipped = 0
    for generated in sorted(result.items, key=lambda i: (i.set_index, i.position)):
        try:
            store.insert(
                generated.song_id,
                generated.set_index,
                generated.position,
                is_pinned=generated.is_pinned,
            )
        except DuplicateSongError:
            skipped += 1
            logger.info(f"Song {generated.song_id} already in setlist; not re-added")

    snapshot = store.snapshot()
    logger.info(f"Wrote {len(snapshot)} items ({skipped} skipped)")
    return snapshot
