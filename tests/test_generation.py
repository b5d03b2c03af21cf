"""
Unit tests for setlist generation.

Tests set filling, pins, exclusions, warnings, reproducibility and writing
results back through the item store.
"""

import random
from datetime import datetime, timedelta, timezone

import pytest
from setlist_engine.errors import GenerationError
from setlist_engine.generate.selector import GenerationConstraints
from setlist_engine.generate.setlist import (
    GeneratedItem,
    GenerationResult,
    SetlistGenerator,
    generate,
    pinned_slots_from_items,
    write_generated,
)
from setlist_engine.generate.warnings import CapacityWarning, PacingWarning, PinWarning
from setlist_engine.models import PinnedSlot, SetConfig, SetlistItem, Song
from setlist_engine.store.items import check_contiguity

NOW = datetime(2026, 6, 1, 20, 0, tzinfo=timezone.utc)


def always_best(n):
    """Random source that always takes the top-ranked song."""
    return 0


@pytest.fixture
def abc_songs():
    """Energy 3, 4, 5; low vocals; never played."""
    return [
        Song(id="A", title="Alpha", energy_level=3, vocal_intensity=2),
        Song(id="B", title="Bravo", energy_level=4, vocal_intensity=2),
        Song(id="C", title="Charlie", energy_level=5, vocal_intensity=2),
    ]


@pytest.fixture
def library():
    """Twenty varied songs, some played recently."""
    rng = random.Random(7)
    songs = []
    for n in range(20):
        played = n % 3 == 0
        songs.append(
            Song(
                id=f"song-{n:02d}",
                title=f"Song {n}",
                energy_level=rng.randint(1, 5),
                vocal_intensity=rng.randint(1, 5),
                play_count=n if played else 0,
                last_played_at=NOW - timedelta(days=n * 3) if played else None,
            )
        )
    return songs


class TestBasicGeneration:
    """Test filling sets from the pool."""

    def test_follows_energy_ramp(self, abc_songs):
        """Set 1 targets 3, 3.5, 4: best picks are A, B, C."""
        result = generate(abc_songs, [SetConfig(1, 3)], rng=always_best, now=NOW)
        assert [(i.position, i.song_id) for i in result.items] == [(0, "A"), (1, "B"), (2, "C")]
        assert result.warnings == []

    def test_items_sorted_by_set_and_position(self, library):
        result = generate(library, [SetConfig(2, 4), SetConfig(1, 4)], rng=random.Random(3), now=NOW)
        keys = [(i.set_index, i.position) for i in result.items]
        assert keys == sorted(keys)
        assert keys[0] == (1, 0)

    def test_capacity_bound(self, library):
        sets = [SetConfig(1, 6), SetConfig(2, 5), SetConfig(3, 4)]
        result = generate(library, sets, rng=random.Random(11), now=NOW)
        for config in sets:
            assert len(result.items_for_set(config.set_index)) <= config.songs_per_set

    def test_no_song_in_two_sets(self, library):
        result = generate(library, [SetConfig(1, 8), SetConfig(2, 8)], rng=random.Random(5), now=NOW)
        song_ids = [i.song_id for i in result.items]
        assert len(song_ids) == len(set(song_ids)) == 16

    def test_excluded_songs_never_used(self, library):
        excluded = {s.id for s in library[:10]}
        result = generate(
            library, [SetConfig(1, 10), SetConfig(2, 10)],
            excluded_song_ids=excluded, rng=random.Random(9), now=NOW,
        )
        assert not excluded & {i.song_id for i in result.items}
        assert len(result.items) == 10

    def test_vocal_streak_avoided(self):
        """A third belter is passed over for a lighter song."""
        songs = [
            Song(id="H1", title="H1", energy_level=3, vocal_intensity=5),
            Song(id="H2", title="H2", energy_level=3, vocal_intensity=5),
            Song(id="H3", title="H3", energy_level=3, vocal_intensity=5),
            Song(id="L", title="L", energy_level=3, vocal_intensity=1),
        ]
        result = generate(songs, [SetConfig(1, 3)], rng=always_best, now=NOW)
        assert [i.song_id for i in result.items] == ["H1", "H2", "L"]
        assert result.warnings == []

    def test_same_seed_same_setlist(self, library):
        sets = [SetConfig(1, 7), SetConfig(2, 7)]
        first = generate(library, sets, rng=random.Random(42), now=NOW)
        second = generate(library, sets, rng=random.Random(42), now=NOW)
        assert first.items == second.items

    def test_default_random_source(self, library):
        """Without an rng the run still completes."""
        result = generate(library, [SetConfig(1, 5)], now=NOW)
        assert len(result.items) == 5


class TestWarnings:
    """Test warnings for short pools and pacing."""

    def test_not_enough_songs(self, abc_songs):
        """Two songs for five slots, one warning for 2-4."""
        result = generate(abc_songs[:2], [SetConfig(1, 5)], rng=random.Random(1), now=NOW)

        assert len(result.items) == 2
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert isinstance(warning, CapacityWarning)
        assert warning.positions == (2, 3, 4)
        assert result.messages == ["Set 1: Not enough songs available for positions 2-4"]

    def test_second_set_starved(self, abc_songs):
        result = generate(abc_songs, [SetConfig(1, 3), SetConfig(2, 2)], rng=always_best, now=NOW)
        assert len(result.items) == 3
        assert result.messages == ["Set 2: Not enough songs available for positions 0-1"]

    def test_unavoidable_pacing_violation(self):
        songs = [
            Song(id=f"h{n}", title=f"Belter {n}", energy_level=3, vocal_intensity=5)
            for n in range(3)
        ]
        result = generate(songs, [SetConfig(1, 3)], rng=always_best, now=NOW)

        assert len(result.items) == 3
        assert len(result.warnings) == 1
        assert isinstance(result.warnings[0], PacingWarning)
        assert result.messages[0].startswith("Set 1: High vocal intensity: 3 songs in a row")

    def test_empty_pool(self):
        result = generate([], [SetConfig(1, 1)], rng=always_best, now=NOW)
        assert result.items == []
        assert result.messages == ["Set 1: Not enough songs available for position 0"]


class TestPins:
    """Test pinned slots."""

    def test_pin_placed_and_removed_from_pool(self, abc_songs):
        pins = [PinnedSlot(set_index=1, position=0, song_id="C")]
        result = generate(abc_songs, [SetConfig(1, 3)], pinned_slots=pins, rng=always_best, now=NOW)

        assert [(i.position, i.song_id, i.is_pinned) for i in result.items] == [
            (0, "C", True),
            (1, "A", False),
            (2, "B", False),
        ]

    def test_pin_in_later_set_leaves_pool_up_front(self, abc_songs):
        """A song pinned in set 2 is not picked for set 1."""
        pins = [PinnedSlot(set_index=2, position=0, song_id="A")]
        result = generate(
            abc_songs, [SetConfig(1, 2), SetConfig(2, 1)],
            pinned_slots=pins, rng=always_best, now=NOW,
        )
        set_one = [i.song_id for i in result.items_for_set(1)]
        assert "A" not in set_one
        assert result.items_for_set(2) == [GeneratedItem(2, 0, "A", True)]

    def test_pin_counts_toward_streak(self):
        songs = [
            Song(id="P", title="P", energy_level=3, vocal_intensity=5),
            Song(id="H", title="H", energy_level=3, vocal_intensity=5),
            Song(id="H2", title="H2", energy_level=3, vocal_intensity=5),
            Song(id="L", title="L", energy_level=3, vocal_intensity=1),
        ]
        pins = [PinnedSlot(1, 0, "P")]
        result = generate(songs, [SetConfig(1, 3)], pinned_slots=pins, rng=always_best, now=NOW)
        assert [i.song_id for i in result.items] == ["P", "H", "L"]

    def test_missing_song_pin_skipped_silently(self, abc_songs):
        pins = [PinnedSlot(1, 0, "deleted")]
        result = generate(abc_songs, [SetConfig(1, 3)], pinned_slots=pins, rng=always_best, now=NOW)
        assert len(result.items) == 3
        assert result.warnings == []

    def test_excluded_pin_skipped_with_warning(self, abc_songs):
        pins = [PinnedSlot(1, 0, "A")]
        result = generate(
            abc_songs, [SetConfig(1, 2)], pinned_slots=pins,
            excluded_song_ids=["A"], rng=always_best, now=NOW,
        )
        assert "A" not in {i.song_id for i in result.items}
        assert isinstance(result.warnings[0], PinWarning)
        assert "excluded" in result.messages[0]

    def test_out_of_range_pin_skipped(self, abc_songs):
        pins = [PinnedSlot(1, 5, "A")]
        result = generate(abc_songs, [SetConfig(1, 2)], pinned_slots=pins, rng=always_best, now=NOW)
        assert len(result.items) == 2
        assert all(i.position < 2 for i in result.items)
        assert result.warnings[0].reason == "outside a set of 2"

    def test_double_pinned_position(self, abc_songs):
        pins = [PinnedSlot(1, 0, "A"), PinnedSlot(1, 0, "B")]
        result = generate(abc_songs, [SetConfig(1, 1)], pinned_slots=pins, rng=always_best, now=NOW)
        assert [i.song_id for i in result.items] == ["A"]
        assert result.warnings[0].reason == "position already pinned"

    def test_skipped_pin_song_stays_available(self, abc_songs):
        """An out-of-range pin does not withhold its song from the run."""
        pins = [PinnedSlot(1, 5, "A")]
        result = generate(abc_songs, [SetConfig(1, 3)], pinned_slots=pins, rng=always_best, now=NOW)
        assert [i.song_id for i in result.items] == ["A", "B", "C"]
        assert [w.kind for w in result.warnings] == ["pin"]

    def test_losing_pin_song_fills_open_slot(self, abc_songs):
        pins = [PinnedSlot(1, 0, "A"), PinnedSlot(1, 0, "B")]
        result = generate(abc_songs, [SetConfig(1, 2)], pinned_slots=pins, rng=always_best, now=NOW)
        assert [(i.song_id, i.is_pinned) for i in result.items] == [("A", True), ("B", False)]

    def test_pin_for_unconfigured_set_ignored(self, abc_songs):
        pins = [PinnedSlot(4, 0, "C")]
        result = generate(abc_songs, [SetConfig(1, 3)], pinned_slots=pins, rng=always_best, now=NOW)
        assert "C" in {i.song_id for i in result.items}
        assert result.warnings == []


class TestTimezones:
    """Test naive datetimes, which are taken as UTC."""

    def test_naive_last_played(self):
        songs = [Song(id="a", title="A", play_count=1, last_played_at=datetime(2026, 1, 1))]
        result = generate(songs, [SetConfig(1, 1)], rng=random.Random(1))
        assert [i.song_id for i in result.items] == ["a"]

    def test_naive_now_matches_utc(self, library):
        sets = [SetConfig(1, 6), SetConfig(2, 6)]
        naive = generate(library, sets, rng=random.Random(8), now=NOW.replace(tzinfo=None))
        aware = generate(library, sets, rng=random.Random(8), now=NOW)
        assert naive.items == aware.items


class TestValidation:
    """Test malformed requests."""

    def test_zero_songs_per_set(self, abc_songs):
        with pytest.raises(GenerationError):
            generate(abc_songs, [SetConfig(1, 0)], rng=always_best)

    def test_duplicate_set_index(self, abc_songs):
        with pytest.raises(GenerationError):
            generate(abc_songs, [SetConfig(1, 2), SetConfig(1, 3)], rng=always_best)

    def test_unknown_preset(self, abc_songs):
        with pytest.raises(GenerationError):
            generate(abc_songs, [SetConfig(1, 2)], flow_preset="polka", rng=always_best)

    def test_preset_from_constraints(self, abc_songs):
        constraints = GenerationConstraints(generation={"flow_preset": "clo"})
        generator = SetlistGenerator(constraints, rng=always_best)
        result = generator.generate(abc_songs, [SetConfig(1, 3)], now=NOW)
        # Clo's first set is mellow (1.5 → 2.5), so the lowest energy leads
        assert result.items[0].song_id == "A"


class TestWriteGenerated:
    """Test writing a result back as setlist items."""

    def test_replaces_existing_items(self):
        existing = [SetlistItem(id="old", song_id="Z", set_index=1, position=0)]
        result = GenerationResult(items=[
            GeneratedItem(1, 0, "A"),
            GeneratedItem(1, 1, "B", is_pinned=True),
            GeneratedItem(2, 0, "C"),
        ])

        items = write_generated(existing, result)

        assert [(i.set_index, i.position, i.song_id, i.is_pinned) for i in items] == [
            (1, 0, "A", False),
            (1, 1, "B", True),
            (2, 0, "C", False),
        ]
        check_contiguity(items)

    def test_unfilled_gap_closes(self):
        """A pin after an unfillable run lands right after the filled slots."""
        result = GenerationResult(items=[GeneratedItem(1, 0, "A"), GeneratedItem(1, 4, "P", True)])
        items = write_generated([], result)
        assert [(i.song_id, i.position) for i in items] == [("A", 0), ("P", 1)]

    def test_keep_pinned_skips_duplicates(self):
        existing = [SetlistItem(id="pin", song_id="P", set_index=1, position=0, is_pinned=True)]
        result = GenerationResult(items=[GeneratedItem(1, 0, "P", True), GeneratedItem(1, 1, "A")])
        items = write_generated(existing, result, keep_pinned=True)
        assert [(i.id, i.song_id) for i in items][0] == ("pin", "P")
        assert [i.song_id for i in items] == ["P", "A"]

    def test_regenerate_around_pins(self, library):
        """Pins of an existing setlist survive a regeneration."""
        existing = [
            SetlistItem(id="p1", song_id="song-03", set_index=1, position=2, is_pinned=True),
            SetlistItem(id="x", song_id="song-04", set_index=1, position=0),
            SetlistItem(id="y", song_id="song-05", set_index=1, position=1),
        ]
        pins = pinned_slots_from_items(existing)
        result = generate(library, [SetConfig(1, 5)], pinned_slots=pins, rng=random.Random(2), now=NOW)
        items = write_generated(existing, result)

        pinned = [i for i in items if i.is_pinned]
        assert [(i.song_id, i.position) for i in pinned] == [("song-03", 2)]
        assert len(items) == 5
