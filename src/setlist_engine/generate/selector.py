"""
Song Selector: score the song pool for one open slot and pick a song.

Scoring per candidate (starting from 100):
- Energy fit: lose energy_weight points per unit away from the slot's target
- Vocal pacing: lose vocal_streak_penalty if this would be the third
  high-intensity song in a row
- Freshness: gain up to freshness_cap points for songs not played lately
- Preset extras: vocal-intensity targeting and opener/closer style tags

The pick is random among the top_k candidates, drawn from an injected
random source so runs can be replayed.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Dict, Any, Tuple, Callable, Union

from ..models import Song
from .energy import DEFAULT_PRESET, position_ratio, target_energy, target_vocal_intensity
from .pacing import DEFAULT_THRESHOLD

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0

# Random source: anything with randrange(n), or a plain callable n -> [0, n)
RandomSource = Union[random.Random, Callable[[int], int]]


def _whole(name: str, value: Any) -> int:
    if isinstance(value, bool) or int(value) != value:
        raise ValueError(f"{name} must be a whole number, got {value!r}")
    return int(value)


class GenerationConstraints:
    """Scoring weights, read from the config sections."""

    def __init__(
        self,
        generation: Optional[Dict[str, Any]] = None,
        pacing: Optional[Dict[str, Any]] = None,
        freshness: Optional[Dict[str, Any]] = None,
    ):
        """
        Args:
            generation: config["generation"]
            pacing: config["pacing"]
            freshness: config["freshness"]
        """
        generation = generation or {}
        pacing = pacing or {}
        freshness = freshness or {}

        self.top_k = _whole("top_k", generation.get("top_k", 3))
        self.energy_weight = generation.get("energy_weight", 10.0)
        self.vocal_weight = generation.get("vocal_weight", 8.0)
        self.vocal_streak_penalty = generation.get("vocal_streak_penalty", 30.0)
        self.freshness_cap = generation.get("freshness_cap", 20.0)
        self.freshness_divisor = generation.get("freshness_divisor", 5.0)
        self.flow_preset = generation.get("flow_preset", DEFAULT_PRESET)
        self.high_intensity_threshold = _whole(
            "high_intensity_threshold", pacing.get("high_intensity_threshold", DEFAULT_THRESHOLD)
        )
        self.max_freshness = freshness.get("max_freshness", 100.0)
        self.play_count_weight = freshness.get("play_count_weight", 2.0)
        self.play_count_penalty_cap = freshness.get("play_count_penalty_cap", 30.0)

    @classmethod
    def from_config(cls, config) -> "GenerationConstraints":
        """Build from a loaded Config."""
        return cls(config["generation"], config["pacing"], config["freshness"])


@dataclass(frozen=True)
class Slot:
    """One open position being filled."""

    set_index: int
    position: int
    songs_per_set: int
    total_sets: int
    preset: str = DEFAULT_PRESET

    @property
    def ratio(self) -> float:
        return position_ratio(self.position, self.songs_per_set)

    @property
    def is_first_position(self) -> bool:
        return self.position == 0

    @property
    def is_last_position(self) -> bool:
        return self.position == self.songs_per_set - 1

    @property
    def is_first_set(self) -> bool:
        return self.set_index == 1

    @property
    def is_last_set(self) -> bool:
        return self.set_index == self.total_sets


def freshness_score(song: Song, now: datetime, constraints: GenerationConstraints) -> float:
    """
    How overdue a song is (higher = should be played sooner).

    Unplayed songs score the maximum outright. Otherwise days since last
    played, less a play-count penalty, capped at the maximum. Can go negative
    for a heavily played song performed in the last few days.
    """
    if song.last_played_at is None:
        return constraints.max_freshness

    days_since_played = (now - song.last_played_at).total_seconds() / SECONDS_PER_DAY
    play_count_penalty = min(
        song.play_count * constraints.play_count_weight,
        constraints.play_count_penalty_cap,
    )
    return min(constraints.max_freshness, days_since_played - play_count_penalty)


def _tag_adjustment(song: Song, slot: Slot) -> float:
    adjustment = 0.0
    if slot.is_first_position and song.has_tag("opener"):
        adjustment += 10.0
        if slot.is_first_set:
            adjustment += 25.0
    if slot.is_last_position and song.has_tag("closer"):
        adjustment += 10.0
        if slot.is_last_set:
            adjustment += 25.0
    if slot.preset == "clo" and slot.is_last_set and slot.is_last_position and song.has_tag("ballad"):
        adjustment += 20.0
    if slot.preset in ("clo", "dinner-dancing") and slot.is_first_set and song.has_tag("party"):
        adjustment -= 15.0
    if slot.preset == "clo" and slot.is_first_set and song.has_tag("jazz"):
        adjustment += 15.0
    return adjustment


def score_song(
    song: Song,
    slot: Slot,
    previous_songs: List[Song],
    now: datetime,
    constraints: GenerationConstraints,
) -> float:
    """
    Score a candidate for a slot (higher is better).

    Args:
        song: Candidate song
        slot: The slot being filled
        previous_songs: Songs already sitting before this slot in the set, in order
        now: Reference time for freshness
        constraints: Scoring weights

    Returns:
        Score, nominally around 100
    """
    ratio = slot.ratio
    target = target_energy(slot.preset, slot.set_index, ratio, slot.total_sets, slot.is_last_position)

    score = 100.0
    score -= abs(song.energy_level - target) * constraints.energy_weight

    target_vocal = target_vocal_intensity(slot.preset, slot.set_index, ratio)
    if target_vocal is not None:
        score -= abs(song.vocal_intensity - target_vocal) * constraints.vocal_weight

    threshold = constraints.high_intensity_threshold
    recent = previous_songs[-2:]
    if (
        song.vocal_intensity >= threshold
        and len(recent) == 2
        and all(s.vocal_intensity >= threshold for s in recent)
    ):
        score -= constraints.vocal_streak_penalty

    score += _tag_adjustment(song, slot)

    freshness = freshness_score(song, now, constraints)
    score += min(constraints.freshness_cap, freshness / constraints.freshness_divisor)

    return score


def _draw(rng: RandomSource, upper: int) -> int:
    if hasattr(rng, "randrange"):
        return rng.randrange(upper)
    return rng(upper)


class SongSelector:
    """
    Greedy per-slot selector.

    Ranks the whole pool for each slot and draws uniformly from the best
    top_k, so identical inputs still give varied setlists.
    """

    def __init__(self, constraints: GenerationConstraints, rng: Optional[RandomSource] = None):
        """
        Args:
            constraints: Scoring weights
            rng: Random source; a fresh SystemRandom when None
        """
        self.constraints = constraints
        self.rng = rng if rng is not None else random.SystemRandom()

    def rank(
        self,
        pool: List[Song],
        slot: Slot,
        previous_songs: List[Song],
        now: datetime,
    ) -> List[Tuple[Song, float]]:
        """Score every pool song; best first, pool order kept among ties."""
        scored = [
            (song, score_song(song, slot, previous_songs, now, self.constraints))
            for song in pool
        ]
        scored.sort(key=lambda x: x[1], reverse=True)
        return scored

    def choose(
        self,
        pool: List[Song],
        slot: Slot,
        previous_songs: List[Song],
        now: datetime,
    ) -> Optional[Song]:
        """
        Pick the song for a slot, or None if the pool is empty.
        """
        if not pool:
            return None

        ranked = self.rank(pool, slot, previous_songs, now)
        top_n = min(self.constraints.top_k, len(ranked))
        pick = _draw(self.rng, top_n)
        if not 0 <= pick < top_n:
            raise ValueError(f"Random source returned {pick}, expected [0, {top_n})")

        chosen, chosen_score = ranked[pick]
        logger.debug(
            f"Set {slot.set_index} pos {slot.position}: chose {chosen.id} "
            f"(score={chosen_score:.1f}, rank={pick + 1}/{top_n}, pool={len(pool)})"
        )
        return chosen
