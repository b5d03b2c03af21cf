"""
Vocal Pacing: flag runs of three high-intensity songs.

The same window check runs during generation (per finished set) and on an
already-built setlist for read-only warnings.
"""

import logging
from typing import List, Dict, Iterable, Set

from ..models import SetlistItem, Song, index_songs
from .warnings import PacingWarning

logger = logging.getLogger(__name__)

WINDOW_SIZE = 3
DEFAULT_THRESHOLD = 4


def is_high_intensity(song: Song, threshold: int = DEFAULT_THRESHOLD) -> bool:
    return song.vocal_intensity >= threshold


def find_pacing_violations(
    songs: List[Song],
    set_index: int = 0,
    threshold: int = DEFAULT_THRESHOLD,
) -> List[PacingWarning]:
    """
    Scan an ordered song run with a sliding window of three.

    Every window whose songs are all at or above the threshold yields one
    warning, so a run of four high songs produces two.

    Args:
        songs: Songs in playing order
        set_index: Set the songs belong to (for the warning prefix)
        threshold: Vocal intensity counted as high

    Returns:
        One PacingWarning per violating window, in order
    """
    warnings = []
    for start in range(len(songs) - WINDOW_SIZE + 1):
        window = songs[start:start + WINDOW_SIZE]
        if all(is_high_intensity(s, threshold) for s in window):
            warnings.append(
                PacingWarning(
                    set_index=set_index,
                    titles=tuple(s.title for s in window),
                    start_position=start,
                )
            )
    return warnings


def _group_by_set(items: Iterable[SetlistItem]) -> Dict[int, List[SetlistItem]]:
    by_set: Dict[int, List[SetlistItem]] = {}
    for item in items:
        by_set.setdefault(item.set_index, []).append(item)
    for set_items in by_set.values():
        set_items.sort(key=lambda i: i.position)
    return by_set


def check_pacing(
    items: Iterable[SetlistItem],
    songs: Iterable[Song],
    threshold: int = DEFAULT_THRESHOLD,
) -> Dict[int, List[str]]:
    """
    Pacing warnings for an existing setlist.

    Items whose song is not in the catalog are left out of the run.

    Returns:
        set_index -> warning strings, only for sets with violations
    """
    catalog = index_songs(list(songs))
    warnings_by_set: Dict[int, List[str]] = {}

    for set_index, set_items in sorted(_group_by_set(items).items()):
        set_songs = [catalog[i.song_id] for i in set_items if i.song_id in catalog]
        violations = find_pacing_violations(set_songs, set_index, threshold)
        if violations:
            warnings_by_set[set_index] = [w.message for w in violations]

    return warnings_by_set


def flag_pacing_items(
    items: Iterable[SetlistItem],
    songs: Iterable[Song],
    threshold: int = DEFAULT_THRESHOLD,
) -> Set[str]:
    """
    Ids of items that complete a high-intensity run (third song or later).

    Unknown songs count as low intensity and break a run.
    """
    catalog = index_songs(list(songs))
    flagged: Set[str] = set()

    for set_items in _group_by_set(items).values():
        run = 0
        for item in set_items:
            song = catalog.get(item.song_id)
            run = run + 1 if song is not None and is_high_intensity(song, threshold) else 0
            if run >= WINDOW_SIZE:
                flagged.add(item.id)

    if flagged:
        logger.debug(f"{len(flagged)} items flagged for vocal pacing")
    return flagged
