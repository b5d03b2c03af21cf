"""
Templates and whole-setlist reshaping.

Templates capture a setlist's shape plus its pinned songs; materializing one
produces the pinned items a fresh setlist starts with.
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, List, Iterable, Tuple, Dict

from ..errors import SetlistError
from ..models import (
    SetConfig,
    SetlistItem,
    Song,
    Template,
    TemplateSet,
    TemplateSlot,
)
from .items import OrderedItemStore

logger = logging.getLogger(__name__)


def materialize_template(
    template: Template,
    songs: Optional[Iterable[Song]] = None,
) -> Tuple[List[SetConfig], List[SetlistItem]]:
    """
    Build the set configuration and pinned items of a new setlist.

    Slots without a song are shape only. When a catalog is supplied, slots
    whose song is no longer in it are skipped (best effort: a deleted song
    should not block creating the setlist).

    Returns:
        (sets_config, items)
    """
    known = {s.id for s in songs} if songs is not None else None
    sets_config = [SetConfig(s.set_index, s.songs_per_set) for s in template.sets]

    store = OrderedItemStore()
    for template_set in sorted(template.sets, key=lambda s: s.set_index):
        for slot in sorted(template_set.pinned_slots, key=lambda s: s.position):
            if not slot.song_id:
                continue
            if known is not None and slot.song_id not in known:
                logger.info(
                    f"Template '{template.name}': song {slot.song_id} no longer in catalog; "
                    f"skipping set {template_set.set_index} pos {slot.position}"
                )
                continue
            if store.has_song(slot.song_id):
                logger.warning(
                    f"Template '{template.name}': song {slot.song_id} pinned twice; keeping first"
                )
                continue
            store.insert(slot.song_id, template_set.set_index, slot.position, is_pinned=True)

    items = store.snapshot()
    logger.info(f"Materialized template '{template.name}': {len(sets_config)} sets, {len(items)} pinned")
    return sets_config, items


def template_from_setlist(
    name: str,
    sets_config: Iterable[SetConfig],
    items: Iterable[SetlistItem],
) -> Template:
    """Capture the shape and pinned items of an existing setlist."""
    pinned: Dict[int, List[TemplateSlot]] = {}
    for item in items:
        if item.is_pinned:
            pinned.setdefault(item.set_index, []).append(
                TemplateSlot(position=item.position, song_id=item.song_id)
            )

    sets = tuple(
        TemplateSet(
            set_index=c.set_index,
            songs_per_set=c.songs_per_set,
            pinned_slots=tuple(sorted(pinned.get(c.set_index, []), key=lambda s: s.position)),
        )
        for c in sorted(sets_config, key=lambda c: c.set_index)
    )
    return Template(name=name.strip(), sets=sets)


def remove_set(
    items: Iterable[SetlistItem],
    sets_config: Iterable[SetConfig],
    set_index: int,
) -> Tuple[List[SetlistItem], List[SetConfig]]:
    """
    Drop a whole set and close the gap in set numbering.

    Items of higher sets move down one set index; the configuration is
    renumbered 1..k in its existing order.

    Raises:
        SetlistError: When removing the only set or an unknown set
    """
    configs = sorted(sets_config, key=lambda c: c.set_index)
    if len(configs) <= 1:
        raise SetlistError("Cannot remove the last set")
    if all(c.set_index != set_index for c in configs):
        raise SetlistError(f"Set {set_index} is not configured")

    new_items = []
    for item in items:
        if item.set_index == set_index:
            continue
        if item.set_index > set_index:
            item = replace(item, set_index=item.set_index - 1)
        new_items.append(item)

    new_config = [
        SetConfig(set_index=idx + 1, songs_per_set=c.songs_per_set)
        for idx, c in enumerate(c for c in configs if c.set_index != set_index)
    ]
    return OrderedItemStore(new_items).snapshot(), new_config


def record_performance(
    songs: Iterable[Song],
    items: Iterable[SetlistItem],
    now: Optional[datetime] = None,
) -> List[Song]:
    """
    Mark every song of a finalised setlist as played.

    Returns the updated catalog records (play_count + 1, last_played_at = now)
    for the songs in the setlist; the host persists them.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    played = {item.song_id for item in items}
    updated = [
        replace(song, play_count=song.play_count + 1, last_played_at=now)
        for song in songs
        if song.id in played
    ]
    logger.info(f"Recorded performance of {len(updated)} songs")
    return updated
