"""
Ordered Item Store: contiguous song positions within the sets of a setlist.

Each set is held as a plain list whose index *is* the position, so insert,
move and remove are list splices and positions are re-derived on every
snapshot rather than patched item by item. A song_id -> item_id index sits
alongside the lists to make the one-song-per-setlist check O(1).

The store is rebuilt from the caller's item collection on every call and
keeps nothing between calls; the state of record lives in the host's store.
"""

import logging
import uuid
from dataclasses import dataclass, replace
from typing import Optional, List, Dict, Iterable, Tuple, Callable

from ..errors import (
    ContiguityError,
    DuplicateItemError,
    DuplicateSongError,
    InvalidPositionError,
    NotFoundError,
)
from ..models import SetConfig, SetlistItem

logger = logging.getLogger(__name__)


def _new_item_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class SetFill:
    """How full one configured set is."""

    set_index: int
    count: int
    capacity: int

    @property
    def is_full(self) -> bool:
        return self.count >= self.capacity

    @property
    def is_over(self) -> bool:
        return self.count > self.capacity

    @property
    def free_slots(self) -> int:
        return max(0, self.capacity - self.count)


class OrderedItemStore:
    """
    In-memory arena of setlist items for one setlist.

    Mutating methods validate everything before touching the lists, so a
    raised error never leaves the store half-edited.
    """

    def __init__(
        self,
        items: Iterable[SetlistItem] = (),
        id_factory: Callable[[], str] = _new_item_id,
    ):
        """
        Args:
            items: Current items of the setlist, in any order
            id_factory: Produces ids for inserted items
        """
        self._sets: Dict[int, List[SetlistItem]] = {}
        self._song_index: Dict[str, str] = {}
        self._item_sets: Dict[str, int] = {}
        self._id_factory = id_factory
        self._load(items)

    def _load(self, items: Iterable[SetlistItem]) -> None:
        grouped: Dict[int, List[SetlistItem]] = {}
        for item in items:
            if item.id in self._item_sets:
                raise DuplicateItemError(f"Item id {item.id} appears twice")
            if item.song_id in self._song_index:
                raise DuplicateSongError(item.song_id, self._song_index[item.song_id])
            self._item_sets[item.id] = item.set_index
            self._song_index[item.song_id] = item.id
            grouped.setdefault(item.set_index, []).append(item)

        for set_index, set_items in grouped.items():
            set_items.sort(key=lambda i: i.position)
            positions = [i.position for i in set_items]
            if positions != list(range(len(set_items))):
                logger.warning(
                    f"Set {set_index}: positions {positions} not contiguous; renumbering"
                )
            self._sets[set_index] = set_items

    # -- queries ---------------------------------------------------------

    def __len__(self) -> int:
        return len(self._item_sets)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._item_sets

    def set_indices(self) -> List[int]:
        return sorted(k for k, v in self._sets.items() if v)

    def count(self, set_index: int) -> int:
        return len(self._sets.get(set_index, []))

    def has_song(self, song_id: str) -> bool:
        return song_id in self._song_index

    def locate(self, item_id: str) -> Tuple[int, int]:
        """Return (set_index, position) of an item."""
        if item_id not in self._item_sets:
            raise NotFoundError(item_id)
        set_index = self._item_sets[item_id]
        for position, item in enumerate(self._sets[set_index]):
            if item.id == item_id:
                return set_index, position
        raise ContiguityError(f"Item {item_id} indexed in set {set_index} but missing from it")

    def get(self, item_id: str) -> SetlistItem:
        set_index, position = self.locate(item_id)
        return self._materialize(self._sets[set_index][position], set_index, position)

    def set_items(self, set_index: int) -> List[SetlistItem]:
        return [
            self._materialize(item, set_index, position)
            for position, item in enumerate(self._sets.get(set_index, []))
        ]

    def items(self) -> List[SetlistItem]:
        """Snapshot of all items sorted by (set_index, position)."""
        result = []
        for set_index in self.set_indices():
            result.extend(self.set_items(set_index))
        return result

    @staticmethod
    def _materialize(item: SetlistItem, set_index: int, position: int) -> SetlistItem:
        if item.set_index == set_index and item.position == position:
            return item
        return replace(item, set_index=set_index, position=position)

    @staticmethod
    def _check_position(set_index: int, position: int) -> None:
        if set_index < 1:
            raise InvalidPositionError(f"set_index must be >= 1, got {set_index}")
        if position < 0:
            raise InvalidPositionError(f"position must be >= 0, got {position}")

    # -- mutations -------------------------------------------------------

    def insert(
        self,
        song_id: str,
        set_index: int,
        position: int,
        is_pinned: bool = False,
        gig_notes: Optional[str] = None,
        item_id: Optional[str] = None,
    ) -> str:
        """
        Insert a song at position, shifting later items of the set up by one.

        A position past the end of the set appends.

        Returns:
            The new item's id

        Raises:
            DuplicateSongError: song already anywhere in the setlist
            InvalidPositionError: negative position or set index below 1
        """
        self._check_position(set_index, position)
        if song_id in self._song_index:
            raise DuplicateSongError(song_id, self._song_index[song_id])
        if item_id is None:
            item_id = self._id_factory()
        if item_id in self._item_sets:
            raise DuplicateItemError(f"Item id {item_id} already exists")

        set_list = self._sets.setdefault(set_index, [])
        position = min(position, len(set_list))
        set_list.insert(
            position,
            SetlistItem(
                id=item_id,
                song_id=song_id,
                set_index=set_index,
                position=position,
                is_pinned=is_pinned,
                gig_notes=gig_notes,
            ),
        )
        self._song_index[song_id] = item_id
        self._item_sets[item_id] = set_index

        logger.debug(f"Inserted song {song_id} as {item_id} at set {set_index} pos {position}")
        return item_id

    def move(self, item_id: str, to_set_index: int, to_position: int) -> None:
        """
        Move an item within its set or into another set.

        Same set: items between the old and new slot close up behind it.
        Across sets: the source closes its gap and the destination opens one.
        Targets past the end clamp to the last valid slot. Capacity is not
        enforced here; see set_fill().
        """
        self._check_position(to_set_index, to_position)
        from_set_index, from_position = self.locate(item_id)

        source = self._sets[from_set_index]
        if from_set_index == to_set_index:
            to_position = min(to_position, len(source) - 1)
            if to_position == from_position:
                return
            item = source.pop(from_position)
            source.insert(to_position, item)
        else:
            item = source.pop(from_position)
            if not source:
                del self._sets[from_set_index]
            dest = self._sets.setdefault(to_set_index, [])
            to_position = min(to_position, len(dest))
            dest.insert(to_position, replace(item, set_index=to_set_index))
            self._item_sets[item_id] = to_set_index

        logger.debug(
            f"Moved {item_id}: set {from_set_index} pos {from_position} -> "
            f"set {to_set_index} pos {to_position}"
        )

    def remove(self, item_id: str) -> SetlistItem:
        """Delete an item and close the gap it leaves."""
        set_index, position = self.locate(item_id)
        removed = self._sets[set_index].pop(position)
        if not self._sets[set_index]:
            del self._sets[set_index]
        del self._item_sets[item_id]
        del self._song_index[removed.song_id]
        logger.debug(f"Removed {item_id} from set {set_index} pos {position}")
        return removed

    def swap(self, item_id: str, new_song_id: str) -> None:
        """Replace the song of an item in place."""
        set_index, position = self.locate(item_id)
        current = self._sets[set_index][position]
        if current.song_id == new_song_id:
            return
        if new_song_id in self._song_index:
            raise DuplicateSongError(new_song_id, self._song_index[new_song_id])

        self._sets[set_index][position] = replace(current, song_id=new_song_id)
        del self._song_index[current.song_id]
        self._song_index[new_song_id] = item_id
        logger.debug(f"Swapped {item_id}: {current.song_id} -> {new_song_id}")

    def update(
        self,
        item_id: str,
        is_pinned: Optional[bool] = None,
        gig_notes: Optional[str] = None,
    ) -> None:
        """Patch pin state and notes; None leaves a field as it is."""
        set_index, position = self.locate(item_id)
        changes = {}
        if is_pinned is not None:
            changes["is_pinned"] = is_pinned
        if gig_notes is not None:
            changes["gig_notes"] = gig_notes
        if changes:
            self._sets[set_index][position] = replace(self._sets[set_index][position], **changes)

    def clear_set(self, set_index: int, keep_pinned: bool = False) -> List[SetlistItem]:
        """
        Delete the non-pinned items of a set (all items unless keep_pinned).

        Retained pinned items close up to 0..k-1 in their original order.

        Returns:
            The removed items
        """
        set_list = self._sets.get(set_index, [])
        kept = [i for i in set_list if keep_pinned and i.is_pinned]
        removed = [i for i in set_list if not (keep_pinned and i.is_pinned)]

        for item in removed:
            del self._item_sets[item.id]
            del self._song_index[item.song_id]
        if kept:
            self._sets[set_index] = kept
        else:
            self._sets.pop(set_index, None)

        logger.debug(f"Cleared set {set_index}: removed {len(removed)}, kept {len(kept)}")
        return removed

    def clear_all(self, keep_pinned: bool = False) -> List[SetlistItem]:
        removed = []
        for set_index in list(self._sets):
            removed.extend(self.clear_set(set_index, keep_pinned=keep_pinned))
        return removed

    def snapshot(self) -> List[SetlistItem]:
        """Items sorted by (set_index, position), verified contiguous."""
        result = self.items()
        check_contiguity(result)
        return result


def check_contiguity(items: Iterable[SetlistItem]) -> None:
    """
    Verify positions are exactly 0..n-1 per set and no song repeats.

    Raises:
        ContiguityError: On any gap, duplicate position or repeated song
    """
    positions: Dict[int, List[int]] = {}
    seen_songs = set()
    for item in items:
        if item.song_id in seen_songs:
            raise ContiguityError(f"Song {item.song_id} appears more than once")
        seen_songs.add(item.song_id)
        positions.setdefault(item.set_index, []).append(item.position)

    for set_index, set_positions in positions.items():
        if sorted(set_positions) != list(range(len(set_positions))):
            raise ContiguityError(
                f"Set {set_index}: positions {sorted(set_positions)} are not contiguous"
            )


# -- functional API ----------------------------------------------------------


def insert(
    items: Iterable[SetlistItem],
    song_id: str,
    set_index: int,
    position: int,
    is_pinned: bool = False,
    gig_notes: Optional[str] = None,
    item_id: Optional[str] = None,
) -> Tuple[List[SetlistItem], str]:
    """Insert a song; returns (new_items, new_item_id)."""
    store = OrderedItemStore(items)
    new_id = store.insert(song_id, set_index, position, is_pinned, gig_notes, item_id)
    return store.snapshot(), new_id


def move(
    items: Iterable[SetlistItem],
    item_id: str,
    to_set_index: int,
    to_position: int,
) -> List[SetlistItem]:
    store = OrderedItemStore(items)
    store.move(item_id, to_set_index, to_position)
    return store.snapshot()


def remove(items: Iterable[SetlistItem], item_id: str) -> List[SetlistItem]:
    store = OrderedItemStore(items)
    store.remove(item_id)
    return store.snapshot()


def swap(items: Iterable[SetlistItem], item_id: str, new_song_id: str) -> List[SetlistItem]:
    store = OrderedItemStore(items)
    store.swap(item_id, new_song_id)
    return store.snapshot()


def update_item(
    items: Iterable[SetlistItem],
    item_id: str,
    is_pinned: Optional[bool] = None,
    gig_notes: Optional[str] = None,
) -> List[SetlistItem]:
    store = OrderedItemStore(items)
    store.update(item_id, is_pinned=is_pinned, gig_notes=gig_notes)
    return store.snapshot()


def clear_set(
    items: Iterable[SetlistItem],
    set_index: int,
    keep_pinned: bool = False,
) -> List[SetlistItem]:
    store = OrderedItemStore(items)
    store.clear_set(set_index, keep_pinned=keep_pinned)
    return store.snapshot()


def clear_all(items: Iterable[SetlistItem], keep_pinned: bool = False) -> List[SetlistItem]:
    store = OrderedItemStore(items)
    store.clear_all(keep_pinned=keep_pinned)
    return store.snapshot()


def set_fill(items: Iterable[SetlistItem], sets_config: Iterable[SetConfig]) -> List[SetFill]:
    """Count vs capacity for every configured set, in set order."""
    store = OrderedItemStore(items)
    return [
        SetFill(set_index=c.set_index, count=store.count(c.set_index), capacity=c.songs_per_set)
        for c in sorted(sets_config, key=lambda c: c.set_index)
    ]


def quick_add(
    items: Iterable[SetlistItem],
    song_id: str,
    sets_config: Iterable[SetConfig],
) -> Tuple[List[SetlistItem], str]:
    """
    Append a song to the first set with a free slot.

    When every set is full the song goes to the end of the first set anyway.
    """
    configs = sorted(sets_config, key=lambda c: c.set_index)
    if not configs:
        raise InvalidPositionError("No sets configured")

    store = OrderedItemStore(items)
    target = next(
        (c.set_index for c in configs if store.count(c.set_index) < c.songs_per_set),
        configs[0].set_index,
    )
    new_id = store.insert(song_id, target, store.count(target))
    return store.snapshot(), new_id
