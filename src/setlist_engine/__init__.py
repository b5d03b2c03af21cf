# setlist-engine: ordering & generation core for band setlists
# Package: setlist_engine

__version__ = "1.0.0"
__author__ = "Setlist Engine Contributors"
__description__ = "Contiguous set ordering and automatic setlist generation"

# Module structure:
#   - setlist_engine.store     : Ordered item store, templates
#   - setlist_engine.generate  : Energy curves, scoring, generation, pacing
#   - setlist_engine.config    : Configuration management
#   - setlist_engine.models    : Songs, sets, items, pins
#   - setlist_engine.errors    : Error types

from .errors import (
    SetlistError,
    DuplicateSongError,
    DuplicateItemError,
    NotFoundError,
    InvalidPositionError,
    ContiguityError,
    GenerationError,
)
from .models import Song, SetConfig, SetlistItem, PinnedSlot, Template
from .store.items import (
    OrderedItemStore,
    insert,
    move,
    remove,
    swap,
    update_item,
    clear_set,
    clear_all,
    set_fill,
    quick_add,
    check_contiguity,
)
from .generate.setlist import GenerationResult, SetlistGenerator, generate, write_generated
from .generate.pacing import check_pacing
