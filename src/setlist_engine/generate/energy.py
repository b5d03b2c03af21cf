"""
Energy Curves: target energy and vocal intensity per slot.

Each flow preset maps (set index, progress through the set) to the energy
level (1-5 scale) a song should ideally have there. Some presets also target
a vocal intensity; the rest only rely on the 2-in-a-row pacing penalty.
"""

import math
from typing import Optional, Dict


DEFAULT_PRESET = "classic"

FLOW_PRESETS: Dict[str, Dict[str, str]] = {
    "classic": {
        "name": "Classic",
        "description": "Each set builds independently",
    },
    "clo": {
        "name": "Clo's Flow",
        "description": "Jazz opener → Soul groove → Party peak with ballad closer",
    },
    "steady-build": {
        "name": "Steady Build",
        "description": "Gradual energy increase across the entire night",
    },
    "party-starter": {
        "name": "Party Starter",
        "description": "High energy from the start, maintains momentum",
    },
    "dinner-dancing": {
        "name": "Dinner to Dancing",
        "description": "Background music early, dance floor energy later",
    },
    "vocal-saver": {
        "name": "Vocal Saver",
        "description": "Strategic pacing to preserve your voice all night",
    },
}


def position_ratio(position: int, songs_per_set: int) -> float:
    """
    Progress through a set (0.0 = first slot, 1.0 = last slot).

    A single-song set sits at 0.0.
    """
    if songs_per_set <= 1:
        return 0.0
    return position / (songs_per_set - 1)


def _classic_energy(set_index: int, ratio: float) -> float:
    if set_index == 1:
        # Opening set: ramp 3 → 4
        return 3.0 + ratio
    if set_index == 2:
        # Middle set: hold at 4
        return 4.0
    # Set 3+: 4 → 5 up to the 60% mark, then back down to 4
    peak = 0.6
    if ratio < peak:
        return 4.0 + ratio / peak
    return 5.0 - (ratio - peak) / (1.0 - peak)


def target_energy(
    preset: str,
    set_index: int,
    ratio: float,
    total_sets: int,
    is_last_position: bool = False,
) -> float:
    """
    Ideal energy level for a slot.

    Args:
        preset: Flow preset name (see FLOW_PRESETS)
        set_index: 1-based set number
        ratio: Progress through the set (0.0-1.0)
        total_sets: Number of sets in the setlist
        is_last_position: Whether this is the final slot of the set

    Returns:
        Target energy on the 1-5 scale
    """
    is_first_set = set_index == 1
    is_last_set = set_index == total_sets

    if preset == "clo":
        if is_first_set:
            # Jazz: very mellow 1.5 → 2.5
            return 1.5 + ratio
        if set_index == 2:
            # Soul groove 3 → 4
            return 3.0 + ratio
        if is_last_set:
            if is_last_position:
                return 2.0  # ballad closer
            peak = 0.7
            if ratio < peak:
                return 3.0 + (ratio / peak) * 2.0
            return 5.0 - (ratio - peak) / (1.0 - peak)
        return 3.5

    if preset == "steady-build":
        # Base climbs 2 → 4 across the night, +1 within each set
        set_progress = (set_index - 1) / max(1, total_sets - 1)
        return 2.0 + set_progress * 2.0 + ratio

    if preset == "party-starter":
        if is_first_set:
            return 3.5 + ratio
        if is_last_set:
            return 4.5 + ratio * 0.5
        return 4.0 + ratio

    if preset == "dinner-dancing":
        if is_first_set:
            return 1.5 + ratio * 0.5
        if set_index == 2:
            return 2.5 + ratio
        if is_last_set:
            return 4.0 + ratio
        return 2.0 + (set_index / total_sets) * 3.0

    if preset == "vocal-saver":
        # Two waves per set around a slowly rising base, kept within 2-5
        wave = math.sin(ratio * math.pi * 2) * 0.5
        base = 3.0 + (set_index - 1) * 0.3 + wave
        return max(2.0, min(5.0, base))

    return _classic_energy(set_index, ratio)


def target_vocal_intensity(preset: str, set_index: int, ratio: float) -> Optional[float]:
    """
    Vocal intensity a preset aims for at a slot, or None for no target.
    """
    if preset == "clo" and set_index == 1:
        return 2.0 + ratio * 0.5
    if preset == "vocal-saver":
        return 2.5 + math.sin(ratio * math.pi) * 1.5
    if preset == "dinner-dancing" and set_index == 1:
        return 2.0
    return None
