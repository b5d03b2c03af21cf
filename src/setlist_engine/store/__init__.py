"""
Setlist Store Module: keep item positions contiguous under edits.

- One list per set; list index is the position
- song_id index for the one-song-per-setlist rule
- Stateless between calls: rebuilt from the caller's items each time
"""

__all__ = ["items", "templates"]
