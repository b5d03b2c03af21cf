#!/usr/bin/env python3
"""
Generate Setlist Script

Reads a catalog JSON (SETLIST_CATALOG_PATH) shaped like:

    {
      "songs": [{"id": ..., "title": ..., "vocalIntensity": 4, ...}],
      "sets": [{"setIndex": 1, "songsPerSet": 12}],
      "pinned": [{"setIndex": 1, "position": 0, "songId": ...}],
      "excluded": ["song-id", ...],
      "flowPreset": "classic"
    }

and writes the generated items and warnings as JSON to SETLIST_OUTPUT_PATH
(default: data/setlists/setlist-<timestamp>.json). SETLIST_SEED makes the
run reproducible.
"""

import json
import os
import random
import sys
import logging
from pathlib import Path
from datetime import datetime, timezone

# Add src/ to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from setlist_engine.config import Config
from setlist_engine.generate.setlist import generate
from setlist_engine.models import PinnedSlot, SetConfig, Song

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def load_catalog(path: Path) -> dict:
    """Parse the catalog JSON into engine models."""
    with open(path) as f:
        raw = json.load(f)

    return {
        "songs": [Song.from_dict(s) for s in raw.get("songs", [])],
        "sets": [SetConfig.from_dict(s) for s in raw.get("sets", [])],
        "pinned": [PinnedSlot.from_dict(p) for p in raw.get("pinned", [])],
        "excluded": [str(s) for s in raw.get("excluded", [])],
        "flow_preset": raw.get("flowPreset") or raw.get("flow_preset"),
    }


def main():
    """Main generation entrypoint."""
    try:
        logger.info("🎵 Starting setlist generation...")

        config = Config.load()
        logger.info(f"Config loaded: {config}")

        catalog_path = Path(os.getenv("SETLIST_CATALOG_PATH", "data/catalog.json"))
        if not catalog_path.exists():
            logger.error(f"Catalog not found: {catalog_path}")
            return 1
        catalog = load_catalog(catalog_path)

        seed = os.getenv("SETLIST_SEED")
        rng = random.Random(int(seed)) if seed else None

        result = generate(
            catalog["songs"],
            catalog["sets"],
            pinned_slots=catalog["pinned"],
            excluded_song_ids=catalog["excluded"],
            rng=rng,
            flow_preset=catalog["flow_preset"],
            config=config,
        )

        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        output_path = Path(
            os.getenv("SETLIST_OUTPUT_PATH", f"data/setlists/setlist-{timestamp}.json")
        )
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w") as f:
            json.dump(result.to_dict(), f, indent=2)

        for warning in result.messages:
            logger.warning(warning)
        logger.info(f"✅ Setlist written: {output_path} ({len(result.items)} songs)")
        return 0

    except KeyboardInterrupt:
        logger.warning("Generation interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Generation failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
