"""
Place record loader.

Place records arrive as a JSON array (from the network or a local file). Each
element is validated into a typed `Place`; elements with missing or malformed
fields are skipped so one bad row never hides the rest of the dataset.
"""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from geoassist.core.env import resolve_project_path
from geoassist.domain.models import Place

logger = logging.getLogger(__name__)

BUNDLED_PLACES_FILE = "places.json"


def parse_places(payload: Any) -> list[Place]:
    """Validate a decoded JSON array into places, skipping invalid entries.

    Raises:
        ValueError: If `payload` is not a JSON array.
    """
    if not isinstance(payload, list):
        raise ValueError(f"expected a JSON array of places, got {type(payload).__name__}")

    places: list[Place] = []
    skipped = 0
    for index, item in enumerate(payload):
        try:
            places.append(Place.model_validate(item))
        except ValidationError as exc:
            skipped += 1
            logger.debug("Skipping invalid place record #%d: %s", index, exc.errors(include_url=False))
    if skipped:
        logger.warning("Skipped %d invalid place record(s) out of %d", skipped, len(payload))
    return places


def load_places(path: str | Path) -> list[Place]:
    """Load and validate a places JSON file."""
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    return parse_places(payload)


def load_bundled_places() -> list[Place]:
    """Load the fallback dataset packaged with `geoassist.catalog`."""
    text = resources.files("geoassist.catalog").joinpath(BUNDLED_PLACES_FILE).read_text(encoding="utf-8")
    return parse_places(json.loads(text))
