"""
Domain models (Pydantic).

These types are the contract between layers:
- place records as fetched, stored and displayed (`Place`)
- per-session category toggles (`CategoryFilters`)
- ranked output for the API/CLI (`RankedPlace`)
"""

from __future__ import annotations

from typing import Final

from pydantic import BaseModel, ConfigDict

HOSPITAL: Final = "Hospital"
POLICE: Final = "Police"
LIBRARY: Final = "Library"

KNOWN_CATEGORIES: Final = (HOSPITAL, POLICE, LIBRARY)


class Place(BaseModel):
    """A public-service location; replaced as a whole on refresh, keyed by `id`."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    id: int
    name: str
    category: str
    latitude: float
    longitude: float
    address: str


class CategoryFilters(BaseModel):
    """Visibility toggles for the known categories. Other categories always show."""

    model_config = ConfigDict(frozen=True)

    hospitals: bool = True
    police: bool = True
    libraries: bool = True

    def allows(self, category: str) -> bool:
        if category == HOSPITAL:
            return self.hospitals
        if category == POLICE:
            return self.police
        if category == LIBRARY:
            return self.libraries
        return True

    def with_category(self, category: str, visible: bool) -> "CategoryFilters":
        """Return a copy with one known category switched; unknown labels raise."""
        field = _FILTER_FIELDS.get(category)
        if field is None:
            raise ValueError(f"Unknown category '{category}'; expected one of {list(KNOWN_CATEGORIES)}")
        return self.model_copy(update={field: visible})


_FILTER_FIELDS: dict[str, str] = {HOSPITAL: "hospitals", POLICE: "police", LIBRARY: "libraries"}


class RankedPlace(BaseModel):
    """One output row: the place plus its distance from the user (if known)."""

    model_config = ConfigDict(frozen=True)

    place: Place
    distance_m: float | None = None
    distance_label: str | None = None
