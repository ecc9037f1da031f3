"""Static herd catalogue: species ranges, default animals and farm boundary."""

from __future__ import annotations

from typing import Dict, Tuple

from models.records import AnimalProfile, Polygon, VitalsRange

VITALS_RANGES: Dict[str, VitalsRange] = {
    "Cow": VitalsRange(temp_min=38.0, temp_max=39.5, hr_min=48, hr_max=84),
    "Goat": VitalsRange(temp_min=38.5, temp_max=40.0, hr_min=70, hr_max=135),
    "Sheep": VitalsRange(temp_min=38.5, temp_max=40.0, hr_min=60, hr_max=120),
    "Bull": VitalsRange(temp_min=38.0, temp_max=39.5, hr_min=40, hr_max=80),
}

DEFAULT_HERD: Tuple[AnimalProfile, ...] = (
    AnimalProfile(id="A001", name="Bessie", species="Cow", emoji="🐄"),
    AnimalProfile(id="A002", name="Daisy", species="Cow", emoji="🐄"),
    AnimalProfile(id="A003", name="Rufus", species="Goat", emoji="🐐"),
    AnimalProfile(id="A004", name="Clover", species="Sheep", emoji="🐑"),
    AnimalProfile(id="A005", name="Bruno", species="Bull", emoji="🐂"),
)

# (lat, lng) corners, clockwise from the north-west.
DEFAULT_POLYGON: Polygon = (
    (36.8200, 10.1800),
    (36.8200, 10.1870),
    (36.8150, 10.1870),
    (36.8150, 10.1800),
)


def vitals_range_for(species: str) -> VitalsRange:
    try:
        return VITALS_RANGES[species]
    except KeyError as exc:
        raise KeyError(f"No vitals range configured for species {species!r}.") from exc
