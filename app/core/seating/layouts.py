"""
Aircraft Layout Catalog.

Maps "<make> <model>" to per-class cabin layouts. Missing aircraft or
classes (e.g. no first class on an A320) fall back to the generic
six-abreast layout in the seat allocator.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from app.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CabinLayout:
    """Column arrangement of one cabin class."""

    columns: tuple[str, ...]
    seats_per_row: int

    @classmethod
    def from_dict(cls, data: dict) -> "CabinLayout":
        """Create from a catalog entry ({"layout": [...], "seatsPerRow": n})."""
        columns = tuple(data.get("layout") or data.get("columns") or ())
        return cls(
            columns=columns,
            seats_per_row=int(data.get("seatsPerRow", data.get("seats_per_row", len(columns)))),
        )


_NARROWBODY = {
    "economy": CabinLayout(("A", "B", "C", "D", "E", "F"), 6),
    "business": CabinLayout(("A", "C", "D", "F"), 4),
    "first": None,
}
_TURBOPROP = {
    "economy": CabinLayout(("A", "B", "C", "D"), 4),
    "business": CabinLayout(("A", "D"), 2),
    "first": None,
}

DEFAULT_LAYOUTS: dict[str, dict[str, Optional[CabinLayout]]] = {
    "Boeing 787 Dreamliner": {
        "economy": CabinLayout(("A", "B", "C", "D", "E", "F", "G", "H", "J"), 9),
        "business": CabinLayout(("A", "C", "D", "F"), 4),
        "first": CabinLayout(("A", "D", "G", "J"), 4),
    },
    "Boeing 737 MAX": _NARROWBODY,
    "Boeing 737": _NARROWBODY,
    "Airbus A320": _NARROWBODY,
    "Airbus A320neo": _NARROWBODY,
    "Airbus A321": _NARROWBODY,
    "Airbus A321neo": _NARROWBODY,
    "Airbus A319": _NARROWBODY,
    "Airbus ATR 42-600": _TURBOPROP,
    "Airbus ATR 72-600": _TURBOPROP,
}


class LayoutCatalog:
    """Read-only lookup of cabin layouts by aircraft name and class."""

    def __init__(self, layouts: Optional[dict[str, dict[str, Optional[CabinLayout]]]] = None):
        self._layouts = layouts if layouts is not None else DEFAULT_LAYOUTS

    @classmethod
    def from_file(cls, path: str) -> "LayoutCatalog":
        """Load a catalog from JSON shaped like {"<make> <model>": {"economy": {...}}}."""
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        layouts: dict[str, dict[str, Optional[CabinLayout]]] = {}
        for aircraft, classes in raw.items():
            layouts[aircraft] = {
                travel_class.lower(): CabinLayout.from_dict(entry) if entry else None
                for travel_class, entry in (classes or {}).items()
            }
        logger.info(f"Loaded {len(layouts)} aircraft layouts from {path}")
        return cls(layouts)

    def get(self, aircraft_name: str, travel_class: str) -> Optional[CabinLayout]:
        """Get the cabin layout, None when the aircraft or class is unknown."""
        classes = self._layouts.get(aircraft_name)
        if not classes:
            return None
        layout = classes.get(travel_class.lower())
        if layout is None or not layout.columns:
            return None
        return layout


# Singleton
_catalog: Optional[LayoutCatalog] = None


def get_layout_catalog() -> LayoutCatalog:
    """Get singleton LayoutCatalog (file override from settings if configured)."""
    global _catalog
    if _catalog is None:
        if settings.aircraft_layouts_path:
            _catalog = LayoutCatalog.from_file(settings.aircraft_layouts_path)
        else:
            _catalog = LayoutCatalog()
    return _catalog
