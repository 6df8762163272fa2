"""City catalog and fuzzy city resolution."""

from .catalog import CITY_CATALOG, CITY_ALIASES
from .resolver import CityMatch, CityResolver, get_city_resolver, resolve_city

__all__ = [
    "CITY_CATALOG",
    "CITY_ALIASES",
    "CityMatch",
    "CityResolver",
    "get_city_resolver",
    "resolve_city",
]
