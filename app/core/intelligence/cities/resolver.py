"""
City Resolver.

Maps free-text city or airport mentions to canonical (city, IATA) pairs.
Strategies are tried in a fixed order and the first hit wins:

1. Bare 3-letter token, trusted as an IATA code
2. Exact (case-insensitive) city or alias name
3. Conservative fuzzy match against names and codes
4. Loose fuzzy match (typo tolerant)
5. Token-by-token conservative fuzzy match
6. Substring containment
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from rapidfuzz import fuzz, process, utils

from app.config import settings
from .catalog import CITY_ALIASES, CITY_CATALOG

logger = logging.getLogger(__name__)

_IATA_TOKEN = re.compile(r"^[A-Za-z]{3}$")
_ALPHA_TOKENS = re.compile(r"[A-Za-z]+")


@dataclass(frozen=True)
class CityMatch:
    """A resolved city with its airport code."""

    city: str
    iata: str

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"city": self.city, "iata": self.iata}

    @classmethod
    def from_dict(cls, data: dict) -> "CityMatch":
        """Create from dictionary."""
        return cls(city=data["city"], iata=data["iata"])


class CityResolver:
    """
    Multi-strategy city resolver backed by the city catalog.

    Fuzzy matching uses rapidfuzz's normalized ratio (0-100) with the
    default processor (lowercase, strip punctuation).
    """

    def __init__(
        self,
        catalog: Optional[dict[str, str]] = None,
        aliases: Optional[dict[str, str]] = None,
        strict_score: Optional[float] = None,
        loose_score: Optional[float] = None,
    ):
        """Initialize resolver.

        Args:
            catalog: City -> IATA mapping (defaults to built-in catalog)
            aliases: lowercase alias -> canonical city
            strict_score: Cutoff for the conservative fuzzy pass
            loose_score: Cutoff for the typo-tolerant fuzzy pass
        """
        self._catalog = catalog if catalog is not None else CITY_CATALOG
        self._aliases = aliases if aliases is not None else CITY_ALIASES
        self._strict = strict_score if strict_score is not None else settings.city_match_strict_score
        self._loose = loose_score if loose_score is not None else settings.city_match_loose_score

        # Fuzzy choices: every searchable label -> canonical city
        self._labels: dict[str, str] = {}
        for city, iata in self._catalog.items():
            self._labels[city] = city
            self._labels[iata] = city
        for alias, city in self._aliases.items():
            if city in self._catalog:
                self._labels[alias] = city
        self._choices = list(self._labels)

        self._by_name: dict[str, str] = {c.lower(): c for c in self._catalog}
        for alias, city in self._aliases.items():
            if city in self._catalog:
                self._by_name.setdefault(alias.lower(), city)
        self._by_code: dict[str, str] = {iata: c for c, iata in self._catalog.items()}

    def resolve(self, text: str, allow_loose: bool = True) -> Optional[CityMatch]:
        """Resolve free text to a city.

        Args:
            text: City name, airport code or short phrase
            allow_loose: Enable the loose fuzzy and substring passes.
                Disable when scanning arbitrary sentence tokens.

        Returns:
            CityMatch or None if nothing matched
        """
        if not text:
            return None
        raw = text.strip()
        if not raw:
            return None

        # 1. IATA code (unless the token is itself a city name, e.g. "Goa")
        if _IATA_TOKEN.match(raw) and self._exact(raw) is None:
            code = raw.upper()
            return CityMatch(city=self._by_code.get(code, code), iata=code)

        # 2. Exact name or alias
        exact = self._exact(raw)
        if exact:
            return exact

        # 3. Conservative fuzzy
        match = self._fuzzy(raw, self._strict)
        if match:
            return match

        # 4. Loose fuzzy
        if allow_loose:
            match = self._fuzzy(raw, self._loose)
            if match:
                return match

        # 5. Token-wise
        tokens = [t for t in _ALPHA_TOKENS.findall(raw) if len(t) >= 3]
        if len(tokens) > 1:
            for token in tokens:
                match = self._exact(token) or self._fuzzy(token, self._strict)
                if match:
                    return match

        # 6. Substring containment
        if allow_loose:
            return self._substring(raw)

        return None

    def knows_code(self, iata: str) -> bool:
        """Check whether an airport code belongs to a catalog city."""
        return iata.upper() in self._by_code

    def _match(self, city: str) -> CityMatch:
        return CityMatch(city=city, iata=self._catalog[city])

    def _exact(self, text: str) -> Optional[CityMatch]:
        city = self._by_name.get(text.strip().lower())
        return self._match(city) if city else None

    def _fuzzy(self, text: str, cutoff: float) -> Optional[CityMatch]:
        result = process.extractOne(
            text,
            self._choices,
            scorer=fuzz.ratio,
            processor=utils.default_process,
            score_cutoff=cutoff,
        )
        if result is None:
            return None
        label, score, _ = result
        logger.debug(f"Fuzzy city match '{text}' -> '{label}' ({score:.0f})")
        return self._match(self._labels[label])

    def _substring(self, text: str) -> Optional[CityMatch]:
        lowered = text.lower()
        words = set(_ALPHA_TOKENS.findall(lowered))
        for city, iata in self._catalog.items():
            name = city.lower()
            if name in lowered or (len(lowered) >= 3 and lowered in name):
                return self._match(city)
            if iata.lower() in words:
                return self._match(city)
        return None


# Singleton
_resolver: Optional[CityResolver] = None


def get_city_resolver() -> CityResolver:
    """Get singleton CityResolver."""
    global _resolver
    if _resolver is None:
        _resolver = CityResolver()
    return _resolver


def resolve_city(text: str, allow_loose: bool = True) -> Optional[CityMatch]:
    """Convenience function to resolve a city with the default catalog."""
    return get_city_resolver().resolve(text, allow_loose=allow_loose)
