"""
Catalog entry matching.

Resolves a device-side record to its source-catalog counterpart. Ids are
not trusted as join keys (scrapers assign them independently per device),
so matching goes by normalized path, then normalized name.

Lookups are Selector values over already parsed entries, so paths that
contain quotes never need escaping into a query string.

Duplicates are not corrected: when several source entries share a path or
name, the first one in document order wins.
"""

from typing import Dict, Iterable, NamedTuple, Optional

from .models import CatalogEntry, normalize_space

MATCH_KEYS = ("path", "name")


class Selector(NamedTuple):
    """Equality predicate over a normalized entry key ('path' or 'name')."""

    key: str
    value: str

    @classmethod
    def of(cls, key: str, value: Optional[str]) -> "Selector":
        return cls(key, normalize_space(value))

    @classmethod
    def for_entry(cls, key: str, entry: CatalogEntry) -> "Selector":
        return cls.of(key, getattr(entry, key))


class EntryIndex:
    """Lookup table over a source catalog's entries."""

    def __init__(self, entries: Iterable[CatalogEntry]):
        self._entries: Dict[Selector, CatalogEntry] = {}
        for entry in entries:
            for key in MATCH_KEYS:
                selector = Selector.for_entry(key, entry)
                if selector.value:
                    self._entries.setdefault(selector, entry)

    def lookup(self, selector: Selector) -> Optional[CatalogEntry]:
        """First entry whose normalized key equals the selector value."""
        if not selector.value:
            return None
        return self._entries.get(Selector.of(selector.key, selector.value))

    def match(self, candidate: CatalogEntry) -> Optional[CatalogEntry]:
        """Find the source entry for a device-side candidate.

        Path equality first; if the candidate has no path or the path is
        unknown, name equality. Blank keys never match.
        """
        for key in MATCH_KEYS:
            found = self.lookup(Selector.for_entry(key, candidate))
            if found is not None:
                return found
        return None


def match_entry(
    candidate: CatalogEntry, source_entries: Iterable[CatalogEntry]
) -> Optional[CatalogEntry]:
    """One-off match against a source catalog (builds a throwaway index)."""
    return EntryIndex(source_entries).match(candidate)
