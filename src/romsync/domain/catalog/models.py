"""
Catalog domain models.

A catalog is one category's gamelist.xml; each <game> element is a
CatalogEntry. Field names mirror the XML tag names.
"""

import re
from dataclasses import dataclass
from typing import Optional

CATALOG_FILENAME = "gamelist.xml"

# User-state flags: trusted from any device entry
FLAG_FIELDS = ("favorite", "hidden", "playcount")
# Scraped identity: only trusted from entries with a real identifier
IDENTITY_FIELDS = ("crc32", "cheevosId", "cheevosHash")
PRESERVED_FIELDS = FLAG_FIELDS + IDENTITY_FIELDS

BOOL_FIELDS = frozenset({"favorite", "hidden"})
INT_FIELDS = frozenset({"playcount"})

_XML_WHITESPACE = re.compile(r"[ \t\r\n]+")


def normalize_space(value: Optional[str]) -> str:
    """Strip and collapse whitespace the way XPath normalize-space() does."""
    if not value:
        return ""
    return _XML_WHITESPACE.sub(" ", value).strip(" ")


def parse_bool(text: Optional[str]) -> bool:
    return normalize_space(text).lower() == "true"


def parse_playcount(text: Optional[str]) -> int:
    try:
        return max(0, int(normalize_space(text)))
    except ValueError:
        return 0


def is_placeholder_id(identifier: Optional[str]) -> bool:
    """Blank or all-zero ids mark entries the scraper never identified."""
    stripped = normalize_space(identifier)
    return not stripped or stripped.strip("0") == ""


@dataclass(frozen=True)
class CatalogEntry:
    """One <game> record of a catalog document.

    position is the index among the document's <game> elements and is the
    only handle edits use; it is stable for the lifetime of a loaded
    document. Preserved fields are None when the element is absent.
    """

    position: int
    identifier: str = ""
    path: str = ""
    name: str = ""
    favorite: Optional[bool] = None
    hidden: Optional[bool] = None
    playcount: Optional[int] = None
    crc32: Optional[str] = None
    cheevosId: Optional[str] = None
    cheevosHash: Optional[str] = None

    @property
    def is_placeholder(self) -> bool:
        return is_placeholder_id(self.identifier)

    def field_text(self, field: str) -> Optional[str]:
        """Serialized form of a preserved field, or None if absent."""
        value = getattr(self, field)
        if value is None:
            return None
        if field in BOOL_FIELDS:
            return "true" if value else "false"
        return str(value)

    def is_populated(self, field: str) -> bool:
        """True when the field carries a non-empty, non-zero or true value."""
        value = getattr(self, field)
        if value is None:
            return False
        if field in BOOL_FIELDS:
            return value is True
        if field in INT_FIELDS:
            return value > 0
        # Blank or all-zero strings ("0", "00000000") are scraper fill-ins
        return not is_placeholder_id(value)
