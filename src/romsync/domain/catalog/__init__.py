"""Catalog domain - gamelist.xml documents and entry matching."""

from .document import CatalogDocument, FieldEdit
from .matcher import EntryIndex, Selector, match_entry
from .models import (
    CATALOG_FILENAME,
    FLAG_FIELDS,
    IDENTITY_FIELDS,
    PRESERVED_FIELDS,
    CatalogEntry,
    normalize_space,
)

__all__ = [
    "CatalogDocument",
    "FieldEdit",
    "Selector",
    "EntryIndex",
    "match_entry",
    "CATALOG_FILENAME",
    "FLAG_FIELDS",
    "IDENTITY_FIELDS",
    "PRESERVED_FIELDS",
    "CatalogEntry",
    "normalize_space",
]
