"""
Catalog document access.

Wraps an EmulationStation-style gamelist.xml: reading entries in document
order, applying batches of field edits all-or-nothing, pruning placeholder
entries and writing back through a sibling temp file plus atomic rename.
"""

import copy
import os
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, List, NamedTuple, Optional

from loguru import logger

from ...core.errors import CatalogDocumentError
from .models import (
    BOOL_FIELDS,
    INT_FIELDS,
    PRESERVED_FIELDS,
    CatalogEntry,
    is_placeholder_id,
    normalize_space,
    parse_bool,
    parse_playcount,
)

ROOT_TAG = "gameList"
ENTRY_TAG = "game"


class FieldEdit(NamedTuple):
    """Update-or-insert of one preserved field on the entry at position."""

    position: int
    field: str
    value: str


def _child_text(element: ET.Element, tag: str) -> Optional[str]:
    child = element.find(tag)
    if child is None:
        return None
    return child.text or ""


def _entry_from_element(position: int, element: ET.Element) -> CatalogEntry:
    values = {}
    for field in PRESERVED_FIELDS:
        text = _child_text(element, field)
        if text is None:
            values[field] = None
        elif field in BOOL_FIELDS:
            values[field] = parse_bool(text)
        elif field in INT_FIELDS:
            values[field] = parse_playcount(text)
        else:
            values[field] = normalize_space(text)

    return CatalogEntry(
        position=position,
        identifier=normalize_space(element.get("id")),
        path=_child_text(element, "path") or "",
        name=_child_text(element, "name") or "",
        **values,
    )


def _set_field(game: ET.Element, field: str, value: str) -> None:
    child = game.find(field)
    if child is None:
        child = ET.SubElement(game, field)
        # Keep indentation consistent with the sibling elements
        if len(game) > 1:
            previous = game[-2]
            child.tail = previous.tail
            previous.tail = game[-3].tail if len(game) > 2 else game.text
    child.text = value


class CatalogDocument:
    """A parsed catalog document."""

    def __init__(self, root: ET.Element, path: Optional[Path] = None):
        if root.tag != ROOT_TAG:
            raise CatalogDocumentError(
                f"Expected <{ROOT_TAG}> root element, found <{root.tag}>", path
            )
        self._root = root
        self.path = path

    @classmethod
    def load(cls, path: Path) -> "CatalogDocument":
        """Parse a catalog document from disk.

        Raises:
            CatalogDocumentError: If the file cannot be read or is malformed
        """
        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
        try:
            tree = ET.parse(path, parser=parser)
        except ET.ParseError as e:
            raise CatalogDocumentError(f"Malformed catalog ({e})", path) from e
        except OSError as e:
            raise CatalogDocumentError(f"Cannot read catalog ({e.strerror})", path) from e
        return cls(tree.getroot(), path)

    def _games(self, root: Optional[ET.Element] = None) -> List[ET.Element]:
        return (root if root is not None else self._root).findall(ENTRY_TAG)

    def entries(self) -> List[CatalogEntry]:
        """All entries in document order."""
        return [
            _entry_from_element(position, element)
            for position, element in enumerate(self._games())
        ]

    def apply(self, edits: Iterable[FieldEdit]) -> int:
        """Apply a batch of edits; either all land or none do.

        Edits are applied to a deep copy of the tree, which replaces the
        live tree only after the whole batch succeeded.

        Returns:
            Number of edits applied

        Raises:
            CatalogDocumentError: If any edit is invalid
        """
        working = copy.deepcopy(self._root)
        games = self._games(working)
        applied = 0

        for edit in edits:
            if edit.field not in PRESERVED_FIELDS:
                raise CatalogDocumentError(
                    f"Refusing to edit non-preserved field '{edit.field}'", self.path
                )
            if not 0 <= edit.position < len(games):
                raise CatalogDocumentError(
                    f"No entry at position {edit.position}", self.path
                )
            _set_field(games[edit.position], edit.field, edit.value)
            applied += 1

        self._root = working
        return applied

    def prune_placeholders(self) -> int:
        """Remove entries whose id attribute is a placeholder ('0').

        Entries without any id attribute are kept; only explicit zero ids
        are treated as junk by the devices that reject them.

        Returns:
            Number of entries removed
        """
        removed = 0
        for game in self._games():
            identifier = game.get("id")
            if identifier is not None and is_placeholder_id(identifier) and identifier.strip():
                self._root.remove(game)
                removed += 1
        return removed

    def save(self, path: Optional[Path] = None) -> None:
        """Write the document via sibling temp file and atomic rename.

        Raises:
            CatalogDocumentError: If writing or renaming fails; the original
                file is left untouched and the temp file removed
        """
        target = path or self.path
        if target is None:
            raise CatalogDocumentError("No path to save catalog to")

        temp_path = target.with_name(target.name + ".temp")
        try:
            ET.ElementTree(self._root).write(
                temp_path, encoding="utf-8", xml_declaration=True
            )
            os.replace(temp_path, target)
        except OSError as e:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError:
                logger.warning(f"Could not remove temp catalog {temp_path}")
            raise CatalogDocumentError(f"Cannot write catalog ({e.strerror})", target) from e

        self.path = target
        logger.debug(f"Wrote catalog {target}")
