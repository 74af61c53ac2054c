"""
Metadata reconciliation for romsync

Merges user state recorded on a device (favorites, hidden flags, play
counts, achievement/checksum ids) back into the source catalog before the
transfer overwrites the device copy.

Merge policy is one-directional and loss-avoiding: a field is copied only
when the device value is populated (non-empty, non-zero, true), fields are
updated or inserted but never deleted, and the source file is replaced only
when the whole batch for the category applied cleanly.
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from loguru import logger

from ...core.errors import CatalogDocumentError, ReconciliationError
from ..catalog.document import CatalogDocument, FieldEdit
from ..catalog.matcher import EntryIndex
from ..catalog.models import IDENTITY_FIELDS, PRESERVED_FIELDS, CatalogEntry
from ..device.models import Category


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of reconciling one category."""

    category: str
    matched: int = 0
    unmatched: int = 0
    edits: int = 0
    written: bool = False
    skipped_reason: str = ""


def compute_updates(
    source_entries: Sequence[CatalogEntry],
    snapshot_entries: Sequence[CatalogEntry],
    fields: Sequence[str] = PRESERVED_FIELDS,
) -> Tuple[List[FieldEdit], int, int]:
    """Work out which source fields the device snapshot should update.

    Identity fields (crc32, cheevos*) are only taken from snapshot entries
    carrying a real id; flag fields are taken from every entry. When two
    snapshot entries resolve to the same source entry, the first one's
    value stands.

    Args:
        source_entries: Entries of the source catalog
        snapshot_entries: Entries of the device catalog
        fields: Preserved fields to consider

    Returns:
        (edits, matched snapshot entries, unmatched snapshot entries)
    """
    index = EntryIndex(source_entries)
    planned: Dict[Tuple[int, str], FieldEdit] = {}
    matched = 0
    unmatched = 0

    for candidate in snapshot_entries:
        target = index.match(candidate)
        if target is None:
            unmatched += 1
            logger.debug(
                f"No source entry for path={candidate.path!r} name={candidate.name!r}"
            )
            continue
        matched += 1

        for field in fields:
            if field in IDENTITY_FIELDS and candidate.is_placeholder:
                continue
            if not candidate.is_populated(field):
                continue

            value = candidate.field_text(field)
            if target.field_text(field) == value:
                continue

            key = (target.position, field)
            if key in planned:
                continue
            planned[key] = FieldEdit(target.position, field, value)
            action = "add" if getattr(target, field) is None else "update"
            logger.debug(f"Scheduled {field} {action} for {target.path!r}: {value}")

    return list(planned.values()), matched, unmatched


def reconcile_category(
    category: Category, fields: Sequence[str] = PRESERVED_FIELDS
) -> ReconcileResult:
    """Merge the device snapshot of one category into its source catalog.

    Expects the device catalog at its canonical location (the layout
    pipeline has already moved it back).

    Raises:
        ReconciliationError: If either document is malformed or the batch
            could not be applied; the source catalog is left unmodified
    """
    if not category.source_catalog.is_file():
        logger.info(f"[{category.name}] No source catalog at {category.source_catalog}, skipping merge")
        return ReconcileResult(category.name, skipped_reason="no source catalog")
    if not category.target_catalog.is_file():
        logger.info(f"[{category.name}] No device catalog at {category.target_catalog}, skipping merge")
        return ReconcileResult(category.name, skipped_reason="no device catalog")

    try:
        source = CatalogDocument.load(category.source_catalog)
        snapshot = CatalogDocument.load(category.target_catalog)

        edits, matched, unmatched = compute_updates(
            source.entries(), snapshot.entries(), fields
        )
        if not edits:
            logger.info(f"[{category.name}] Source catalog already up to date ({matched} matched)")
            return ReconcileResult(category.name, matched=matched, unmatched=unmatched)

        applied = source.apply(edits)
        source.save()
    except CatalogDocumentError as e:
        raise ReconciliationError(category.name, str(e)) from e

    logger.info(
        f"[{category.name}] Applied {applied} field updates "
        f"({matched} matched, {unmatched} unmatched)"
    )
    return ReconcileResult(
        category.name,
        matched=matched,
        unmatched=unmatched,
        edits=applied,
        written=True,
    )
