"""Tests for merging device catalog fields back into the source catalog."""

from pathlib import Path

import pytest

from romsync.core.errors import ReconciliationError
from romsync.domain.catalog import CatalogDocument, CatalogEntry
from romsync.domain.device import Category
from romsync.domain.reconcile import compute_updates, reconcile_category

SOURCE_XML = """<?xml version="1.0"?>
<gameList>
  <game id="1">
    <path>./a.rom</path>
    <name>Alpha</name>
  </game>
  <game id="2">
    <path>./b.rom</path>
    <name>Beta</name>
    <playcount>3</playcount>
  </game>
</gameList>
"""


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def category(tmp_path: Path) -> Category:
    return Category(
        name="snes",
        source_path=tmp_path / "source" / "snes",
        target_path=tmp_path / "device" / "snes",
    )


class TestComputeUpdates:
    """Tests for the pure merge planning."""

    def test_flag_copied_from_entry_without_id(self):
        source = [CatalogEntry(position=0, path="./a.rom", name="Alpha")]
        snapshot = [CatalogEntry(position=0, path="./a.rom", favorite=True)]

        edits, matched, unmatched = compute_updates(source, snapshot)

        assert [(e.position, e.field, e.value) for e in edits] == [(0, "favorite", "true")]
        assert (matched, unmatched) == (1, 0)

    def test_identity_field_needs_real_id(self):
        source = [CatalogEntry(position=0, path="./a.rom")]
        placeholder = [CatalogEntry(position=0, identifier="0", path="./a.rom", crc32="FFFF")]
        identified = [CatalogEntry(position=0, identifier="77", path="./a.rom", crc32="FFFF")]

        assert compute_updates(source, placeholder)[0] == []
        edits = compute_updates(source, identified)[0]
        assert [(e.field, e.value) for e in edits] == [("crc32", "FFFF")]

    def test_empty_values_never_overwrite(self):
        source = [CatalogEntry(position=0, path="./a.rom", favorite=True, playcount=5)]
        snapshot = [CatalogEntry(position=0, path="./a.rom", favorite=False, playcount=0)]

        edits, matched, _ = compute_updates(source, snapshot)

        assert edits == []
        assert matched == 1

    def test_zero_identity_values_never_overwrite(self):
        source = [CatalogEntry(position=0, path="./a.rom", cheevosId="1234")]
        snapshot = [
            CatalogEntry(
                position=0, identifier="9", path="./a.rom", cheevosId="0", crc32="00000000"
            )
        ]

        assert compute_updates(source, snapshot)[0] == []

    def test_equal_values_skipped(self):
        source = [CatalogEntry(position=0, path="./a.rom", playcount=2)]
        snapshot = [CatalogEntry(position=0, path="./a.rom", playcount=2)]

        assert compute_updates(source, snapshot)[0] == []

    def test_first_snapshot_entry_wins(self):
        source = [CatalogEntry(position=0, path="./a.rom", name="Alpha")]
        snapshot = [
            CatalogEntry(position=0, path="./a.rom", playcount=4),
            CatalogEntry(position=1, path="", name="Alpha", playcount=9),
        ]

        edits, matched, _ = compute_updates(source, snapshot)

        assert [(e.field, e.value) for e in edits] == [("playcount", "4")]
        assert matched == 2

    def test_unmatched_entries_counted(self):
        source = [CatalogEntry(position=0, path="./a.rom")]
        snapshot = [CatalogEntry(position=0, path="./gone.rom", favorite=True)]

        edits, matched, unmatched = compute_updates(source, snapshot)

        assert edits == []
        assert (matched, unmatched) == (0, 1)

    def test_restricted_field_set(self):
        source = [CatalogEntry(position=0, path="./a.rom")]
        snapshot = [CatalogEntry(position=0, path="./a.rom", favorite=True, hidden=True)]

        edits = compute_updates(source, snapshot, fields=("hidden",))[0]

        assert [e.field for e in edits] == ["hidden"]


class TestReconcileCategory:
    """Tests for the file-level reconcile of one category."""

    def test_merges_and_writes(self, category):
        write(category.source_catalog, SOURCE_XML)
        write(
            category.target_catalog,
            """<gameList>
  <game><path>./a.rom</path><favorite>true</favorite></game>
  <game id="2"><path>./b.rom</path><playcount>8</playcount></game>
</gameList>""",
        )

        result = reconcile_category(category)

        entries = CatalogDocument.load(category.source_catalog).entries()
        assert result.written
        assert result.edits == 2
        assert entries[0].favorite is True
        assert entries[1].playcount == 8

    def test_second_run_is_a_no_op(self, category):
        write(category.source_catalog, SOURCE_XML)
        write(
            category.target_catalog,
            "<gameList><game><path>./a.rom</path><hidden>true</hidden></game></gameList>",
        )

        reconcile_category(category)
        after_first = category.source_catalog.read_text(encoding="utf-8")
        result = reconcile_category(category)

        assert not result.written
        assert result.edits == 0
        assert category.source_catalog.read_text(encoding="utf-8") == after_first

    def test_unmatched_snapshot_leaves_source_bytes(self, category):
        write(category.source_catalog, SOURCE_XML)
        write(
            category.target_catalog,
            "<gameList><game><path>./other.rom</path><favorite>true</favorite></game></gameList>",
        )

        result = reconcile_category(category)

        assert result.unmatched == 1
        assert category.source_catalog.read_text(encoding="utf-8") == SOURCE_XML

    def test_missing_device_catalog_is_skipped(self, category):
        write(category.source_catalog, SOURCE_XML)

        result = reconcile_category(category)

        assert result.skipped_reason == "no device catalog"

    def test_missing_source_catalog_is_skipped(self, category):
        write(category.target_catalog, "<gameList/>")

        result = reconcile_category(category)

        assert result.skipped_reason == "no source catalog"

    def test_malformed_snapshot_raises_and_keeps_source(self, category):
        write(category.source_catalog, SOURCE_XML)
        write(category.target_catalog, "<gameList><game><path>./a.rom")

        with pytest.raises(ReconciliationError) as exc_info:
            reconcile_category(category)

        assert exc_info.value.category == "snes"
        assert category.source_catalog.read_text(encoding="utf-8") == SOURCE_XML
