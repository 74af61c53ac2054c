"""Unit tests for catalog document parsing, batch edits and atomic writes."""

from pathlib import Path
from unittest.mock import patch

import pytest

from romsync.core.errors import CatalogDocumentError
from romsync.domain.catalog import CatalogDocument, FieldEdit

GAMELIST = """<?xml version="1.0"?>
<gameList>
  <!-- scraped 2024-01-01 -->
  <game id="101">
    <path>./Super Game (USA).sfc</path>
    <name>Super Game</name>
    <favorite>true</favorite>
    <playcount>4</playcount>
    <crc32>ABCD1234</crc32>
  </game>
  <game id="0">
    <path>./Bob's   Quest.sfc</path>
    <name>Bob's Quest</name>
  </game>
  <game>
    <path></path>
    <name>Pathless</name>
    <hidden>false</hidden>
  </game>
</gameList>
"""


@pytest.fixture
def gamelist_file(tmp_path: Path) -> Path:
    path = tmp_path / "gamelist.xml"
    path.write_text(GAMELIST, encoding="utf-8")
    return path


class TestParsing:
    """Tests for reading entries out of a gamelist."""

    def test_entries_in_document_order(self, gamelist_file):
        entries = CatalogDocument.load(gamelist_file).entries()

        assert [e.position for e in entries] == [0, 1, 2]
        assert [e.name for e in entries] == ["Super Game", "Bob's Quest", "Pathless"]

    def test_typed_fields(self, gamelist_file):
        first = CatalogDocument.load(gamelist_file).entries()[0]

        assert first.identifier == "101"
        assert first.favorite is True
        assert first.playcount == 4
        assert first.crc32 == "ABCD1234"
        assert first.hidden is None
        assert first.cheevosId is None

    def test_present_but_false_flag(self, gamelist_file):
        pathless = CatalogDocument.load(gamelist_file).entries()[2]

        assert pathless.hidden is False
        assert pathless.path == ""

    def test_placeholder_ids(self, gamelist_file):
        entries = CatalogDocument.load(gamelist_file).entries()

        assert not entries[0].is_placeholder
        assert entries[1].is_placeholder  # id="0"
        assert entries[2].is_placeholder  # no id at all

    def test_malformed_document(self, tmp_path):
        broken = tmp_path / "gamelist.xml"
        broken.write_text("<gameList><game>", encoding="utf-8")

        with pytest.raises(CatalogDocumentError):
            CatalogDocument.load(broken)

    def test_wrong_root_element(self, tmp_path):
        other = tmp_path / "gamelist.xml"
        other.write_text("<games><game/></games>", encoding="utf-8")

        with pytest.raises(CatalogDocumentError):
            CatalogDocument.load(other)

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogDocumentError):
            CatalogDocument.load(tmp_path / "absent.xml")


class TestApply:
    """Tests for all-or-nothing batch edits."""

    def test_update_and_insert(self, gamelist_file):
        document = CatalogDocument.load(gamelist_file)

        applied = document.apply(
            [
                FieldEdit(0, "playcount", "9"),
                FieldEdit(1, "favorite", "true"),
            ]
        )

        entries = document.entries()
        assert applied == 2
        assert entries[0].playcount == 9
        assert entries[1].favorite is True

    def test_invalid_edit_leaves_document_untouched(self, gamelist_file):
        document = CatalogDocument.load(gamelist_file)

        with pytest.raises(CatalogDocumentError):
            document.apply(
                [
                    FieldEdit(0, "playcount", "9"),
                    FieldEdit(42, "favorite", "true"),
                ]
            )

        assert document.entries()[0].playcount == 4

    def test_refuses_non_preserved_field(self, gamelist_file):
        document = CatalogDocument.load(gamelist_file)

        with pytest.raises(CatalogDocumentError):
            document.apply([FieldEdit(0, "name", "Renamed")])


class TestSave:
    """Tests for temp-file-then-rename persistence."""

    def test_round_trip_keeps_unedited_content(self, gamelist_file):
        document = CatalogDocument.load(gamelist_file)
        document.apply([FieldEdit(1, "hidden", "true")])
        document.save()

        reloaded = CatalogDocument.load(gamelist_file).entries()
        assert reloaded[0].crc32 == "ABCD1234"
        assert reloaded[1].hidden is True
        assert "scraped 2024-01-01" in gamelist_file.read_text(encoding="utf-8")
        assert not (gamelist_file.parent / "gamelist.xml.temp").exists()

    def test_failed_replace_keeps_original(self, gamelist_file):
        document = CatalogDocument.load(gamelist_file)
        document.apply([FieldEdit(0, "playcount", "99")])

        with patch(
            "romsync.domain.catalog.document.os.replace",
            side_effect=PermissionError(13, "Permission denied"),
        ):
            with pytest.raises(CatalogDocumentError):
                document.save()

        assert gamelist_file.read_text(encoding="utf-8") == GAMELIST
        assert not (gamelist_file.parent / "gamelist.xml.temp").exists()


class TestPrunePlaceholders:
    """Tests for removing id="0" entries."""

    def test_only_explicit_zero_ids_removed(self, gamelist_file):
        document = CatalogDocument.load(gamelist_file)

        removed = document.prune_placeholders()

        assert removed == 1
        assert [e.name for e in document.entries()] == ["Super Game", "Pathless"]
