"""Tests for category selection and per-device category paths."""

from pathlib import Path

from romsync.core.config import Config, DeviceConfig, SyncConfig
from romsync.domain.device import build_category, list_source_subdirectories, resolve_categories


class TestResolveCategories:
    def test_all_non_excluded_sorted(self):
        result = resolve_categories(["snes", "bios", "gba", "nes"], exclude=["bios"])

        assert result == ["gba", "nes", "snes"]

    def test_explicit_targets_override_excludes(self):
        result = resolve_categories(["snes", "gba"], exclude=["gba"], explicit_targets=["gba"])

        assert result == ["gba"]

    def test_explicit_targets_keep_order_and_drop_repeats(self):
        result = resolve_categories([], exclude=[], explicit_targets=["snes", "gba", "snes"])

        assert result == ["snes", "gba"]

    def test_hidden_folders_ignored(self):
        assert resolve_categories([".git", "psx"], exclude=[]) == ["psx"]

    def test_nothing_to_do(self):
        assert resolve_categories(["bios"], exclude=["bios"]) == []


class TestSourceListing:
    def test_lists_only_directories(self, tmp_path):
        (tmp_path / "snes").mkdir()
        (tmp_path / "gba").mkdir()
        (tmp_path / "README.txt").write_text("hi")

        assert sorted(list_source_subdirectories(tmp_path)) == ["gba", "snes"]


class TestBuildCategory:
    def test_paths_and_alias(self, tmp_path):
        config = Config(sync=SyncConfig(source_root=str(tmp_path / "src")))
        device = DeviceConfig(
            name="mini", target_root=str(tmp_path / "Roms"), aliases={"snes": "SFC"}
        )

        category = build_category("snes", config, device)

        assert category.source_path == tmp_path / "src" / "snes"
        assert category.target_path == tmp_path / "Roms" / "snes"
        assert category.device_path == tmp_path / "Roms" / "SFC"
        assert category.target_catalog == Path(tmp_path / "Roms" / "snes" / "gamelist.xml")

    def test_alias_equal_to_name_is_no_alias(self, tmp_path):
        config = Config(sync=SyncConfig(source_root=str(tmp_path)))
        device = DeviceConfig(name="d", target_root=str(tmp_path), aliases={"gba": "gba"})

        category = build_category("gba", config, device)

        assert category.device_alias is None
        assert category.effective_name == "gba"
