"""Unit tests for catalog entry matching."""

from romsync.domain.catalog import CatalogEntry, EntryIndex, Selector, match_entry


def entry(position: int, path: str = "", name: str = "", **fields) -> CatalogEntry:
    return CatalogEntry(position=position, path=path, name=name, **fields)


SOURCE = [
    entry(0, "./alpha.rom", "Alpha"),
    entry(1, "./beta.rom", "Beta"),
    entry(2, "./alpha.rom", "Alpha (duplicate)"),
    entry(3, "", "Gamma"),
    entry(4, "./delta  two.rom", "Delta"),
]


class TestMatchEntry:
    """Tests for path-then-name resolution."""

    def test_path_match(self):
        found = match_entry(entry(0, "./beta.rom", "Something else"), SOURCE)

        assert found.position == 1

    def test_first_duplicate_wins(self):
        found = match_entry(entry(0, "./alpha.rom"), SOURCE)

        assert found.position == 0

    def test_falls_back_to_name_when_path_empty(self):
        found = match_entry(entry(0, "", "Gamma"), SOURCE)

        assert found.position == 3

    def test_falls_back_to_name_when_path_unknown(self):
        found = match_entry(entry(0, "./renamed.rom", "Beta"), SOURCE)

        assert found.position == 1

    def test_whitespace_normalized(self):
        found = match_entry(entry(0, " ./delta two.rom\n"), SOURCE)

        assert found.position == 4

    def test_case_sensitive(self):
        assert match_entry(entry(0, "./ALPHA.rom", "alpha"), SOURCE) is None

    def test_blank_keys_never_match(self):
        # Source entry 3 has an empty path; an empty candidate path must not hit it
        assert match_entry(entry(0, "", ""), SOURCE) is None

    def test_not_found(self):
        assert match_entry(entry(0, "./zeta.rom", "Zeta"), SOURCE) is None


class TestEntryIndex:
    """Tests for the reusable index."""

    def test_index_reused_across_candidates(self):
        index = EntryIndex(SOURCE)

        assert index.match(entry(0, "./beta.rom")).position == 1
        assert index.match(entry(0, "", "Delta")).position == 4

    def test_empty_source(self):
        assert EntryIndex([]).match(entry(0, "./alpha.rom", "Alpha")) is None

    def test_lookup_by_selector(self):
        index = EntryIndex(SOURCE + [entry(5, "./Bob's Quest.rom", "Bob's Quest")])

        assert index.lookup(Selector("path", "  ./Bob's   Quest.rom\t")).position == 5
        assert index.lookup(Selector("name", "Bob's Quest")).position == 5

    def test_lookup_keys_are_separate(self):
        # A name never satisfies a path selector
        assert EntryIndex(SOURCE).lookup(Selector("path", "Beta")) is None

    def test_blank_selector(self):
        assert EntryIndex(SOURCE).lookup(Selector.of("path", " \n")) is None
