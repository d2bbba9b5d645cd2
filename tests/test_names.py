"""Tests for app.services.names.name_of."""

import webcolors

from app.services.names import NameMatch, build_table, default_table, name_of


class TestExactMatch:
    def test_white(self):
        assert name_of("#FFFFFF") == NameMatch("#FFFFFF", "White", True)

    def test_case_insensitive(self):
        match = name_of("#ff6347")
        assert match.name == "Tomato"
        assert match.exact is True

    def test_missing_hash_and_shorthand(self):
        assert name_of("fff").name == "White"
        assert name_of("#000").exact is True

    def test_duplicate_hex_first_entry_wins(self):
        table = build_table([("#00FFFF", "Aqua"), ("#00ffff", "Cyan")])
        assert name_of("#00FFFF", table).name == "Aqua"


class TestApproximateMatch:
    def test_near_white(self):
        match = name_of("#FFFFFE")
        assert match.exact is False
        assert match.name in {"White", "Snow", "Ivory"}

    def test_minimal_table(self):
        table = build_table([("#000000", "Black"), ("#FFFFFF", "White")])
        match = name_of("#FFFFFE", table)
        assert match == NameMatch("#FFFFFF", "White", False)

    def test_dark_blue_maps_to_a_blue(self):
        table = build_table([("#FF0000", "Red"), ("#0000FF", "Blue"), ("#00FF00", "Green")])
        assert name_of("#101080", table).name == "Blue"

    def test_ties_keep_first_entry(self):
        table = build_table([("#000000", "First"), ("#000000", "Second")])
        assert name_of("#010101", table).name == "First"


class TestInvalidInput:
    def test_too_short(self):
        match = name_of("#1")
        assert match.name.startswith("Invalid Color")
        assert match.exact is False

    def test_too_long(self):
        assert name_of("#12345678").name == "Invalid Color: #12345678"

    def test_non_hex_digits(self):
        assert name_of("#GGGGGG").hex == "#000000"


class TestTable:
    def test_entries_are_precomputed(self):
        table = default_table()
        assert len(table) > 100
        white = next(entry for entry in table if entry.name == "White")
        assert white.rgb == (255, 255, 255)
        assert white.hsl == (0, 0, 255)

    def test_table_built_once(self):
        assert default_table() is default_table()

    def test_table_covers_css3_names(self):
        names = {entry.name for entry in default_table()}
        assert {"Darkslategray", "Cornflowerblue", "Aqua", "Cyan"} <= names
        assert len(default_table()) == len(webcolors.names(webcolors.CSS3))

    def test_shared_hex_resolves_alphabetically(self):
        assert name_of("#00FFFF").name == "Aqua"
        assert name_of("#808080").name == "Gray"


class TestAlphaHexForms:
    def test_four_digit_hex_is_invalid(self):
        assert name_of("#ABCD") == NameMatch("#000000", "Invalid Color: #ABCD", False)

    def test_five_character_input_is_invalid(self):
        assert name_of("ABCDE").name == "Invalid Color: ABCDE"

    def test_eight_digit_hex_is_invalid(self):
        assert name_of("#FFFFFFFF").exact is False
