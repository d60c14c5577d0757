import logging
import pytest
from core.phonetics import correct_phonetics, sounds_similar, PHONETIC_CORRECTIONS


class TestCorrectPhonetics:
    """Tests for transcript normalization."""

    def test_bill_and_filler_words(self):
        assert correct_phonetics("Pay my Water Build") == "pay water bill"

    def test_take_me_to(self):
        assert correct_phonetics("Take me to safety") == "navigate safety"

    def test_word_split_and_whitespace(self):
        assert correct_phonetics("  report a   pot hole  ") == "report a pothole"

    def test_substring_replacement(self):
        """Rules are substring rewrites, not whole words."""
        assert correct_phonetics("open schemes") == "navigate schemes"
        assert correct_phonetics("reopen") == "renavigate"

    def test_spoken_numbers(self):
        assert correct_phonetics("call one zero eight") == "call 108"

    def test_contractions(self):
        assert correct_phonetics("I'm lost and can't find home") == "i am lost and cannot find home"

    @pytest.mark.parametrize("text", ["Show Pending Bills", "  WHERE is the relief camp ", "dark mode"])
    def test_clean_input_only_lowercased(self, text):
        assert correct_phonetics(text) == " ".join(text.lower().split())

    @pytest.mark.parametrize("text", ["", "   ", "\t\n"])
    def test_empty(self, text):
        assert correct_phonetics(text) == ""

    def test_logs_only_real_rewrites(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="core.phonetics"):
            correct_phonetics("  Show Pending Bills ")
        assert not any("Normalized transcript" in r.message for r in caplog.records)

        with caplog.at_level(logging.DEBUG, logger="core.phonetics"):
            correct_phonetics("Pay my Water Build")
        assert any("Normalized transcript" in r.message for r in caplog.records)

    def test_rule_order_matters(self):
        rules = (("a b", "c"), ("c d", "e"))
        assert correct_phonetics("a b d", rules) == "e"
        assert correct_phonetics("a b d", tuple(reversed(rules))) == "c d"

    def test_table_order_preserved(self):
        """'go to' and 'take me to' rewrite before 'open'."""
        wrongs = [wrong for wrong, _ in PHONETIC_CORRECTIONS]
        assert wrongs.index("go to") < wrongs.index("take me to") < wrongs.index("open")
        assert wrongs[0] == "water build"


class TestSoundsSimilar:
    """Tests for the rough phonetic comparison."""

    def test_similar(self):
        assert sounds_similar("report", "repot")
        assert sounds_similar("Scheme", "schema")

    def test_different_first_letter(self):
        assert not sounds_similar("bill", "pill")

    def test_length_gap(self):
        assert not sounds_similar("schemes", "sch")

    def test_empty(self):
        assert not sounds_similar("", "a")
