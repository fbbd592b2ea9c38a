"""Tests for highlight_aggregator.text_cleanup."""
from highlight_aggregator.text_cleanup import clean_note_text


class TestCleanNoteText:
    def test_space_before_punctuation(self) -> None:
        assert clean_note_text("asked the old man , frowning .") == "asked the old man, frowning."
        assert clean_note_text("one ; two : three !") == "one; two: three!"

    def test_quotes(self) -> None:
        assert clean_note_text("“ Who is he ? ”") == "“Who is he?”"
        assert clean_note_text("the tsar ’ s men") == "the tsar’ s men"

    def test_parentheses(self) -> None:
        assert clean_note_text("said ( quietly )") == "said (quietly)"

    def test_clean_text_unchanged(self) -> None:
        text = "Nothing to fix here, really."
        assert clean_note_text(text) == text
