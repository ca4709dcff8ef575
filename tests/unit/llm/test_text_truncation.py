"""Unit tests for text utilities (truncation, whitespace cleanup)."""

from shipment_intel.llm.text_utils import collapse_whitespace, truncate_at_sentence_boundary


class TestTruncateAtSentenceBoundary:
    """Test sentence boundary truncation."""

    def test_no_truncation_needed(self):
        """Text shorter than limit should not be truncated."""
        text = "Vessel sailed."
        assert truncate_at_sentence_boundary(text, max_chars=100) == text

    def test_truncates_at_sentence_end(self):
        """Should truncate after last complete sentence."""
        text = "Booking confirmed. SI cutoff is Friday. VGM is due Thursday."
        assert truncate_at_sentence_boundary(text, max_chars=45) == "Booking confirmed. SI cutoff is Friday."

    def test_truncates_at_exclamation(self):
        text = "Container released! Pickup is pending. More text."
        assert truncate_at_sentence_boundary(text, max_chars=25) == "Container released!"

    def test_truncates_at_question(self):
        text = "Is the BL ready? Please confirm. Thanks."
        assert truncate_at_sentence_boundary(text, max_chars=20) == "Is the BL ready?"

    def test_decimal_point_is_not_a_boundary(self):
        text = "Gross weight 12.5 tons and volume 28 cbm for this booking"
        result = truncate_at_sentence_boundary(text, max_chars=50)
        assert result == "Gross weight 12.5 tons and volume 28 cbm for this"

    def test_falls_back_to_word_boundary(self):
        """Without a sentence end, cut at the last space past 80% of the limit."""
        text = "please arrange pickup of the container from the terminal"
        result = truncate_at_sentence_boundary(text, max_chars=30)
        assert result == "please arrange pickup of the"

    def test_hard_cut(self):
        text = "MSKU1234567MSKU7654321TGHU0000001"
        assert truncate_at_sentence_boundary(text, max_chars=10) == "MSKU123456"


class TestCollapseWhitespace:

    def test_collapses_blank_runs(self):
        assert collapse_whitespace("a\n\n\n\nb") == "a\n\nb"

    def test_strips_trailing_spaces(self):
        assert collapse_whitespace("  first \t\nsecond  ") == "first\nsecond"
