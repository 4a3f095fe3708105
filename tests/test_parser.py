"""Unit tests for raw answer parsing."""
import pytest

from newschat.answer import AnswerDetails, parse_structured_response, validate_citations
from newschat.answer.parser import (
    DEFAULT_CONFIDENCE,
    NO_DETAILS,
    NO_SUMMARY,
    extract_confidence,
    extract_section,
    has_sections,
)

RAW_ANSWER = """## TL;DR
Bitcoin climbed on ETF inflows [1].

## Details
BTC rose 5% [1] while ETH slipped [3]. [BULLISH]

## Confidence
85%
"""


class TestParseStructuredResponse:
    """Tests for parse_structured_response."""

    def test_full_answer(self):
        """Test that all three sections are extracted."""
        parsed = parse_structured_response(RAW_ANSWER)

        assert parsed.tldr == "Bitcoin climbed on ETF inflows [1]."
        assert parsed.details.content == "BTC rose 5% [1] while ETH slipped [3]. [BULLISH]"
        assert parsed.details.citations == [1, 3]
        assert parsed.confidence == 85

    def test_missing_sections_fall_back(self):
        """Test defaults when no sections are present."""
        parsed = parse_structured_response("just some text")

        assert parsed.tldr == NO_SUMMARY
        assert parsed.details.content == NO_DETAILS
        assert parsed.details.citations == []
        assert parsed.confidence == DEFAULT_CONFIDENCE

    def test_tldr_without_semicolon(self):
        """Test that ``## TLDR`` is accepted."""
        assert extract_section("## TLDR\nShort\n", "TL;?DR") == "Short"


class TestExtractConfidence:
    """Tests for extract_confidence."""

    @pytest.mark.parametrize(
        ("section", "expected"),
        [("85%", 85), ("250", 100), ("0%", 1), ("about 40 percent", 40), ("high", 50)],
    )
    def test_values(self, section: str, expected: int):
        """Test parsing and clamping of confidence values."""
        assert extract_confidence(f"## Confidence\n{section}\n") == expected


class TestHasSections:
    """Tests for has_sections."""

    def test_detects_headers(self):
        """Test section header detection."""
        assert has_sections(RAW_ANSWER)
        assert has_sections("intro\n  ## Details\nbody")
        assert not has_sections("price is up [1]")


class TestValidateCitations:
    """Tests for validate_citations."""

    def test_valid(self):
        """Test citations within range."""
        report = validate_citations(AnswerDetails(content="a [1] b [2]", citations=[1, 2]), 2)
        assert report.valid
        assert report.issues == []

    def test_out_of_range(self):
        """Test citations beyond the available sources."""
        report = validate_citations(AnswerDetails(content="a [4]", citations=[4]), 3)
        assert not report.valid
        assert "[4]" in report.issues[0]

    def test_long_details_without_citations(self):
        """Test that substantial uncited content is flagged."""
        report = validate_citations(AnswerDetails(content="x" * 101), 3)
        assert not report.valid
        assert "lacks citations" in report.issues[0]
