"""Unit tests for citation and sentiment extraction."""
from hypothesis import given
from hypothesis import strategies as st

from newschat.answer import (
    AnswerDetails,
    SegmentKind,
    cited_sources,
    extract_citations,
    tokenize_annotations,
)


class TestExtractCitations:
    """Tests for extract_citations."""

    def test_distinct_sorted_numbers(self):
        """Test the canonical example: duplicates collapse, order ascends."""
        assert extract_citations("BTC rallied [1] while ETH fell [2] [1]") == [1, 2]

    def test_multiple_texts_combined(self):
        """Test that citations from several texts are merged."""
        assert extract_citations("TL;DR [3]", "Details [1] and [3]") == [1, 3]

    def test_no_citations(self):
        """Test text without markers and empty inputs."""
        assert extract_citations("Plain text") == []
        assert extract_citations("", "") == []

    def test_non_numeric_brackets_ignored(self):
        """Test that bracketed words are not citations."""
        assert extract_citations("[a] [BULLISH] [12]") == [12]

    @given(st.lists(st.integers(min_value=1, max_value=999), max_size=20))
    def test_extracts_every_marker(self, numbers: list[int]):
        """Property test: every embedded [n] is found exactly once."""
        text = " text ".join(f"[{n}]" for n in numbers)
        assert extract_citations(text) == sorted(set(numbers))


class TestTokenizeAnnotations:
    """Tests for tokenize_annotations."""

    def test_segments_in_order(self):
        """Test that text, citations and sentiment are split left to right."""
        segments = tokenize_annotations("BTC up [1] [BULLISH] today")

        assert [s.kind for s in segments] == [
            SegmentKind.TEXT,
            SegmentKind.CITATION,
            SegmentKind.TEXT,
            SegmentKind.SENTIMENT,
            SegmentKind.TEXT,
        ]
        assert segments[1].value == 1
        assert segments[3].value == "bullish"

    def test_sentiment_case_insensitive(self):
        """Test that sentiment markers match regardless of case."""
        segments = tokenize_annotations("[bearish]")
        assert len(segments) == 1
        assert segments[0].kind == SegmentKind.SENTIMENT
        assert segments[0].value == "bearish"
        assert segments[0].text == "[bearish]"

    def test_empty_text(self):
        """Test that empty input yields no segments."""
        assert tokenize_annotations("") == []

    @given(st.text())
    def test_no_text_lost(self, text: str):
        """Property test: joining segment texts reproduces the input."""
        assert "".join(s.text for s in tokenize_annotations(text)) == text

    @given(st.text())
    def test_citation_segments_match_extraction(self, text: str):
        """Property test: tokenized citations agree with extract_citations."""
        numbers = {
            s.value for s in tokenize_annotations(text) if s.kind == SegmentKind.CITATION
        }
        assert sorted(numbers) == extract_citations(text)


class TestCitedSources:
    """Tests for cited_sources."""

    def test_ordered_by_number_uncited_dropped(self, sources):
        """Test that only cited sources remain, ordered by citation number."""
        result = cited_sources(reversed(sources), "see [3]", "and [1]")
        assert [s.number for s in result] == [1, 3]

    def test_unknown_citation_ignored(self, sources):
        """Test that citations without a matching source are skipped."""
        assert [s.number for s in cited_sources(sources, "[7] [2]")] == [2]


class TestAnswerDetails:
    """Tests for AnswerDetails citation normalization."""

    def test_citations_distinct_and_sorted(self):
        """Test that stored citations are deduplicated and sorted."""
        assert AnswerDetails(content="x", citations=[3, 1, 3]).citations == [1, 3]
