"""Tests for frequency-based text analysis."""

import pytest

from docintel.services.text_analyzer import (
    STOPWORDS,
    analyze_text,
    normalize_word,
    rank_terms,
    split_paragraphs,
    split_sentences,
)


class TestSplitSentences:
    """Sentence splitting."""

    def test_drops_short_fragments(self):
        """Test that fragments of 20 characters or fewer are dropped."""
        text = "Short. This sentence is long enough to keep! Tiny?"
        assert split_sentences(text) == ["This sentence is long enough to keep"]

    def test_length_floor_is_strict(self):
        """Test that exactly 20 characters is dropped and 21 kept."""
        assert split_sentences("abcdefghijklmnopqrst.") == []
        assert split_sentences("abcdefghijklmnopqrstu.") == ["abcdefghijklmnopqrstu"]

    def test_repeated_punctuation(self):
        """Test that runs of terminal punctuation count as one boundary."""
        text = "Is this really working as expected?!? Yes it certainly appears so..."
        assert split_sentences(text) == [
            "Is this really working as expected",
            "Yes it certainly appears so",
        ]


class TestSplitParagraphs:
    """Paragraph splitting."""

    def test_blank_line_separates_paragraphs(self):
        """Test that paragraphs split on blank lines and short ones are dropped."""
        long_a = "First paragraph has more than fifty characters in it for sure."
        long_b = "Second paragraph also has well over fifty characters inside it."
        text = f"{long_a}\n\nToo short.\n   \n{long_b}"

        assert split_paragraphs(text) == [long_a, long_b]


class TestRankTerms:
    """Word frequency ranking."""

    def test_orders_by_frequency(self):
        """Test that words are ranked by count after normalization."""
        text = "Network network NETWORK. Protocol protocol. Packets!"
        assert rank_terms(text) == ["network", "protocol", "packets"]

    def test_ties_keep_first_occurrence_order(self):
        """Test that equal counts keep the order words first appeared in."""
        text = "gamma alpha beta " * 2 + "zebras" + " lambda"
        assert rank_terms(text, min_length=5) == ["gamma", "alpha", "zebras", "lambda"]

    def test_min_length_and_stopwords(self):
        """Test that short words and stop words are excluded."""
        text = "because because because however between window window"
        assert rank_terms(text) == ["window"]
        assert "because" in STOPWORDS

    def test_limit(self):
        """Test that at most ``limit`` terms are returned."""
        text = " ".join(f"termnumber{i}" for i in range(30))
        assert len(rank_terms(text, limit=10)) == 10

    def test_normalize_word(self):
        """Test lowercasing and punctuation removal."""
        assert normalize_word("(Caching),") == "caching"


class TestAnalyzeText:
    """Full analysis."""

    def test_important_sentences_contain_key_terms(self, paper_text):
        """Test that every important sentence contains a key term."""
        analysis = analyze_text(paper_text)

        assert analysis.important_sentences
        for sentence in analysis.important_sentences:
            assert any(term in sentence.lower() for term in analysis.key_terms)

    def test_key_terms_ranked(self, paper_text):
        """Test that the most frequent long words lead the ranking."""
        analysis = analyze_text(paper_text)

        assert set(analysis.key_terms[:2]) == {"caching", "storage"}

    def test_intro_section_is_leading_fifth(self, paper_text):
        """Test that the intro is the first 20% of sentences, rounded down."""
        analysis = analyze_text(paper_text)

        assert len(analysis.sentences) == 7
        assert analysis.intro_section == analysis.sentences[:1]

    def test_paragraphs(self, paper_text):
        """Test that blank-line paragraphs are found."""
        assert len(analyze_text(paper_text).paragraphs) == 4

    def test_deterministic(self, paper_text):
        """Test that repeated analysis yields identical results."""
        assert analyze_text(paper_text) == analyze_text(paper_text)

    def test_no_sentences(self):
        """Test that text without qualifying sentences analyses to empty tuples."""
        analysis = analyze_text("tiny bits")

        assert analysis.sentences == ()
        assert analysis.intro_section == ()
        assert analysis.important_sentences == ()


# Pytest fixtures
@pytest.fixture
def paper_text():
    return (
        "This study investigates how caching layers reduce latency in distributed storage systems. "
        "Distributed storage systems often suffer from slow reads under heavy load.\n\n"
        "We propose a caching approach that places a small cache in front of every storage node. "
        "The caching method uses a least recently used policy to evict entries.\n\n"
        "Our results show that caching reduces median read latency by forty percent across storage clusters. "
        "Storage clusters with caching also handled twice the request volume.\n\n"
        "In conclusion, caching in front of distributed storage nodes is a simple and effective way "
        "to improve latency for read heavy workloads."
    )
