"""Unit tests for response heuristics."""

import pytest
import pytest_check as check

from cerebras_chat.completion.heuristics import (
    KeywordTextAnalyzer,
    analyze_sentiment,
    calculate_cost,
    detect_language,
    extract_topics,
)
from cerebras_chat.models.schemas import Sentiment


class TestCalculateCost:
    """Tests for the per-model price table."""

    def test_known_models(self) -> None:
        check.almost_equal(calculate_cost(1000, "llama3.1-8b"), 0.10)
        check.almost_equal(calculate_cost(2000, "llama3.1-70b"), 1.20)

    def test_unknown_model_uses_default_rate(self) -> None:
        assert calculate_cost(500, "mystery-model") == pytest.approx(0.05)

    def test_zero_tokens_costs_nothing(self) -> None:
        assert calculate_cost(0, "llama3.1-8b") == 0


class TestDetectLanguage:
    """Tests for alphabet-frequency language detection."""

    def test_english_text(self) -> None:
        assert detect_language("Hello there, how are you?") == "en"

    def test_russian_text(self) -> None:
        assert detect_language("Привет, как дела?") == "ru"

    def test_majority_alphabet_wins(self) -> None:
        """Counts letters rather than checking presence."""
        assert detect_language("Привет мир and ok") == "ru"
        assert detect_language("да, this is a long english sentence") == "en"

    def test_equal_or_empty_is_mixed(self) -> None:
        check.equal(detect_language(""), "mixed")
        check.equal(detect_language("12345 !!!"), "mixed")
        check.equal(detect_language("ab аб"), "mixed")


class TestAnalyzeSentiment:
    """Tests for keyword sentiment classification."""

    def test_positive(self) -> None:
        assert analyze_sentiment("This is a great and excellent idea") == Sentiment.POSITIVE

    def test_negative(self) -> None:
        assert analyze_sentiment("There is a problem: terrible error") == Sentiment.NEGATIVE

    def test_russian_keywords(self) -> None:
        assert analyze_sentiment("Всё отлично!") == Sentiment.POSITIVE

    def test_tie_is_neutral(self) -> None:
        assert analyze_sentiment("good but bad") == Sentiment.NEUTRAL

    def test_no_keywords_is_neutral(self) -> None:
        assert analyze_sentiment("The sky is blue.") == Sentiment.NEUTRAL

    def test_case_insensitive(self) -> None:
        assert analyze_sentiment("GREAT") == Sentiment.POSITIVE


class TestExtractTopics:
    """Tests for dictionary topic extraction."""

    def test_single_topic(self) -> None:
        assert extract_topics("Here is the algorithm you asked for") == ["programming"]

    def test_topics_follow_dictionary_order(self) -> None:
        """Order comes from the table, not from the text."""
        topics = extract_topics("The company stores customer data in a function")

        assert topics == ["programming", "technology", "business"]

    def test_no_topics(self) -> None:
        assert extract_topics("Nice weather today") == []

    def test_russian_keywords(self) -> None:
        assert extract_topics("Этот курс про исследование") == ["science", "education"]


class TestKeywordTextAnalyzer:
    """The default analyzer delegates to the module functions."""

    def test_delegates(self) -> None:
        analyzer = KeywordTextAnalyzer()
        text = "Great code"

        check.equal(analyzer.detect_language(text), detect_language(text))
        check.equal(analyzer.analyze_sentiment(text), analyze_sentiment(text))
        check.equal(analyzer.extract_topics(text), extract_topics(text))
