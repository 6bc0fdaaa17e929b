"""Heuristic text analysis for assistant responses.

Language, sentiment and topic guesses are deterministic lookups over fixed
tables, not NLP. They sit behind the TextAnalyzer base class so a real
backend can replace KeywordTextAnalyzer without touching the client.
"""

import re
from abc import ABC, abstractmethod

from cerebras_chat.models.schemas import Sentiment

# Approximate USD price per 1000 tokens
MODEL_PRICES: dict[str, float] = {
    "llama3.1-8b": 0.10,
    "llama3.1-70b": 0.60,
}
DEFAULT_PRICE = 0.10

_CYRILLIC = re.compile(r"[а-яё]", re.IGNORECASE)
_LATIN = re.compile(r"[a-z]", re.IGNORECASE)

POSITIVE_WORDS = (
    "хорошо",
    "отлично",
    "замечательно",
    "прекрасно",
    "великолепно",
    "good",
    "great",
    "excellent",
    "wonderful",
)
NEGATIVE_WORDS = (
    "плохо",
    "ужасно",
    "отвратительно",
    "проблема",
    "ошибка",
    "bad",
    "terrible",
    "awful",
    "problem",
    "error",
)

TOPIC_KEYWORDS: dict[str, tuple[str, ...]] = {
    "programming": ("код", "программа", "разработка", "алгоритм", "функция",
                    "code", "program", "algorithm", "function"),
    "science": ("исследование", "эксперимент", "теория", "гипотеза",
                "research", "experiment", "theory", "hypothesis"),
    "technology": ("компьютер", "интернет", "сеть", "данные", "система",
                   "computer", "internet", "network", "data", "system"),
    "education": ("учеба", "знания", "обучение", "курс", "урок",
                  "study", "knowledge", "learning", "course", "lesson"),
    "business": ("компания", "продажи", "маркетинг", "прибыль", "клиент",
                 "company", "sales", "marketing", "profit", "customer"),
}


def calculate_cost(tokens: int, model: str) -> float:
    """Estimate the cost of a response from its token count."""
    price_per_thousand = MODEL_PRICES.get(model, DEFAULT_PRICE)
    return tokens / 1000 * price_per_thousand


def detect_language(text: str) -> str:
    """Guess the language by comparing Cyrillic and Latin letter counts.

    Returns:
        "ru", "en", or "mixed" when the counts are equal.
    """
    cyrillic = len(_CYRILLIC.findall(text))
    latin = len(_LATIN.findall(text))

    if cyrillic > latin:
        return "ru"
    if latin > cyrillic:
        return "en"
    return "mixed"


def analyze_sentiment(text: str) -> Sentiment:
    """Classify sentiment by counting matched keywords; ties are neutral."""
    lower = text.lower()
    positive = sum(1 for word in POSITIVE_WORDS if word in lower)
    negative = sum(1 for word in NEGATIVE_WORDS if word in lower)

    if positive > negative:
        return Sentiment.POSITIVE
    if negative > positive:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def extract_topics(text: str) -> list[str]:
    """Return every topic with at least one keyword in the text."""
    lower = text.lower()
    return [
        topic
        for topic, keywords in TOPIC_KEYWORDS.items()
        if any(keyword in lower for keyword in keywords)
    ]


class TextAnalyzer(ABC):
    """Base class for response analysis backends.

    Each backend turns an assistant reply into the heuristic fields of its
    message metadata.
    """

    @abstractmethod
    def detect_language(self, text: str) -> str:
        """Return ``ru``, ``en`` or ``mixed``."""
        ...

    @abstractmethod
    def analyze_sentiment(self, text: str) -> Sentiment:
        ...

    @abstractmethod
    def extract_topics(self, text: str) -> list[str]:
        """Return topic labels found in the text."""
        ...


class KeywordTextAnalyzer(TextAnalyzer):
    """Default analyzer backed by the keyword tables in this module."""

    def detect_language(self, text: str) -> str:
        return detect_language(text)

    def analyze_sentiment(self, text: str) -> Sentiment:
        return analyze_sentiment(text)

    def extract_topics(self, text: str) -> list[str]:
        return extract_topics(text)
