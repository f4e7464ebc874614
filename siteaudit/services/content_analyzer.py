"""
Content heuristics for a single page.

Keyword relevance, Flesch-style readability, uniqueness scoring and search
intent classification. Everything here is a pure function of the extracted
title, meta description and body text.
"""

import math
import re
from dataclasses import dataclass, field, asdict

WORD_RE = re.compile(r"\b[a-z]{3,}\b", re.ASCII)
SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
SYLLABLE_RE = re.compile(r"[aeiouy]+", re.IGNORECASE)

TOP_KEYWORDS = 10
TITLE_DESCRIPTION_BOOST = 1000
READABILITY_SAMPLE_CHARS = 2500

STOP_WORDS = frozenset({
    "the", "and", "for", "are", "but", "not", "you", "all", "can", "her", "was",
    "one", "our", "out", "day", "get", "has", "him", "his", "how", "its", "may",
    "new", "now", "old", "see", "two", "who", "way", "use", "she", "had", "this",
    "that", "from", "they", "with", "have", "what", "were", "when", "your", "said",
    "each", "which", "their", "time", "will", "about", "would", "there", "could",
    "other", "after", "first", "never", "these", "think", "where", "being",
    "those", "shall", "should", "than", "them", "then", "through", "too", "under",
    "until", "very", "while", "whom", "why",
})

# Declaration order is also the tie-break order.
INTENT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "informational": ("what", "how", "why", "guide", "tutorial", "learn", "understand", "explain", "definition"),
    "navigational": ("login", "sign in", "account", "dashboard", "home", "contact"),
    "transactional": ("buy", "purchase", "order", "price", "cost", "discount", "sale", "shop", "cart", "checkout"),
    "commercial": ("compare", "best", "review", "vs", "top", "alternative", "recommend"),
}
INTENT_ALIGNMENT_THRESHOLD = 30


@dataclass
class KeywordStat:
    word: str
    count: int
    density: float
    relevance: str


@dataclass
class KeywordAnalysis:
    total_words: int = 0
    unique_words: int = 0
    top_keywords: list[KeywordStat] = field(default_factory=list)
    semantic_relevance: str = "Needs Improvement"


@dataclass
class UniquenessResult:
    score: int
    word_count: int
    sentence_count: int
    avg_words_per_sentence: float


@dataclass
class IntentResult:
    primary_intent: str
    confidence: int
    intent_scores: dict[str, int]
    aligned: bool


@dataclass
class ContentScore:
    uniqueness_score: int
    readability_score: int
    intent: str
    confidence: int


@dataclass
class ContentAnalysis:
    keywords: KeywordAnalysis
    readability_score: int
    uniqueness: UniquenessResult
    intent: IntentResult

    @property
    def score(self) -> ContentScore:
        return ContentScore(
            uniqueness_score=self.uniqueness.score,
            readability_score=self.readability_score,
            intent=self.intent.primary_intent,
            confidence=self.intent.confidence,
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["score"] = asdict(self.score)
        return data


def round_half_up(value: float) -> int:
    """Nearest integer with .5 going up (``round`` would give 50 for 50.5)."""
    return math.floor(value + 0.5)


def _tokens(text: str) -> list[str]:
    return WORD_RE.findall(text.lower())


def _sentences(text: str) -> list[str]:
    return [s for s in SENTENCE_SPLIT_RE.split(text) if s.strip()]


def analyze_keywords(text: str, title: str = "", description: str = "") -> KeywordAnalysis:
    words = _tokens(f"{title} {description} {text}")
    frequencies: dict[str, int] = {}
    for word in words:
        if word not in STOP_WORDS:
            frequencies[word] = frequencies.get(word, 0) + 1

    important = set(_tokens(title)) | set(_tokens(description))

    ranked = sorted(
        frequencies.items(),
        key=lambda item: item[1] + (TITLE_DESCRIPTION_BOOST if item[0] in important else 0),
        reverse=True,
    )[:TOP_KEYWORDS]

    top_keywords = [
        KeywordStat(
            word=word,
            count=count,
            density=round(count / len(words) * 100, 2),
            relevance="High" if word in important else "Medium",
        )
        for word, count in ranked
    ]

    return KeywordAnalysis(
        total_words=len(words),
        unique_words=len(frequencies),
        top_keywords=top_keywords,
        semantic_relevance="Good" if important else "Needs Improvement",
    )


def calculate_readability(text: str) -> int:
    """Flesch reading ease clamped to 0-100. Degenerate input scores 50."""
    words = text.split()
    sentences = _sentences(text)
    if not words or not sentences:
        return 50

    syllables = len(SYLLABLE_RE.findall(text))
    avg_words_per_sentence = len(words) / len(sentences)
    avg_syllables_per_word = syllables / len(words)

    score = 206.835 - 1.015 * avg_words_per_sentence - 84.6 * avg_syllables_per_word
    return round_half_up(min(100.0, max(0.0, score)))


def evaluate_uniqueness(text: str, title: str = "", description: str = "") -> UniquenessResult:
    word_count = len(text.split())
    sentence_count = len(_sentences(text))
    avg_words_per_sentence = word_count / sentence_count if sentence_count else 0.0

    score = 50
    if 300 <= word_count <= 2000:
        score += 20
    elif word_count > 2000:
        score += 15
    else:
        score -= 20

    if title and description:
        score += 15
    if 30 <= len(title) <= 60:
        score += 10
    if 120 <= len(description) <= 160:
        score += 10
    if 15 <= avg_words_per_sentence <= 25:
        score += 5

    return UniquenessResult(
        score=min(100, max(0, score)),
        word_count=word_count,
        sentence_count=sentence_count,
        avg_words_per_sentence=round(avg_words_per_sentence, 1),
    )


def classify_intent(text: str, title: str = "", description: str = "") -> IntentResult:
    content = f"{title} {description} {text}".lower()

    scores = {
        intent: sum(1 for keyword in keywords if keyword in content)
        for intent, keywords in INTENT_KEYWORDS.items()
    }

    primary = next(iter(INTENT_KEYWORDS))
    for intent in INTENT_KEYWORDS:
        if scores[intent] > scores[primary]:
            primary = intent

    matches = scores[primary]
    confidence = 0
    if matches > 0:
        confidence = round_half_up(min(100.0, matches / len(INTENT_KEYWORDS[primary]) * 100))

    return IntentResult(
        primary_intent=primary,
        confidence=confidence,
        intent_scores=scores,
        aligned=confidence > INTENT_ALIGNMENT_THRESHOLD,
    )


def analyze_content(text: str, title: str = "", description: str = "") -> ContentAnalysis:
    """Run every content heuristic over the page text."""
    return ContentAnalysis(
        keywords=analyze_keywords(text, title, description),
        readability_score=calculate_readability(text[:READABILITY_SAMPLE_CHARS]),
        uniqueness=evaluate_uniqueness(text, title, description),
        intent=classify_intent(text, title, description),
    )
