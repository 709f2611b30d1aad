"""
Keyword density scoring for generated content.

This module measures how often a target keyword appears in a body of text:
- Total word count (Unicode-aware tokenization)
- Whole-word/whole-phrase occurrence count (case-insensitive, literal)
- Density percentage rounded to 2 decimal places

All functions are pure and never raise for string input.
"""

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from functools import lru_cache
from typing import Iterable, Optional


# Letters and digits, joined by inner apostrophes (so "don't" is one word).
# The underscore is markdown emphasis, not a word character.
WORD_PATTERN = re.compile(r"[^\W_]+(?:'[^\W_]+)*")

# Display rule: density above this is flagged as a caution.
DEFAULT_CAUTION_THRESHOLD = 2.5

_TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class KeywordMetrics:
    """Keyword usage figures for one text/keyword pair."""
    total_words: int
    occurrence_count: int
    density_percent: float

    def to_dict(self) -> dict:
        """Serialize for JSON responses."""
        return {
            "total_words": self.total_words,
            "occurrence_count": self.occurrence_count,
            "density_percent": self.density_percent,
        }


class DensityStatus(Enum):
    """Display classification of a density value."""
    OK = "ok"
    CAUTION = "caution"


def tokenize_words(text: str) -> list[str]:
    """
    Split text into lowercase word tokens.

    Punctuation, markdown markup and whitespace are not words. A leading or
    trailing apostrophe is not part of a token; an inner one is.

    Args:
        text: Text to tokenize.

    Returns:
        List of lowercase tokens.
    """
    if not text:
        return []
    return WORD_PATTERN.findall(text.lower())


def build_phrase_pattern(keyword: str) -> Optional[re.Pattern]:
    """
    Build a literal whole-phrase matcher for a keyword.

    The match may not touch a word character on either side. An apostrophe
    glued to a word on the outside also blocks the match, so "don" does not
    match inside "don't".

    Args:
        keyword: Keyword or phrase (any characters).

    Returns:
        Compiled pattern, or None if the keyword is blank.
    """
    normalized = keyword.lower().strip()
    if not normalized:
        return None
    escaped = re.escape(normalized)
    return re.compile(rf"(?<![^\W_])(?<![^\W_]')(?:{escaped})(?![^\W_])(?!'[^\W_])")


def count_phrase_occurrences(text: str, keyword: str) -> int:
    """Count non-overlapping whole-phrase matches of keyword in text."""
    pattern = build_phrase_pattern(keyword)
    if pattern is None or not text:
        return 0
    return sum(1 for _ in pattern.finditer(text.lower()))


def calculate_density(occurrence_count: int, total_words: int) -> float:
    """
    Calculate density as a percentage rounded half-up to 2 decimals.

    The ratio is computed exactly before rounding, so ties round the same
    way on every platform.
    """
    if total_words <= 0:
        return 0.0
    ratio = Decimal(occurrence_count) * 100 / Decimal(total_words)
    return float(ratio.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def analyze(text: str, keyword: str) -> Optional[KeywordMetrics]:
    """
    Score keyword presence in a body of text.

    Args:
        text: Generated body (plain text or markdown). May be empty.
        keyword: Target keyword or phrase. May contain regex metacharacters.

    Returns:
        KeywordMetrics, or None when the keyword is blank after trimming.
    """
    if not keyword or not keyword.strip():
        return None
    return _analyze_cached(text or "", keyword)


@lru_cache(maxsize=256)
def _analyze_cached(text: str, keyword: str) -> KeywordMetrics:
    total_words = len(tokenize_words(text))
    if total_words == 0:
        return KeywordMetrics(total_words=0, occurrence_count=0, density_percent=0.0)

    occurrence_count = count_phrase_occurrences(text, keyword)
    return KeywordMetrics(
        total_words=total_words,
        occurrence_count=occurrence_count,
        density_percent=calculate_density(occurrence_count, total_words),
    )


def analyze_keywords(text: str, keywords: Iterable[str]) -> dict[str, KeywordMetrics]:
    """
    Score several keywords against the same text.

    Blank keywords are skipped. Duplicate keywords keep the first spelling.

    Args:
        text: Text to analyze.
        keywords: Keywords or phrases to score.

    Returns:
        Mapping of keyword (as given, trimmed) to its metrics.
    """
    results: dict[str, KeywordMetrics] = {}
    seen: set[str] = set()
    for keyword in keywords:
        key = keyword.strip()
        if not key or key.lower() in seen:
            continue
        seen.add(key.lower())
        metrics = analyze(text, key)
        if metrics is not None:
            results[key] = metrics
    return results


def density_status(
    density_percent: float,
    caution_threshold: float = DEFAULT_CAUTION_THRESHOLD,
) -> DensityStatus:
    """Classify a density value for display (above threshold = caution)."""
    if density_percent > caution_threshold:
        return DensityStatus.CAUTION
    return DensityStatus.OK
