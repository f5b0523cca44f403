"""
Keyword Sentiment — Classify review comments as positive, neutral, or negative.

Two match modes:
  - substring: every occurrence of a keyword anywhere in the lower-cased
    comment counts ("badminton" counts as "bad"). Compatible default.
  - token: the comment is split on word boundaries and only whole words count.

Rule: positive hits > negative hits -> positive, the reverse -> negative,
anything else (including 0/0) -> neutral.
"""

import re
from dataclasses import dataclass

POSITIVE_KEYWORDS: tuple[str, ...] = (
    "excellent",
    "great",
    "amazing",
    "love",
    "professional",
    "happy",
    "outstanding",
)
NEGATIVE_KEYWORDS: tuple[str, ...] = (
    "bad",
    "poor",
    "terrible",
    "disappointed",
    "slow",
    "awful",
)

_WORD_RE = re.compile(r"[a-z0-9']+")


@dataclass(frozen=True)
class SentimentScore:
    positive_hits: int
    negative_hits: int
    sentiment: str


def count_hits(text: str, keywords: tuple[str, ...], match: str = "substring") -> int:
    """Count keyword occurrences in text using the given match mode."""
    lowered = (text or "").lower()
    if match == "token":
        tokens = _WORD_RE.findall(lowered)
        return sum(tokens.count(keyword) for keyword in keywords)
    if match == "substring":
        return sum(lowered.count(keyword) for keyword in keywords)
    raise ValueError(f"Unknown sentiment match mode: {match!r}")


def classify(text: str, match: str = "substring") -> SentimentScore:
    positive = count_hits(text, POSITIVE_KEYWORDS, match)
    negative = count_hits(text, NEGATIVE_KEYWORDS, match)
    if positive > negative:
        label = "positive"
    elif negative > positive:
        label = "negative"
    else:
        label = "neutral"
    return SentimentScore(positive_hits=positive, negative_hits=negative, sentiment=label)
