"""Built-in moderation heuristics, modelled as data.

The moderation engine walks a ``HeuristicProfile``; the word lists, spam
patterns, penalties and thresholds all live here so they can be swapped or
extended without touching the algorithm.
"""

import re
from dataclasses import dataclass, field

DEFAULT_BLOCKED_WORDS = ("spam", "scam", "fake", "counterfeit", "knock-off")


@dataclass(frozen=True)
class SpamPattern:
    """A named spam indicator: matches when ``regex`` occurs anywhere in the text."""

    name: str
    description: str
    regex: str

    def matches(self, text: str) -> bool:
        return re.search(self.regex, text) is not None


DEFAULT_SPAM_PATTERNS = (
    SpamPattern("url", "Contains URLs", r"https?://[^\s]+"),
    SpamPattern("email", "Contains email addresses", r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"),
    SpamPattern("phone", "Contains phone numbers", r"\d{3}[-.]?\d{3}[-.]?\d{4}"),
    SpamPattern("repetition", "Contains repetitive characters", r"(.)\1{4,}"),
    SpamPattern("punctuation", "Excessive punctuation", r"[!?]{3,}"),
)


@dataclass(frozen=True)
class Penalties:
    profanity: int = 30
    spam: int = 40
    too_short: int = 10
    excessive_caps: int = 5


@dataclass(frozen=True)
class HeuristicProfile:
    blocked_words: frozenset = field(default_factory=lambda: frozenset(DEFAULT_BLOCKED_WORDS))
    blocked_emails: frozenset = field(default_factory=frozenset)
    spam_patterns: tuple = DEFAULT_SPAM_PATTERNS
    spam_threshold: int = 2
    min_length: int = 10
    caps_ratio: float = 0.5
    caps_min_length: int = 20
    penalties: Penalties = field(default_factory=Penalties)

    def profanity_in(self, text: str) -> list:
        lowered = text.lower()
        return sorted(word for word in self.blocked_words if word in lowered)

    def spam_indicators(self, text: str) -> list:
        return [pattern.description for pattern in self.spam_patterns if pattern.matches(text)]

    def is_blocked_email(self, email) -> bool:
        return bool(email) and email.lower() in self.blocked_emails

    def is_too_short(self, text: str) -> bool:
        return len(text) < self.min_length

    def has_excessive_caps(self, text: str) -> bool:
        if len(text) <= self.caps_min_length:
            return False
        uppercase = sum(1 for char in text if "A" <= char <= "Z")
        return uppercase / len(text) > self.caps_ratio
