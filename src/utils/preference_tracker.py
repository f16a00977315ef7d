"""Utility for deriving user preference tags from the conversation"""
import re
from typing import Dict, Iterable, List, Tuple


class PreferenceTracker:
    """
    Best-effort keyword matching over user-authored text.

    Time-of-day vocabulary is checked morning -> afternoon -> evening and the
    last match wins. Only the user's own words count; assistant and tool
    turns are never inspected.
    """

    TIME_OF_DAY_PATTERNS: List[Tuple[str, Tuple[str, ...]]] = [
        ("morning", (r"\bmornings?\b", r"\d\s*(am|a\.m\.)(?!\w)", r"\bearly\b")),
        ("afternoon", (r"\bafternoons?\b", r"\d\s*(pm|p\.m\.)(?!\w)", r"\blunch\b")),
        ("evening", (r"\bevenings?\b", r"\btonight\b", r"\bafter work\b")),
    ]
    URGENCY_PATTERNS = (
        r"\burgent(ly)?\b",
        r"\basap\b",
        r"\bas soon as possible\b",
        r"\bemergency\b",
        r"\bright away\b",
    )

    @staticmethod
    def _mentions(text: str, patterns: Iterable[str]) -> bool:
        return any(re.search(pattern, text) for pattern in patterns)

    @staticmethod
    def extract_from_text(texts: Iterable[str]) -> Dict[str, str]:
        """
        Extract preference tags from user utterances.

        Args:
            texts: User-authored utterances

        Returns:
            Dict with optional "time_preference" and "priority" tags
        """
        text = " ".join(texts).lower()
        preferences: Dict[str, str] = {}

        for tag, patterns in PreferenceTracker.TIME_OF_DAY_PATTERNS:
            if PreferenceTracker._mentions(text, patterns):
                preferences["time_preference"] = tag

        if PreferenceTracker._mentions(text, PreferenceTracker.URGENCY_PATTERNS):
            preferences["priority"] = "urgent"

        return preferences
