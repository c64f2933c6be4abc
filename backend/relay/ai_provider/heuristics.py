"""Local summary and reply heuristics used when every provider fails.

Nothing here calls a model; results are built from the thread text alone.
Sentiment is always reported as neutral.
"""
import logging
import math
import random
import re
from typing import List, Optional

from relay.config import HeuristicSettings, ParserSettings

from .base import SummaryResult, ThreadContent

logger = logging.getLogger(__name__)

EMPTY_POINTS = "No content found to summarize"
EMPTY_QUOTES = "No quotes available"
POINTS_PLACEHOLDER = "Thread content analysis"
QUOTES_PLACEHOLDER = "Key insights from discussion"

QUOTED_SPAN_MIN_CHARS = 8
QUOTED_SPAN_RE = re.compile(
    r"[\"“]([^\"“”\n]+)[\"”]"
    r"|(?<!\w)['‘]([^'‘’\n]+)['’](?!\w)"
)
LINK_MARKERS = ("http", "www.")

GRATITUDE_WORDS = (
    "thank", "grateful", "appreciate", "love", "great", "awesome",
    "amazing", "excited", "congrat", "happy", "proud",
)
QUESTION_OPENERS = (
    "what", "how", "why", "when", "where", "who", "which",
    "should", "can", "could", "would", "is", "are", "does", "do", "anyone",
)

REPLY_TEMPLATES = {
    "gratitude": [
        "Love this, thanks for sharing!",
        "This is great to see, congrats!",
        "Really appreciate you putting this out there.",
        "So good. Thanks for sharing this!",
    ],
    "question": [
        "Great question, curious what others think.",
        "Been wondering the same thing myself.",
        "Interesting question, following for answers.",
        "Good question, would love to see more takes on this.",
    ],
    "default": [
        "Great insights! Thanks for sharing.",
        "This is really helpful information.",
        "Interesting perspective, learned something new!",
        "Thanks for the detailed explanation.",
        "This adds value to the conversation.",
    ],
}


def _clip(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max(0, max_chars - 3)].rstrip() + "..."


class ThreadHeuristics:
    """Builds best-effort summaries and replies straight from thread text.

    Attributes:
        settings: Line thresholds and reading speed.
        limits: Output caps shared with the response parser.
    """

    def __init__(
        self,
        settings: Optional[HeuristicSettings] = None,
        limits: Optional[ParserSettings] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings or HeuristicSettings()
        self.limits = limits or ParserSettings()
        self._rng = rng or random.Random()

    def _lines(self, text: str) -> List[str]:
        return [
            line.strip() for line in text.splitlines()
            if len(line.strip()) > self.settings.min_line_chars
        ]

    def _is_meaningful(self, line: str) -> bool:
        return (
            len(line) > self.settings.meaningful_min_chars
            and len(line.split()) > self.settings.meaningful_min_words
            and not any(marker in line.lower() for marker in LINK_MARKERS)
        )

    def _quoted_spans(self, text: str) -> List[str]:
        spans = []
        for match in QUOTED_SPAN_RE.finditer(text):
            span = (match.group(1) or match.group(2) or "").strip()
            if len(span) >= QUOTED_SPAN_MIN_CHARS:
                spans.append(span)
        return spans

    def derive_summary(self, thread: ThreadContent) -> SummaryResult:
        """Summarize without a model.

        Key points are the first meaningful lines; quotes prefer quoted
        spans, then short lines not already used as key points.
        """
        text = thread.text or ""
        if not text.strip():
            return SummaryResult(
                key_points=[EMPTY_POINTS],
                quotes=[EMPTY_QUOTES],
                sentiment="neutral",
                word_count=0,
                time_to_read=0,
            )

        lines = self._lines(text)
        meaningful = [line for line in lines if self._is_meaningful(line)]

        key_points = [
            _clip(line, self.limits.point_max_chars)
            for line in meaningful[:self.limits.max_points]
        ]
        if not key_points and lines:
            key_points.append(_clip(lines[0], self.limits.point_max_chars))

        quotes: List[str] = []
        for span in self._quoted_spans(text):
            if len(quotes) >= self.limits.max_quotes:
                break
            clipped = _clip(span, self.limits.quote_max_chars)
            if clipped not in quotes:
                quotes.append(clipped)

        used = set(key_points)
        for line in lines:
            if len(quotes) >= self.limits.max_quotes:
                break
            if not self.settings.quote_min_chars < len(line) < self.settings.quote_max_chars:
                continue
            if line in used or line in quotes:
                continue
            quotes.append(line)

        if not quotes and len(lines) > 1:
            quotes.append(_clip(lines[len(lines) // 2], self.limits.quote_max_chars))

        return SummaryResult(
            key_points=key_points or [POINTS_PLACEHOLDER],
            quotes=quotes or [QUOTES_PLACEHOLDER],
            sentiment="neutral",
            word_count=len(text.split()),
            time_to_read=math.ceil(len(text) / self.settings.chars_per_minute),
        )

    def reply_class(self, thread: ThreadContent) -> str:
        """Pick the canned-reply class from the thread's first usable line."""
        lines = self._lines(thread.text or "")
        meaningful = [line for line in lines if self._is_meaningful(line)]
        first = (meaningful or lines or [""])[0].lower()
        if not first:
            return "default"
        if any(word in first for word in GRATITUDE_WORDS):
            return "gratitude"
        words = first.split()
        if "?" in first or (words and words[0].strip(",.:;!") in QUESTION_OPENERS):
            return "question"
        return "default"

    def derive_reply(self, thread: ThreadContent) -> str:
        """Choose a canned reply matching the tone of the thread."""
        kind = self.reply_class(thread)
        logger.info(f"Using canned reply from class: {kind}")
        return self._rng.choice(REPLY_TEMPLATES[kind])
