"""Turn free-text model output into structured results.

No I/O and no randomness: the same text always parses to the same result.

Summary layout the parser understands (what the detailed prompt asks for):

    Key Points:
    1. ...
    2. ...
    3. ...

    Quotes:
    Quote 1: ...
    Quote 2: ...

    Sentiment: positive
    Reading time: 2 minutes

Models drift from this layout, so anything list-shaped inside a section is
accepted, and a last-resort pass picks sentence-sized lines when no section
produced anything.
"""
import logging
import math
import re
from typing import List, Optional

from relay.config import ParserSettings

from .base import Capability, Sentiment, SummaryResult

logger = logging.getLogger(__name__)

DEFAULT_LIMITS = ParserSettings()

POINTS_PLACEHOLDER = "Main discussion points"
QUOTES_PLACEHOLDER = "Key statement from thread"
COMPLETION_POINTS_PLACEHOLDER = "Main discussion points from the thread"
COMPLETION_QUOTES_PLACEHOLDER = "Notable statement from the discussion"
REPLY_PLACEHOLDER = "Thanks for sharing!"

COMPLETION_CHARS_PER_MINUTE = 200

LIST_MARKER_RE = re.compile(
    r"^\s*(?:"
    r"(?:quote|point)\s*\d+\s*[:.)-]"  # Quote 1:  Point 2.
    r"|\d+[.)](?!\d)"                  # 1.  2)   but not 1.5
    r"|[-•]"
    r"|\*(?!\*)"                       # * but not **bold**
    r")\s*",
    re.IGNORECASE,
)
DOUBLE_QUOTES_RE = re.compile(r"[\"“”]")
SINGLE_QUOTE_CHARS = "'‘’"
FIRST_INT_RE = re.compile(r"(\d+)")
SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
REPLY_LABEL_RE = re.compile(r"^\s*(?:reply|response)\s*:\s*", re.IGNORECASE)

POINT_HEADERS = ("key points", "main points")
QUOTE_HEADERS = ("quotes", "notable quotes")


def strip_list_marker(line: str) -> Optional[str]:
    """Return the line without its list marker, or None when it has none."""
    match = LIST_MARKER_RE.match(line)
    if not match:
        return None
    return line[match.end():].strip()


def clean_quote(text: str) -> str:
    return DOUBLE_QUOTES_RE.sub("", text).strip().strip(SINGLE_QUOTE_CHARS).strip()


def classify_sentiment(line: str) -> Sentiment:
    lower = line.lower()
    if "positive" in lower:
        return "positive"
    if "negative" in lower:
        return "negative"
    return "neutral"


def parse_summary(raw_text: str, limits: ParserSettings = DEFAULT_LIMITS) -> SummaryResult:
    """Parse a model's summary answer into a SummaryResult.

    Args:
        raw_text: Text returned by the model.
        limits: Caps and line-length window.

    Returns:
        SummaryResult whose key_points and quotes are never empty.
    """
    lines = [line.strip() for line in (raw_text or "").splitlines() if line.strip()]

    key_points: List[str] = []
    quotes: List[str] = []
    sentiment: Sentiment = "neutral"
    reading_time: Optional[int] = None
    section = ""

    def in_window(text: str) -> bool:
        return limits.line_min_chars < len(text) < limits.line_max_chars

    for line in lines:
        item = strip_list_marker(line)

        if item is None:
            lower = line.lower()
            if any(header in lower for header in POINT_HEADERS):
                section = "points"
                continue
            if any(header in lower for header in QUOTE_HEADERS):
                section = "quotes"
                continue
            if "sentiment" in lower:
                sentiment = classify_sentiment(lower)
                continue
            if "reading time" in lower:
                match = FIRST_INT_RE.search(line)
                if match:
                    reading_time = int(match.group(1))
                continue
            # Unmarked prose counts only when it is sentence-sized
            if not in_window(line):
                continue
            item = line

        if not item:
            continue

        if section == "points" and len(key_points) < limits.max_points:
            key_points.append(item[:limits.point_max_chars].rstrip())
        elif section == "quotes" and len(quotes) < limits.max_quotes:
            quote = clean_quote(item)
            if quote:
                quotes.append(quote[:limits.quote_max_chars].rstrip())

    if not key_points and not quotes:
        logger.debug("No summary sections recognised, using line-length fallback")
        for line in lines:
            candidate = strip_list_marker(line) or line
            if not in_window(line):
                continue
            if len(key_points) < limits.max_points:
                key_points.append(candidate[:limits.point_max_chars].rstrip())
            elif len(quotes) < limits.max_quotes:
                quotes.append(candidate[:limits.quote_max_chars].rstrip())
            else:
                break

    return SummaryResult(
        key_points=key_points or [POINTS_PLACEHOLDER],
        quotes=quotes or [QUOTES_PLACEHOLDER],
        sentiment=sentiment,
        word_count=0,
        time_to_read=reading_time or max(1, len(lines) // 50),
    )


def convert_completion_summary(raw_text: str, limits: ParserSettings = DEFAULT_LIMITS) -> SummaryResult:
    """Build a summary from a completion model's loosely shaped continuation.

    Completion models ignore the layout instructions, so sentences are taken
    in order: the first two become key points and the third a quote.
    """
    text = (raw_text or "").strip()
    sentences = [s.strip() for s in SENTENCE_SPLIT_RE.split(text) if len(s.strip()) > 10]

    key_points: List[str] = []
    quotes: List[str] = []
    for index, sentence in enumerate(sentences[:3]):
        if index < 2:
            key_points.append(sentence[:limits.point_max_chars].rstrip())
        elif len(quotes) < limits.max_quotes:
            quotes.append(sentence[:limits.quote_max_chars].rstrip())

    return SummaryResult(
        key_points=key_points or [COMPLETION_POINTS_PLACEHOLDER],
        quotes=quotes or [COMPLETION_QUOTES_PLACEHOLDER],
        sentiment="neutral",
        word_count=len(text.split()),
        time_to_read=math.ceil(len(text) / COMPLETION_CHARS_PER_MINUTE),
    )


def summary_from_output(raw_text: str, capability: Capability, limits: ParserSettings = DEFAULT_LIMITS) -> SummaryResult:
    """Dispatch to the parser matching how the model treats prompts."""
    if capability == Capability.COMPLETION:
        return convert_completion_summary(raw_text, limits)
    return parse_summary(raw_text, limits)


def truncate_on_word_boundary(text: str, max_chars: int) -> str:
    """Cut ``text`` to at most ``max_chars``, backing off to the last space."""
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    cut = text[:max_chars]
    if " " in cut:
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip(" ,;:-")


def extract_reply(raw_text: str, capability: Capability, max_chars: int = 0) -> str:
    """Clean up a generated reply.

    Instruct output is trimmed of labels and wrapping quotes; completion
    output keeps only its first sentence. Both are then held to
    ``max_chars`` (0 disables the cap).
    """
    text = (raw_text or "").strip()

    if capability == Capability.COMPLETION:
        first = SENTENCE_SPLIT_RE.split(text)[0].strip()
        if first:
            reply = first + "."
        else:
            reply = next((line.strip() for line in text.splitlines() if line.strip()), "")
    else:
        reply = REPLY_LABEL_RE.sub("", text)
        reply = " ".join(reply.split()).strip("\"“”" + SINGLE_QUOTE_CHARS).strip()

    reply = truncate_on_word_boundary(reply, max_chars)
    return reply or REPLY_PLACEHOLDER
