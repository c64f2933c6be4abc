"""Prompt templates for thread summaries and replies.

Two styles per task:
- detailed: for instruction-following models; spells out the exact output
  layout the response parser looks for.
- compact: for small completion models that only continue text; short,
  with a trailing cue for the model to continue from.
"""
from typing import Dict, Optional, Tuple

from .base import PromptBuilder, SummaryResult, ThreadContent

SUMMARY_CONTENT_LIMIT = 2500
SUMMARY_COMPACT_LIMIT = 500
REPLY_CONTENT_LIMIT = 1500
REPLY_COMPACT_LIMIT = 300

# =============================================================================
# Summary
# =============================================================================

SUMMARY_PROMPT = """You are a content summarization expert. Create a concise, actionable summary of this social media thread.

Rules:
- Provide EXACTLY 3 key points (numbered 1, 2, 3)
- Include EXACTLY 2 notable quotes (labeled as "Quote 1:" and "Quote 2:")
- Keep each key point under 100 characters
- Keep each quote under 80 characters
- Focus on the main discussion, ignore replies/suggestions
- Use clear, simple language
- Format exactly as shown below:

Key Points:
1. [First key point here]
2. [Second key point here]
3. [Third key point here]

Quotes:
Quote 1: [First notable quote here]
Quote 2: [Second notable quote here]

Sentiment: [positive, negative or neutral]

Thread content: {content}"""

SUMMARY_PROMPT_COMPACT = "Summarize social media thread. 3 key points, 2 quotes. Thread: {content}"

# =============================================================================
# Reply
# =============================================================================

REPLY_PROMPT = """Generate a human-like response to this thread that:
- Sounds natural and conversational
- Adds value to the discussion
- Matches the tone of the original content
- Avoids AI-detection patterns
- Is 1-2 sentences maximum (under 120 characters total)

Thread content: {content}

Summary key points: {key_points}

Generate only the response text, nothing else. Keep it concise and natural."""

REPLY_PROMPT_COMPACT = """Social media reply to: {content}.
Key points: {key_points}.
Concise reply:"""


def _excerpt(thread: ThreadContent, limit: int) -> str:
    return (thread.text or "")[:limit]


def _key_points(summary: Optional[SummaryResult]) -> str:
    if summary is None:
        return ""
    return ", ".join(summary.key_points[:2])


def build_summary_prompt(thread: ThreadContent, summary: Optional[SummaryResult] = None) -> str:
    return SUMMARY_PROMPT.format(content=_excerpt(thread, SUMMARY_CONTENT_LIMIT))


def build_summary_prompt_compact(thread: ThreadContent, summary: Optional[SummaryResult] = None) -> str:
    return SUMMARY_PROMPT_COMPACT.format(content=_excerpt(thread, SUMMARY_COMPACT_LIMIT))


def build_reply_prompt(thread: ThreadContent, summary: Optional[SummaryResult] = None) -> str:
    return REPLY_PROMPT.format(
        content=_excerpt(thread, REPLY_CONTENT_LIMIT),
        key_points=_key_points(summary),
    )


def build_reply_prompt_compact(thread: ThreadContent, summary: Optional[SummaryResult] = None) -> str:
    return REPLY_PROMPT_COMPACT.format(
        content=_excerpt(thread, REPLY_COMPACT_LIMIT),
        key_points=_key_points(summary),
    )


PROMPT_BUILDERS: Dict[Tuple[str, str], PromptBuilder] = {
    ("summarize", "detailed"): build_summary_prompt,
    ("summarize", "compact"): build_summary_prompt_compact,
    ("reply", "detailed"): build_reply_prompt,
    ("reply", "compact"): build_reply_prompt_compact,
}


def get_prompt_builder(task: str, style: str) -> PromptBuilder:
    """Look up the builder for a task ("summarize"/"reply") and style.

    Raises:
        KeyError: Unknown task/style combination.
    """
    try:
        return PROMPT_BUILDERS[(task, style)]
    except KeyError:
        raise KeyError(f"No prompt template for task={task!r} style={style!r}")
