"""Tests for turning model output into summaries and replies."""
import pytest

from relay.ai_provider import Capability, SummaryResult
from relay.ai_provider.parser import (
    COMPLETION_POINTS_PLACEHOLDER,
    COMPLETION_QUOTES_PLACEHOLDER,
    POINTS_PLACEHOLDER,
    QUOTES_PLACEHOLDER,
    REPLY_PLACEHOLDER,
    convert_completion_summary,
    extract_reply,
    parse_summary,
    strip_list_marker,
    summary_from_output,
    truncate_on_word_boundary,
)
from relay.config import ParserSettings

from conftest import WELL_FORMED_SUMMARY


class TestListMarkers:
    """Tests for list marker detection."""

    @pytest.mark.parametrize("line,expected", [
        ("1. First point", "First point"),
        ("2) Second point", "Second point"),
        ("- Dash item", "Dash item"),
        ("• Bullet item", "Bullet item"),
        ("* Star item", "Star item"),
        ("Quote 1: Something said", "Something said"),
        ("Point 3. Something else", "Something else"),
    ])
    def test_marked_lines(self, line, expected):
        assert strip_list_marker(line) == expected

    @pytest.mark.parametrize("line", [
        "Plain prose line",
        "**Bold heading**",
        "1.5 million users joined",
    ])
    def test_unmarked_lines(self, line):
        assert strip_list_marker(line) is None


class TestParseSummary:
    """Tests for parse_summary on instruct-model output."""

    def test_well_formed_sections(self):
        """Three numbered points and two labeled quotes come back verbatim."""
        result = parse_summary(WELL_FORMED_SUMMARY)

        assert result.key_points == [
            "The team shipped the new onboarding flow this week",
            "Activation rates rose by twelve percent after launch",
            "Support tickets about sign-up dropped noticeably",
        ]
        assert result.quotes == [
            "This is the smoothest release we have had",
            "Users finally understand the first screen",
        ]
        assert result.sentiment == "positive"
        assert result.time_to_read == 2
        assert result.word_count == 0

    def test_markdown_headers_and_bullets(self):
        raw = (
            "**Key Points:**\n"
            "- Pricing changes were announced for the enterprise tier\n"
            "- Existing customers keep their current plan for a year\n"
            "**Notable Quotes:**\n"
            "- 'We want to be fair to early adopters'\n"
            "**Sentiment:** Negative\n"
        )
        result = parse_summary(raw)

        assert result.key_points == [
            "Pricing changes were announced for the enterprise tier",
            "Existing customers keep their current plan for a year",
        ]
        assert result.quotes == ["We want to be fair to early adopters"]
        assert result.sentiment == "negative"

    def test_caps_points_and_quotes(self):
        raw = "Key Points:\n" + "\n".join(
            f"{i}. Point number {i} has enough words to count" for i in range(1, 6)
        ) + "\nQuotes:\n" + "\n".join(f"- Quote number {i} from the thread" for i in range(1, 5))
        result = parse_summary(raw)

        assert len(result.key_points) == 3
        assert len(result.quotes) == 2

    def test_unstructured_text_uses_placeholders(self):
        """A single long line with no structure never yields empty lists."""
        result = parse_summary("x" * 300)

        assert result.key_points == [POINTS_PLACEHOLDER]
        assert result.quotes == [QUOTES_PLACEHOLDER]
        assert result.time_to_read == 1

    def test_empty_text_uses_placeholders(self):
        result = parse_summary("")
        assert result.key_points == [POINTS_PLACEHOLDER]
        assert result.quotes == [QUOTES_PLACEHOLDER]
        assert result.sentiment == "neutral"

    def test_fallback_pass_picks_sentence_sized_lines(self):
        raw = (
            "The discussion focused on remote work policies\n"
            "ok\n"
            "Several people argued for a hybrid schedule\n"
            "Managers worried about onboarding new hires\n"
            "A few replies shared productivity numbers\n"
        )
        result = parse_summary(raw)

        assert result.key_points == [
            "The discussion focused on remote work policies",
            "Several people argued for a hybrid schedule",
            "Managers worried about onboarding new hires",
        ]
        assert result.quotes == ["A few replies shared productivity numbers"]

    def test_long_point_truncated_and_idempotent(self):
        """A point over 100 chars is cut to 100; re-parsing keeps it unchanged."""
        long_point = "a" * 150
        first = parse_summary(f"Key Points:\n1. {long_point}")
        truncated = first.key_points[0]
        assert len(truncated) <= 100

        second = parse_summary(f"Key Points:\n1. {truncated}")
        assert second.key_points[0] == truncated

    def test_cut_on_space_is_idempotent(self):
        """When the 100-char cut lands on a space the point carries no trailing blank."""
        long_point = "a" * 99 + " " + "b" * 40
        first = parse_summary(f"Key Points:\n1. {long_point}").key_points[0]
        assert first == "a" * 99

        second = parse_summary(f"Key Points:\n1. {first}").key_points[0]
        assert second == first

    def test_fallback_cut_on_space_trimmed(self):
        line = "c" * 99 + " " + "d" * 40
        result = parse_summary(line)
        assert result.key_points == ["c" * 99]

    def test_quote_cut_on_space_trimmed(self):
        result = parse_summary("Quotes:\nQuote 1: " + "q" * 79 + " " + "r" * 30)
        assert result.quotes == ["q" * 79]

    def test_long_quote_truncated(self):
        result = parse_summary("Quotes:\nQuote 1: " + "q" * 120)
        assert result.quotes == ["q" * 80]

    def test_custom_limits(self):
        limits = ParserSettings(max_points=1, point_max_chars=10)
        result = parse_summary(WELL_FORMED_SUMMARY, limits)
        assert result.key_points == ["The team s"]

    def test_default_reading_time_from_line_count(self):
        raw = "Key Points:\n" + "\n".join(f"- line {i} of a very long answer" for i in range(120))
        assert parse_summary(raw).time_to_read == 121 // 50


class TestCompletionSummary:
    """Tests for converting completion-model continuations."""

    def test_sentences_become_points_and_quote(self):
        raw = (
            "The launch went well for most users. "
            "Activation grew a lot this month. "
            "Support load fell sharply too. Ok."
        )
        result = convert_completion_summary(raw)

        assert result.key_points == [
            "The launch went well for most users",
            "Activation grew a lot this month",
        ]
        assert result.quotes == ["Support load fell sharply too"]
        assert result.word_count == len(raw.split())
        assert result.time_to_read == 1

    def test_short_output_uses_placeholders(self):
        result = convert_completion_summary("Too short.")
        assert result.key_points == [COMPLETION_POINTS_PLACEHOLDER]
        assert result.quotes == [COMPLETION_QUOTES_PLACEHOLDER]

    def test_dispatch_by_capability(self):
        assert summary_from_output(WELL_FORMED_SUMMARY, Capability.INSTRUCT).sentiment == "positive"
        completion = summary_from_output(WELL_FORMED_SUMMARY, Capability.COMPLETION)
        assert isinstance(completion, SummaryResult)
        assert completion.word_count > 0


class TestExtractReply:
    """Tests for reply cleanup."""

    def test_instruct_reply_strips_label_and_quotes(self):
        raw = 'Reply: "Great thread, thanks for   sharing!"'
        assert extract_reply(raw, Capability.INSTRUCT) == "Great thread, thanks for sharing!"

    def test_instruct_reply_keeps_inner_quotes(self):
        raw = 'The "ship it" mindset really shows here.'
        assert extract_reply(raw, Capability.INSTRUCT) == raw

    def test_completion_reply_keeps_first_sentence(self):
        raw = "Nice work on this. Also here is some rambling continuation"
        assert extract_reply(raw, Capability.COMPLETION) == "Nice work on this."

    def test_reply_capped_on_word_boundary(self):
        raw = " ".join(["wonderful"] * 30)
        reply = extract_reply(raw, Capability.INSTRUCT, max_chars=120)

        assert len(reply) <= 120
        assert set(reply.split()) == {"wonderful"}

    def test_zero_cap_disables_truncation(self):
        raw = " ".join(["wonderful"] * 30)
        assert extract_reply(raw, Capability.INSTRUCT, max_chars=0) == raw

    @pytest.mark.parametrize("capability", [Capability.INSTRUCT, Capability.COMPLETION])
    def test_empty_output_falls_back_to_placeholder(self, capability):
        assert extract_reply("   ", capability) == REPLY_PLACEHOLDER

    def test_truncate_short_text_untouched(self):
        assert truncate_on_word_boundary("short text", 120) == "short text"

    def test_truncate_without_spaces(self):
        assert truncate_on_word_boundary("a" * 50, 10) == "a" * 10
