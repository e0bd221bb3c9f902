"""Processors deriving statusline values from the session."""

from .transcript_diff import TranscriptDiffExtractor, line_delta
from .session_diff import SessionDiffCalculator
from .usage import UsageAggregator, format_tokens, usage_fraction

__all__ = [
    "TranscriptDiffExtractor",
    "line_delta",
    "SessionDiffCalculator",
    "UsageAggregator",
    "format_tokens",
    "usage_fraction"
]
