"""Token usage against the context window budget."""

import logging
from typing import Optional

from ..core import Resolved, SessionContext, UsageSummary

logger = logging.getLogger(__name__)


def format_tokens(count: int) -> str:
    """Format tokens: 950, 79k, 1.5M, 12M."""
    count = max(0, int(count))
    if count >= 10_000_000:
        return f"{count // 1_000_000}M"
    if count >= 1_000_000:
        millions = f"{count / 1_000_000:.1f}".rstrip("0").rstrip(".")
        return f"{millions}M"
    if count >= 1000:
        return f"{count // 1000}k"
    return str(count)


def usage_fraction(used: int, budget: int) -> float:
    """``used / budget`` clamped to [0, 1]; a zero budget gives 0."""
    if budget <= 0:
        return 0.0
    return max(0.0, min(1.0, used / budget))


class UsageAggregator:
    """Read token counts from the session context."""

    def summarize(self, used: int, budget: int) -> UsageSummary:
        used = max(0, int(used))
        budget = max(0, int(budget))
        return UsageSummary(
            used=used,
            budget=budget,
            fraction=usage_fraction(used, budget),
            used_label=format_tokens(used),
            budget_label=format_tokens(budget),
        )

    def aggregate(self, context: SessionContext) -> Resolved[Optional[UsageSummary]]:
        """
        Build the usage summary, or None when the context has no budget.

        Tokens in the window are the prompt side of the last request:
        input plus cache creation plus cache read.
        """
        window = context.context_window
        if window is None or not window.context_window_size:
            return Resolved.fallback(None, "no context window budget in session context")

        usage = window.current_usage
        used = 0
        if usage is not None:
            used = (
                (usage.input_tokens or 0)
                + (usage.cache_creation_input_tokens or 0)
                + (usage.cache_read_input_tokens or 0)
            )

        summary = self.summarize(used, window.context_window_size)
        logger.debug(f"Usage {summary.used}/{summary.budget} ({summary.percent:.1f}%)")
        return Resolved.ok(summary)
