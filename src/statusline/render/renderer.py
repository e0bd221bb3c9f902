"""Compose the single status line."""

from typing import List, Optional

from ..core import DiffResult, Palette, UsageSummary

RESET = "\033[0m"
SEPARATOR = " | "
PLACEHOLDER = "-"
BAR_FILLED = "▰"
BAR_EMPTY = "▱"


class Renderer:
    """
    Format ``branch | +added -removed | model | bar used/budget tokens``.

    Omission policy: the branch segment is dropped when no branch is
    known, the model segment when the name is empty and the usage
    segment when there is no budget. The diff segment is always shown,
    as ``+0 -0`` when nothing changed, so the line is never empty.
    Separators are drawn in the palette's neutral color.
    """

    def __init__(
        self,
        bar_width: int = 5,
        warning_threshold: float = 0.6,
        critical_threshold: float = 0.8,
        color: bool = True
    ):
        self.bar_width = bar_width
        self.warning_threshold = warning_threshold
        self.critical_threshold = critical_threshold
        self.color = color

    def paint(self, color: str, text: str) -> str:
        if not self.color:
            return text
        return f"{color}{text}{RESET}"

    def progress_bar(self, fraction: float) -> str:
        fraction = max(0.0, min(1.0, fraction))
        filled = int(fraction * self.bar_width)
        return BAR_FILLED * filled + BAR_EMPTY * (self.bar_width - filled)

    def usage_color(self, fraction: float, palette: Palette) -> str:
        if fraction >= self.critical_threshold:
            return palette.critical
        if fraction >= self.warning_threshold:
            return palette.warning
        return palette.tokens

    def render(
        self,
        branch: Optional[str],
        diff: DiffResult,
        model: Optional[str],
        usage: Optional[UsageSummary],
        palette: Palette
    ) -> str:
        segments: List[str] = []

        if branch:
            segments.append(self.paint(palette.branch, branch))

        segments.append(
            f"{self.paint(palette.added, f'+{diff.added}')} "
            f"{self.paint(palette.removed, f'-{diff.removed}')}"
        )

        if model:
            segments.append(self.paint(palette.model, model))

        if usage is not None:
            text = (
                f"{self.progress_bar(usage.fraction)}  "
                f"{usage.used_label}/{usage.budget_label} tokens"
            )
            segments.append(self.paint(self.usage_color(usage.fraction, palette), text))

        return self.paint(palette.neutral, SEPARATOR).join(segments)
