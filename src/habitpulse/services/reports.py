"""Chart rendering for completion history and streaks."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Protocol, Sequence

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from .aggregation import CompletionSummary, Granularity, bucket_for_day  # noqa: E402
from .streaks import StreakSummary  # noqa: E402

_LABEL_FORMATS = {
    Granularity.DAY: "%b %d",
    Granularity.WEEK: "Wk %b %d",
    Granularity.MONTH: "%b %Y",
}


class ReportRenderer(Protocol):
    """Protocol describing renderer behavior."""

    def render(self, figure: Figure, *, output_path: Path) -> None:  # pragma: no cover - interface
        ...


def build_completion_chart(
    *,
    summaries: Sequence[CompletionSummary],
    granularity: Granularity | str = Granularity.DAY,
    streaks: Iterable[StreakSummary] | None = None,
    title: str = "Completions",
) -> Figure:
    """Bar chart of completions per bucket, optionally overlaying the streak line.

    Streak points are drawn at the bucket each one falls in, keeping the
    highest streak seen in that bucket.
    """

    granularity = Granularity(granularity)
    fig, ax = plt.subplots(figsize=(10, 5))

    if not summaries:
        ax.text(0.5, 0.5, "No completions yet", ha="center", va="center", fontsize=14, color="#666")
        ax.axis("off")
        return fig

    fmt = _LABEL_FORMATS[granularity]
    labels = [summary.date.strftime(fmt) for summary in summaries]
    counts = [summary.count for summary in summaries]
    positions = list(range(len(summaries)))

    ax.bar(positions, counts, color="#10B981", edgecolor="white", linewidth=1.0, label="Completions")
    ax.set_xticks(positions)
    ax.set_xticklabels(labels, rotation=45, ha="right", fontsize=9)
    ax.set_ylabel("Completions")
    ax.yaxis.get_major_locator().set_params(integer=True)

    if streaks is not None:
        index_by_bucket = {summary.date: idx for idx, summary in enumerate(summaries)}
        best: dict[int, int] = {}
        for item in streaks:
            bucket = bucket_for_day(item.date.date(), granularity)
            idx = index_by_bucket.get(bucket)
            if idx is None:
                continue
            best[idx] = max(best.get(idx, 0), item.streak)
        if best:
            streak_ax = ax.twinx()
            xs = sorted(best)
            streak_ax.plot(xs, [best[x] for x in xs], color="#6366F1", marker="o", label="Streak")
            streak_ax.set_ylabel("Streak")
            streak_ax.yaxis.get_major_locator().set_params(integer=True)

    ax.set_title(title, fontsize=14, fontweight="bold", pad=12)
    plt.tight_layout()
    return fig


def export_completion_png(
    *,
    summaries: Sequence[CompletionSummary],
    output_path: Path,
    granularity: Granularity | str = Granularity.DAY,
    streaks: Iterable[StreakSummary] | None = None,
    title: str = "Completions",
    renderer: ReportRenderer | None = None,
) -> Path:
    """Render the completion chart to PNG and return the path."""

    fig = build_completion_chart(
        summaries=summaries, granularity=granularity, streaks=streaks, title=title
    )
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if renderer is not None:
        renderer.render(fig, output_path=output_path)
    else:
        fig.savefig(output_path, bbox_inches="tight", dpi=120)
    plt.close(fig)
    return output_path


__all__ = ["ReportRenderer", "build_completion_chart", "export_completion_png"]
