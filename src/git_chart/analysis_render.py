from __future__ import annotations

from pathlib import Path

from .analysis_periods import month_label
from .analysis_project import top_authors
from .models import AggregateResult, AuthorDistribution, MonthlyPoint, RunConfig

BANNER = r"""
+------------------------------------------------------------------------+
|                               git-chart                                |
+------------------------------------------------------------------------+
""".strip("\n")


def fmt_int(n: int) -> str:
    return f"{int(n):,}"


def trunc(s: str, max_len: int) -> str:
    if len(s) <= max_len:
        return s
    if max_len <= 1:
        return s[:max_len]
    return s[: max_len - 1] + "…"


def bar(value: int, max_value: int, width: int = 22) -> str:
    if max_value <= 0:
        filled = 0
    else:
        filled = int(round((value / max_value) * width))
    filled = max(0, min(width, filled))
    return "[" + ("#" * filled) + ("-" * (width - filled)) + "]"


def format_run_header(config: RunConfig) -> str:
    r = config.time_range
    lines = [
        BANNER,
        "",
        f"- Repository: {config.repo}",
        f"- Range: {r.time_frame}",
        f"- Grouping threshold: {config.threshold}" + (" (disabled)" if config.threshold <= 0 else ""),
        f"- Merges: {'on' if config.include_merges else 'off'}",
        f"- Output: {config.output}" + (f" (+ {config.json_output})" if config.json_output else ""),
        "",
    ]
    return "\n".join(lines)


def render_monthly(result: AggregateResult, monthly: list[MonthlyPoint]) -> str:
    lines: list[str] = []
    lines.append(f"Commits per month ({result.time_frame})")
    lines.append("-" * 72)
    max_commits = max((p.commits for p in monthly), default=0)
    for i, p in enumerate(monthly):
        lines.append(
            f"{i:>3}: {month_label(p.month):6} {fmt_int(p.commits):>8} commits  "
            f"{fmt_int(p.authors):>4} authors  {bar(p.commits, max_commits)}"
        )
    if not monthly:
        lines.append("(no months in range)")
    return "\n".join(lines) + "\n"


def render_authors(distribution: AuthorDistribution, threshold: int, top_n: int = 25) -> str:
    lines: list[str] = []
    lines.append(
        f"Commits per author ({fmt_int(distribution.total_authors)} authors, "
        f"{fmt_int(distribution.grouped_authors)} below {threshold} grouped)"
    )
    lines.append("-" * 72)
    items = top_authors(distribution)
    max_commits = items[0][1] if items else 0
    for name, n in items[:top_n]:
        lines.append(f"{trunc(name, 28):28} {fmt_int(n):>8}  {bar(n, max_commits)}")
    if len(items) > top_n:
        lines.append(f"... and {len(items) - top_n} more")
    if not items:
        lines.append("(no commits in range)")
    return "\n".join(lines) + "\n"


def render_summary(
    *,
    repo: Path,
    result: AggregateResult,
    monthly: list[MonthlyPoint],
    distribution: AuthorDistribution,
    threshold: int,
) -> str:
    lines = [
        f"Repository: {repo}",
        f"Commits: {fmt_int(result.total_commits)} over {result.months} months "
        f"({fmt_int(result.excluded_commits)} outside the range ignored)",
        "",
        render_monthly(result, monthly),
        render_authors(distribution, threshold),
    ]
    return "\n".join(lines)
