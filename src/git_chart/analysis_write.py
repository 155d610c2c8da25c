from __future__ import annotations

import json
from pathlib import Path

from .analysis_periods import month_label
from .analysis_project import top_authors
from .errors import OutputWriteFailure
from .models import AggregateResult, AuthorDistribution, MonthlyPoint


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def write_json(path: Path, data: object) -> None:
    text = json.dumps(data, indent=2, sort_keys=False) + "\n"
    try:
        ensure_dir(path.parent)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise OutputWriteFailure(f"cannot write {path}: {e}") from e


def summary_payload(
    *,
    repo: Path,
    result: AggregateResult,
    monthly: list[MonthlyPoint],
    distribution: AuthorDistribution,
    threshold: int,
) -> dict[str, object]:
    return {
        "repo": str(repo),
        "start": result.time_range.start.isoformat(),
        "end": result.time_range.end.isoformat(),
        "time_frame": result.time_frame,
        "months": result.months,
        "commits_total": result.total_commits,
        "commits_excluded": result.excluded_commits,
        "monthly": [
            {
                "month": p.month.strftime("%Y-%m"),
                "label": month_label(p.month),
                "commits": p.commits,
                "authors": p.authors,
                "commits_by_author": dict(sorted(b.authors.items(), key=lambda kv: (-kv[1], kv[0]))),
            }
            for p, b in zip(monthly, result.buckets)
        ],
        "authors": {
            "threshold": threshold,
            "total_authors": distribution.total_authors,
            "grouped_authors": distribution.grouped_authors,
            "entries": [{"name": name, "commits": n} for name, n in top_authors(distribution)],
        },
    }
