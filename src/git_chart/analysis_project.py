from __future__ import annotations

from .analysis_aggregate import merge_author_counts
from .errors import ConsistencyViolation
from .models import AggregateResult, AuthorDistribution, MonthlyPoint

DEFAULT_THRESHOLD = 3
OTHERS_LABEL = "others"


def project_monthly(result: AggregateResult) -> list[MonthlyPoint]:
    return [
        MonthlyPoint(
            month=b.month,
            commits=b.commits,
            authors=sum(1 for n in b.authors.values() if n > 0),
        )
        for b in result.buckets
    ]


def project_author_distribution(result: AggregateResult, threshold: int = DEFAULT_THRESHOLD) -> AuthorDistribution:
    """Per-author commit totals over the whole range, small contributors folded together.

    Authors with a total strictly below `threshold` are moved into a single `others`
    entry. A threshold of 0 or less disables grouping.
    """
    totals = merge_author_counts(result.buckets)

    individual: dict[str, int] = {}
    others = 0
    grouped = 0
    for author, n in totals.items():
        if threshold > 0 and n < threshold:
            others += n
            grouped += 1
            continue
        individual[author] = n

    dist = AuthorDistribution(
        authors=individual,
        others=others,
        total_authors=len(totals),
        grouped_authors=grouped,
        others_label=OTHERS_LABEL,
    )
    if dist.total_commits != result.total_commits:
        raise ConsistencyViolation(
            f"author distribution sums to {dist.total_commits} but {result.total_commits} commits were bucketed"
        )
    return dist


def top_authors(dist: AuthorDistribution, n: int = 0) -> list[tuple[str, int]]:
    """Entries ordered by commits descending, then label; `n` > 0 keeps only the first n."""
    items = sorted(dist.entries, key=lambda kv: (-kv[1], kv[0]))
    if n > 0:
        return items[:n]
    return items
