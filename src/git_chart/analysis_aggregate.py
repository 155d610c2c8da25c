from __future__ import annotations

import datetime as dt
from collections import defaultdict
from collections.abc import Callable, Iterable

from .analysis_periods import ONE_SECOND, UTC, bucket_month, bucket_slot, months_spanned
from .errors import ConsistencyViolation, SourceReadFailure
from .models import AggregateResult, CommitRecord, MonthlyAggregate, TimeRange


def _as_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def empty_buckets(time_range: TimeRange) -> list[MonthlyAggregate]:
    return [MonthlyAggregate(month=bucket_month(time_range, i)) for i in range(months_spanned(time_range))]


def aggregate_commits(
    time_range: TimeRange,
    commits: Iterable[CommitRecord],
    *,
    on_excluded: Callable[[CommitRecord], None] | None = None,
) -> AggregateResult:
    """Place every commit of `commits` into its calendar-month bucket in a single pass.

    Commits outside `time_range` are skipped and counted in `excluded_commits`; they are
    not errors, since the source may deliver a wider history than requested. Delivery
    order does not matter.

    Any exception raised by the source while producing the next record is re-raised as
    `SourceReadFailure`, and nothing is returned for the partial pass.
    """
    buckets = empty_buckets(time_range)
    months = len(buckets)
    # `end` has whole-second resolution; sub-second instants of its last second are inside.
    after_end = time_range.end + ONE_SECOND
    excluded = 0
    seen = 0

    it = iter(commits)
    while True:
        try:
            commit = next(it)
        except StopIteration:
            break
        except SourceReadFailure:
            raise
        except Exception as e:
            raise SourceReadFailure(f"reading commits failed after {seen} commits: {e}") from e
        seen += 1

        when = _as_utc(commit.author_when)
        slot = 0
        if time_range.start <= when < after_end:
            slot = bucket_slot(time_range.start, when)
        if slot < 1 or slot > months:
            excluded += 1
            if on_excluded is not None:
                on_excluded(commit)
            continue

        buckets[slot - 1].add(commit.author_name)

    result = AggregateResult(
        time_range=time_range,
        buckets=tuple(buckets),
        total_commits=sum(b.commits for b in buckets),
        excluded_commits=excluded,
    )
    check_consistency(result)
    return result


def check_consistency(result: AggregateResult) -> None:
    bucket_total = 0
    author_total = 0
    for i, b in enumerate(result.buckets):
        per_author = sum(b.authors.values())
        if per_author != b.commits:
            raise ConsistencyViolation(
                f"bucket {i} ({b.month.isoformat()}): {b.commits} commits but {per_author} attributed to authors"
            )
        bucket_total += b.commits
        author_total += per_author
    if bucket_total != result.total_commits or author_total != result.total_commits:
        raise ConsistencyViolation(
            f"total_commits={result.total_commits} but buckets sum to {bucket_total} and authors to {author_total}"
        )


def merge_author_counts(buckets: Iterable[MonthlyAggregate]) -> dict[str, int]:
    agg: dict[str, int] = defaultdict(int)
    for b in buckets:
        for author, n in b.authors.items():
            agg[author] += int(n)
    return dict(agg)
