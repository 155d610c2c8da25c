from __future__ import annotations

import datetime as dt
from collections.abc import Iterator

import pytest

from git_chart.analysis_aggregate import aggregate_commits, check_consistency, merge_author_counts
from git_chart.analysis_periods import resolve_time_range
from git_chart.errors import ConsistencyViolation, SourceReadFailure
from git_chart.models import AggregateResult, CommitRecord, MonthlyAggregate

UTC = dt.timezone.utc


def _c(author: str, when: dt.datetime, sha: str = "") -> CommitRecord:
    return CommitRecord(sha=sha or f"{author}-{when.isoformat()}", author_name=author, author_when=when)


def test_empty_source_gives_empty_buckets() -> None:
    r = resolve_time_range("202001", "202003")
    res = aggregate_commits(r, [])
    assert res.months == 3
    assert res.total_commits == 0
    assert [b.month for b in res.buckets] == [dt.date(2020, 1, 1), dt.date(2020, 2, 1), dt.date(2020, 3, 1)]
    for b in res.buckets:
        assert b.commits == 0
        assert b.authors == {}


def test_commits_in_second_slot() -> None:
    r = resolve_time_range("202001", "202003")
    feb = dt.datetime(2020, 2, 10, 12, 0, tzinfo=UTC)
    commits = [_c("a", feb, "1"), _c("b", feb, "2"), _c("a", feb, "3"), _c("a", feb, "4")]
    res = aggregate_commits(r, commits)
    assert res.buckets[1].commits == 4
    assert res.buckets[1].authors == {"a": 3, "b": 1}
    assert res.buckets[0].commits == 0
    assert res.buckets[2].commits == 0
    assert res.total_commits == 4


def test_commit_one_day_before_start_is_excluded() -> None:
    r = resolve_time_range("202001", "202003")
    seen: list[str] = []
    commits = [
        _c("a", dt.datetime(2020, 1, 5, tzinfo=UTC), "in"),
        _c("early", r.start - dt.timedelta(days=1), "early"),
    ]
    res = aggregate_commits(r, commits, on_excluded=lambda c: seen.append(c.sha))
    assert res.total_commits == 1
    assert res.excluded_commits == 1
    assert seen == ["early"]
    assert all("early" not in b.authors for b in res.buckets)


def test_out_of_range_commits_never_count_regardless_of_position() -> None:
    r = resolve_time_range("202001", "202002")
    inside = [_c("a", dt.datetime(2020, 1, 15, tzinfo=UTC)), _c("b", dt.datetime(2020, 2, 15, tzinfo=UTC))]
    outside = [
        _c("x", dt.datetime(2019, 12, 31, 23, 59, 59, tzinfo=UTC)),
        _c("y", dt.datetime(2020, 3, 1, 0, 0, 0, tzinfo=UTC)),
        _c("z", dt.datetime(2031, 7, 4, tzinfo=UTC)),
    ]
    baseline = aggregate_commits(r, inside)
    for mixed in (outside + inside, inside + outside, [inside[0], outside[1], inside[1], outside[0], outside[2]]):
        res = aggregate_commits(r, mixed)
        assert res.total_commits == baseline.total_commits == 2
        assert [b.authors for b in res.buckets] == [b.authors for b in baseline.buckets]
        assert res.excluded_commits == 3


def test_range_boundaries_are_inclusive() -> None:
    r = resolve_time_range("202001", "202002")
    res = aggregate_commits(r, [_c("first", r.start), _c("last", r.end)])
    assert res.buckets[0].authors == {"first": 1}
    assert res.buckets[1].authors == {"last": 1}


def test_sub_second_instant_in_last_second_is_inside() -> None:
    r = resolve_time_range("202001", "202002")
    last = dt.datetime(2020, 2, 29, 23, 59, 59, 500_000, tzinfo=UTC)
    res = aggregate_commits(r, [_c("late", last), _c("next", r.end + dt.timedelta(seconds=1))])
    assert res.buckets[1].authors == {"late": 1}
    assert res.total_commits == 1
    assert res.excluded_commits == 1


def test_delivery_order_does_not_matter() -> None:
    r = resolve_time_range("201910", "202001")
    commits = [
        _c("a", dt.datetime(2019, 10, 3, tzinfo=UTC)),
        _c("b", dt.datetime(2020, 1, 20, tzinfo=UTC)),
        _c("a", dt.datetime(2019, 12, 24, tzinfo=UTC)),
        _c("c", dt.datetime(2019, 11, 11, tzinfo=UTC)),
    ]
    fwd = aggregate_commits(r, commits)
    rev = aggregate_commits(r, list(reversed(commits)))
    assert [(b.commits, b.authors) for b in fwd.buckets] == [(b.commits, b.authors) for b in rev.buckets]
    assert [b.commits for b in fwd.buckets] == [1, 1, 1, 1]


def test_timestamps_are_compared_as_instants() -> None:
    r = resolve_time_range("202002", "202002")
    plus2 = dt.timezone(dt.timedelta(hours=2))
    # 00:30 on Feb 1 at +02:00 is still January in UTC.
    res = aggregate_commits(r, [_c("a", dt.datetime(2020, 2, 1, 0, 30, tzinfo=plus2))])
    assert res.total_commits == 0
    assert res.excluded_commits == 1


def test_naive_timestamps_are_treated_as_utc() -> None:
    r = resolve_time_range("202002", "202002")
    res = aggregate_commits(r, [_c("a", dt.datetime(2020, 2, 1, 0, 0, 0))])
    assert res.total_commits == 1


def test_totals_match_bucket_and_author_sums() -> None:
    r = resolve_time_range("202101", "202112")
    commits = []
    for i in range(200):
        when = dt.datetime(2020, 12, 1, tzinfo=UTC) + dt.timedelta(days=2 * i)
        commits.append(_c(f"author{i % 7}", when))
    res = aggregate_commits(r, commits)
    assert res.total_commits == sum(b.commits for b in res.buckets)
    assert res.total_commits == sum(sum(b.authors.values()) for b in res.buckets)
    assert res.total_commits + res.excluded_commits == 200


def test_source_failure_is_wrapped_and_no_result_is_returned() -> None:
    r = resolve_time_range("202001", "202003")

    def source() -> Iterator[CommitRecord]:
        yield _c("a", dt.datetime(2020, 1, 2, tzinfo=UTC))
        raise OSError("disk went away")

    with pytest.raises(SourceReadFailure) as ei:
        aggregate_commits(r, source())
    assert "after 1 commits" in str(ei.value)
    assert isinstance(ei.value.__cause__, OSError)


def test_source_read_failure_passes_through_unchanged() -> None:
    r = resolve_time_range("202001", "202003")
    original = SourceReadFailure("git log exited 128")

    def source() -> Iterator[CommitRecord]:
        raise original
        yield  # pragma: no cover

    with pytest.raises(SourceReadFailure) as ei:
        aggregate_commits(r, source())
    assert ei.value is original


def test_check_consistency_detects_mismatch() -> None:
    r = resolve_time_range("202001", "202001")
    bad_bucket = MonthlyAggregate(month=dt.date(2020, 1, 1), commits=2, authors={"a": 1})
    with pytest.raises(ConsistencyViolation):
        check_consistency(AggregateResult(time_range=r, buckets=(bad_bucket,), total_commits=2))

    good_bucket = MonthlyAggregate(month=dt.date(2020, 1, 1), commits=1, authors={"a": 1})
    with pytest.raises(ConsistencyViolation):
        check_consistency(AggregateResult(time_range=r, buckets=(good_bucket,), total_commits=5))


def test_merge_author_counts() -> None:
    buckets = [
        MonthlyAggregate(month=dt.date(2020, 1, 1), commits=3, authors={"a": 2, "b": 1}),
        MonthlyAggregate(month=dt.date(2020, 2, 1), commits=0),
        MonthlyAggregate(month=dt.date(2020, 3, 1), commits=4, authors={"a": 1, "c": 3}),
    ]
    assert merge_author_counts(buckets) == {"a": 3, "b": 1, "c": 3}
