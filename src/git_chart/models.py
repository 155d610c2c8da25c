from __future__ import annotations

import dataclasses
import datetime as dt
from pathlib import Path

TIME_FRAME_FORMAT = "%Y%m%d %H:%M:%S"


@dataclasses.dataclass(frozen=True)
class TimeRange:
    start: dt.datetime  # first instant of the start month
    end: dt.datetime  # last whole second of the end month (inclusive, one-second resolution)

    @property
    def time_frame(self) -> str:
        return f"from {self.start.strftime(TIME_FRAME_FORMAT)} to {self.end.strftime(TIME_FRAME_FORMAT)}"


@dataclasses.dataclass(frozen=True)
class CommitRecord:
    sha: str
    author_name: str
    author_when: dt.datetime


@dataclasses.dataclass
class MonthlyAggregate:
    month: dt.date
    commits: int = 0
    authors: dict[str, int] = dataclasses.field(default_factory=dict)

    def add(self, author_name: str) -> None:
        self.commits += 1
        self.authors[author_name] = self.authors.get(author_name, 0) + 1


@dataclasses.dataclass(frozen=True)
class AggregateResult:
    time_range: TimeRange
    buckets: tuple[MonthlyAggregate, ...]
    total_commits: int
    excluded_commits: int = 0

    @property
    def time_frame(self) -> str:
        return self.time_range.time_frame

    @property
    def months(self) -> int:
        return len(self.buckets)


@dataclasses.dataclass(frozen=True)
class MonthlyPoint:
    month: dt.date
    commits: int
    authors: int


@dataclasses.dataclass(frozen=True)
class AuthorDistribution:
    authors: dict[str, int]  # individual entries, author -> commits
    others: int  # commits folded into the grouped entry
    total_authors: int
    grouped_authors: int
    others_label: str = "others"

    @property
    def entries(self) -> list[tuple[str, int]]:
        out = list(self.authors.items())
        if self.grouped_authors > 0:
            out.append((self.others_label, self.others))
        return out

    @property
    def total_commits(self) -> int:
        return sum(self.authors.values()) + self.others


@dataclasses.dataclass(frozen=True)
class RunConfig:
    repo: Path
    time_range: TimeRange
    threshold: int = 3
    output: Path = Path("output.html")
    json_output: Path | None = None
    include_merges: bool = True
    verbose: bool = False
    quiet: bool = False
