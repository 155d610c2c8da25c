from __future__ import annotations

import sys
import time

from .analysis_aggregate import aggregate_commits
from .analysis_charts import build_figure, write_chart_html
from .analysis_project import project_author_distribution, project_monthly
from .analysis_render import format_run_header, render_summary
from .analysis_repo import iter_commits
from .analysis_write import summary_payload, write_json
from .errors import ConsistencyViolation, GitChartError
from .git import open_repo
from .models import CommitRecord, RunConfig


def run_chart(config: RunConfig) -> int:
    started = time.monotonic()

    def say(msg: str) -> None:
        if not config.quiet:
            print(msg)

    if not config.quiet:
        print(format_run_header(config))

    repo = open_repo(config.repo)
    say(f"opened repo {repo}")

    def on_excluded(c: CommitRecord) -> None:
        if config.verbose and not config.quiet:
            print(f"ignoring commit outside of required date: {c.sha}, {c.author_when.isoformat()}")

    # Only the lower bound is handed to git: rebased commits keep their author date but
    # get a newer committer date, so an --until filter would drop them.
    commits = iter_commits(repo, since=config.time_range.start, include_merges=config.include_merges)
    result = aggregate_commits(config.time_range, commits, on_excluded=on_excluded)
    say(f"processed {result.total_commits} commits over {result.months} months")

    monthly = project_monthly(result)
    distribution = project_author_distribution(result, config.threshold)

    if config.verbose and not config.quiet:
        print("")
        print(
            render_summary(
                repo=repo,
                result=result,
                monthly=monthly,
                distribution=distribution,
                threshold=config.threshold,
            )
        )

    fig = build_figure(result, monthly, distribution)
    write_chart_html(config.output, fig)
    say(f"output in {config.output}")

    if config.json_output is not None:
        write_json(
            config.json_output,
            summary_payload(
                repo=repo,
                result=result,
                monthly=monthly,
                distribution=distribution,
                threshold=config.threshold,
            ),
        )
        say(f"summary in {config.json_output}")

    say(f"finished in {time.monotonic() - started:.2f}s")
    return 0


def run_chart_safely(config: RunConfig) -> int:
    try:
        return run_chart(config)
    except ConsistencyViolation as e:
        print(f"error: internal consistency check failed: {e}", file=sys.stderr)
        print("This is a bug in git-chart; no output was written.", file=sys.stderr)
        return 1
    except GitChartError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
