from __future__ import annotations

from pathlib import Path

import plotly.graph_objects as go
from plotly.subplots import make_subplots

from .analysis_periods import month_labels
from .analysis_project import top_authors
from .errors import OutputWriteFailure
from .models import AggregateResult, AuthorDistribution, MonthlyPoint


def bar_title(result: AggregateResult) -> str:
    return f"Git commits per month ({result.total_commits} in total) ({result.time_frame})"


def pie_title(result: AggregateResult) -> str:
    return f"Commits per author ({result.total_commits} in total) ({result.time_frame})"


def build_figure(
    result: AggregateResult,
    monthly: list[MonthlyPoint],
    distribution: AuthorDistribution,
) -> go.Figure:
    """Bar chart of commits and active authors per month above a pie of commits per author."""
    labels = month_labels(result.time_range)
    pie_items = top_authors(distribution)

    fig = make_subplots(
        rows=2,
        cols=1,
        specs=[[{"type": "xy"}], [{"type": "domain"}]],
        subplot_titles=(bar_title(result), pie_title(result)),
        vertical_spacing=0.12,
    )
    fig.add_trace(
        go.Bar(x=labels, y=[p.commits for p in monthly], name="Commits", marker_color="#2E8B57"),
        row=1,
        col=1,
    )
    fig.add_trace(
        go.Bar(x=labels, y=[p.authors for p in monthly], name="Authors", marker_color="#4682B4"),
        row=1,
        col=1,
    )
    fig.add_trace(
        go.Pie(
            labels=[name for name, _ in pie_items],
            values=[n for _, n in pie_items],
            name="Authors",
            sort=False,
            textinfo="label+percent",
        ),
        row=2,
        col=1,
    )
    fig.update_layout(
        barmode="group",
        height=1000,
        template="plotly_white",
        legend=dict(orientation="h"),
    )
    fig.update_xaxes(title_text="Month", type="category", row=1, col=1)
    fig.update_yaxes(title_text="Count", row=1, col=1)
    return fig


def write_chart_html(path: Path, fig: go.Figure) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.write_html(str(path), include_plotlyjs="cdn", full_html=True)
    except OSError as e:
        raise OutputWriteFailure(f"cannot write {path}: {e}") from e
