import logging
from typing import Any

from tabulate import tabulate

from memreport.common import (
    RenderMode,
    ReportCollection,
    SeriesHistory,
    SnapshotSummary,
    StatTable,
)
from memreport.growth import GROWTH_METHODS, GrowthResult, Verdict

logger = logging.getLogger(__name__)

OUTPUT_FORMATS: list[str] = ["csv", "grid"]

_COL_LABELS: list[str] = ["Name", "Min", "Max", "Sum", "Trend", "Base[0]"]


def _history_columns(history: SeriesHistory, mode: RenderMode) -> list[int]:
    match mode:
        case RenderMode.DIFF:
            return history.diffs
        case RenderMode.BASELINE:
            return history.baseline
        case _:
            return [e.value for e in history.entries]


def _column_title(index: int, mode: RenderMode) -> str:
    match mode:
        case RenderMode.DIFF:
            return f"{index - 1} -> {index}"
        case RenderMode.BASELINE:
            return f"0 -> {index}"
        case _:
            return f"Val[{index}]"


def _build_rows(table: StatTable, mode: RenderMode) -> tuple[list[list[Any]], int]:
    rows: list[list[Any]] = []
    column_count = 0
    for series in table:
        history = series.history()
        columns = _history_columns(history, mode)
        column_count = max(column_count, len(columns))
        rows.append([series.name, history.min, history.max, history.sum, history.trend, *columns])
    return rows, column_count


def _build_header(column_count: int, mode: RenderMode) -> list[str]:
    return _COL_LABELS + [_column_title(i, mode) for i in range(1, column_count)]


def render_stat_table(table: StatTable, header: str, mode: RenderMode) -> str:
    """
    Renders one category as comma separated rows for spreadsheet import.

    Rows are not padded: a subject with a shorter history simply produces
    a shorter row. Column titles cover the longest history in the table.
    """
    rows, column_count = _build_rows(table, mode)

    out: list[str] = [
        "",
        f"{header},{mode.name}",
        ", ".join(_COL_LABELS) + "".join(f",{_column_title(i, mode)}" for i in range(1, column_count)),
    ]
    out.extend(", ".join(str(cell) for cell in row) for row in rows)
    return "\n".join(out) + "\n"


def render_stat_table_grid(table: StatTable, header: str, mode: RenderMode) -> str:
    rows, column_count = _build_rows(table, mode)
    grid = tabulate(
        tabular_data=rows,
        headers=_build_header(column_count, mode),
        tablefmt="rounded_outline",
        disable_numparse=True,
    )

    title = f"{header} ({mode.name.lower()})"
    width = max(len(line) for line in grid.split("\n"))
    return "\n".join(["", title.center(width), grid]) + "\n"


def print_report_collection(
    collection: ReportCollection,
    mode: RenderMode,
    output_format: str = "csv",
) -> None:
    if len(collection) == 0:
        logger.warning("no statistics found in the memreports")

    render = render_stat_table_grid if output_format == "grid" else render_stat_table
    for table in collection:
        print(render(table, table.name, mode))
    print()


def print_snapshot_listing(summaries: list[SnapshotSummary]) -> None:
    title: str = "Memreport Snapshots"
    rows = [
        [i, s.snapshot, str(s.path), s.line_count, s.sample_count, s.skipped_count]
        for i, s in enumerate(summaries)
    ]

    table = tabulate(
        tabular_data=rows,
        headers=["Index", "Snapshot", "File", "Lines", "Samples", "Skipped"],
        tablefmt="rounded_outline",
    )

    width = max(len(line) for line in table.split('\n'))
    print(title.center(width))
    print(table)
    print(f"Snapshots: {len(summaries)}")
    print()


def print_growth_summary(results: list[GrowthResult], method: str) -> None:
    def format_verdict(verdict: Verdict) -> str:
        return {
            Verdict.NOT_SIGNIFICANT: "~",
            Verdict.GROWTH: "growth",
            Verdict.SHRINK: "shrink",
        }.get(verdict, "-")

    config = GROWTH_METHODS[method]
    header = [
        "Category",
        "Subject",
        "Snapshots",
        "First",
        "Last",
        "Trend",
        config["state"],
        "Verdict",
    ]

    rows: list[list[Any]] = []
    for r in results:
        values = r.series.values
        rows.append(
            [
                r.category,
                r.subject,
                r.series.count,
                values[0],
                values[-1],
                r.series.history().trend,
                f"{r.result:.3f}",
                format_verdict(r.verdict),
            ]
        )

    table = tabulate(
        tabular_data=rows,
        headers=header,
        tablefmt="rounded_outline",
    )

    title = f"Growth Analysis ({config['header']})"
    width = max(len(line) for line in table.split('\n'))

    growing = [
        f"{r.category}:{r.subject}"
        for r in results
        if r.verdict == Verdict.GROWTH
    ]
    print("\n".join([title.center(width), table, f"Growing ({len(growing)}): {growing}"]))
    print()
