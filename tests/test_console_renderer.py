import pytest

from memreport.common import RenderMode, ReportCollection, SnapshotSummary, StatTable
from memreport.console_renderer import (
    print_report_collection,
    print_snapshot_listing,
    render_stat_table,
    render_stat_table_grid,
)


def _table(series: dict[str, list[int]], name: str = "Memory") -> StatTable:
    table = StatTable(name)
    for subject, values in series.items():
        for i, v in enumerate(values):
            table.record(f"snap{i}", subject, v)
    return table


def test_render_value_mode():
    table = _table({"X": [100, 150], "Y": [5]})

    assert render_stat_table(table, "Memory", RenderMode.VALUE) == (
        "\n"
        "Memory,VALUE\n"
        "Name, Min, Max, Sum, Trend, Base[0]\n"
        "X, 150, 150, 50, 0, 150\n"
        "Y, 9223372036854775807, -9223372036854775808, 0, 0\n"
    )


@pytest.mark.parametrize(
    "mode, titles, cells",
    [
        (RenderMode.VALUE, ",Val[1],Val[2]", "20, 50, 40"),
        (RenderMode.DIFF, ",0 -> 1,1 -> 2", "10, 30, -10"),
        (RenderMode.BASELINE, ",0 -> 1,0 -> 2", "10, 40, 30"),
    ],
)
def test_render_modes(mode: RenderMode, titles: str, cells: str):
    table = _table({"Z": [10, 20, 50, 40]})

    assert render_stat_table(table, "Memory", mode) == (
        "\n"
        f"Memory,{mode.name}\n"
        f"Name, Min, Max, Sum, Trend, Base[0]{titles}\n"
        f"Z, 20, 50, 30, 6, {cells}\n"
    )


def test_render_rows_are_jagged():
    table = _table({"Long": [1, 2, 3, 4], "Short": [1, 2]})
    lines = render_stat_table(table, "Memory", RenderMode.DIFF).splitlines()

    assert lines[2] == "Name, Min, Max, Sum, Trend, Base[0],0 -> 1,1 -> 2"
    assert lines[3] == "Long, 2, 4, 3, 0, 1, 1, 1"
    assert lines[4] == "Short, 2, 2, 1, 0, 1"


def test_render_empty_table():
    assert render_stat_table(StatTable("Binned Memory"), "Binned Memory", RenderMode.VALUE) == (
        "\nBinned Memory,VALUE\nName, Min, Max, Sum, Trend, Base[0]\n"
    )


def test_render_grid():
    table = _table({"Physx": [100, 150, 175], "Audio": [7]})
    out = render_stat_table_grid(table, "Memory", RenderMode.VALUE)

    assert "Memory (value)" in out
    assert "Val[1]" in out
    assert "Physx" in out
    assert "175" in out


def test_print_report_collection(capsys):
    collection = ReportCollection()
    collection.record_sample("Memory", "a", "X", 100)
    collection.record_sample("Memory", "b", "X", 150)

    print_report_collection(collection, RenderMode.DIFF)

    assert capsys.readouterr().out == (
        "\n"
        "Memory,DIFF\n"
        "Name, Min, Max, Sum, Trend, Base[0]\n"
        "X, 150, 150, 50, 0, 50\n"
        "\n"
        "\n"
    )


def test_print_empty_collection(capsys):
    print_report_collection(ReportCollection(), RenderMode.VALUE)

    assert capsys.readouterr().out == "\n"


def test_print_snapshot_listing(capsys, tmp_path):
    summaries = [
        SnapshotSummary(path=tmp_path / "a.memreport", snapshot="a", line_count=10, sample_count=4, skipped_count=2),
    ]

    print_snapshot_listing(summaries)
    out = capsys.readouterr().out

    assert "Memreport Snapshots" in out
    assert "a.memreport" in out
    assert "Snapshots: 1" in out
