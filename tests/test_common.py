import pytest

from memreport.common import (
    INT64_MAX,
    INT64_MIN,
    RenderMode,
    ReportCollection,
    Sample,
    SeriesAccumulator,
    StatTable,
    compute_history,
)


def _samples(values: list[int]) -> list[Sample]:
    return [Sample(f"snap{i}", v) for i, v in enumerate(values)]


def test_sample_is_immutable():
    sample = Sample("a", 100)

    with pytest.raises(AttributeError):
        sample.value = 5  # type: ignore[misc]


def test_history_empty_for_single_sample():
    history = compute_history(_samples([100]))

    assert history.entries == []
    assert history.diffs == []
    assert history.baseline == []
    assert history.min == INT64_MAX
    assert history.max == INT64_MIN
    assert history.sum == 0
    assert history.trend == 0
    assert history.is_empty()


def test_history_empty_for_no_samples():
    history = compute_history([])

    assert history.is_empty()
    assert history.sum == 0
    assert history.trend == 0


def test_history_skips_seed_entry():
    samples = _samples([100, 150, 130, 200])
    history = compute_history(samples)

    assert history.entries == samples[1:]
    assert history.diffs == [50, -20, 70]
    assert history.baseline == [50, 30, 100]
    assert history.min == 130
    assert history.max == 200


@pytest.mark.parametrize(
    "values",
    [
        [100, 150],
        [5, 1, 9, 3],
        [0, -10, 20, 20, 7],
        [2**40, 2**41, 2**33],
    ],
)
def test_history_sum_telescopes(values: list[int]):
    history = compute_history(_samples(values))

    assert history.sum == values[-1] - values[0]
    assert sum(history.diffs) == history.sum
    for entry, offset in zip(history.entries, history.baseline):
        assert offset == entry.value - values[0]


def test_history_trend_uses_visible_entries():
    # entries are 10, 20, 40 -> (40 - 10) / 3
    history = compute_history(_samples([0, 10, 20, 40]))

    assert history.trend == 10


def test_history_trend_truncates_toward_zero():
    # entries are 10, 3 -> (3 - 10) / 2 = -3.5
    history = compute_history(_samples([0, 10, 3]))

    assert history.trend == -3


def test_history_trend_zero_with_one_entry():
    history = compute_history(_samples([100, 150]))

    assert len(history.entries) == 1
    assert history.trend == 0
    assert history.min == 150
    assert history.max == 150
    assert history.sum == 50


def test_series_accumulator_appends_in_order():
    series = SeriesAccumulator("Physx")
    series.add("a", 100)
    series.add("b", 150)
    series.add("b", 175)

    assert series.name == "Physx"
    assert series.count == 3
    assert series.values == [100, 150, 175]
    assert series.samples == (Sample("a", 100), Sample("b", 150), Sample("b", 175))
    assert series.history().diffs == [50, 25]


def test_stat_table_get_or_create():
    table = StatTable("Memory")
    table.record("a", "Physx", 100)
    table.record("a", "Audio", 10)
    table.record("b", "Physx", 120)

    assert table.subjects == ["Physx", "Audio"]
    assert len(table) == 2
    assert "Physx" in table
    assert "Missing" not in table
    assert table["Physx"].values == [100, 120]
    assert table.series("Physx") is table["Physx"]
    assert [s.name for s in table] == ["Physx", "Audio"]


def test_report_collection_keeps_discovery_order():
    collection = ReportCollection()
    collection.record_sample("RHI Memory", "a", "Textures", 5)
    collection.record_sample("Memory", "a", "Physx", 100)
    collection.record_sample("RHI Memory", "b", "Textures", 6)

    assert collection.categories == ["RHI Memory", "Memory"]
    assert len(collection) == 2
    assert collection["RHI Memory"]["Textures"].values == [5, 6]
    assert collection.table("Memory") is collection["Memory"]
    assert [t.name for t in collection] == ["RHI Memory", "Memory"]


def test_report_collection_table_creates_empty_category():
    collection = ReportCollection()
    table = collection.table("Binned Memory")

    assert "Binned Memory" in collection
    assert len(table) == 0


@pytest.mark.parametrize(
    "name, mode",
    [
        ("value", RenderMode.VALUE),
        ("diff", RenderMode.DIFF),
        ("baseline", RenderMode.BASELINE),
        ("DIFF", RenderMode.DIFF),
        ("Baseline", RenderMode.BASELINE),
        ("median", RenderMode.VALUE),
        ("", RenderMode.VALUE),
        (None, RenderMode.VALUE),
    ],
)
def test_render_mode_from_name(name: str | None, mode: RenderMode):
    assert RenderMode.from_name(name) == mode
