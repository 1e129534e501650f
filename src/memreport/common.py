from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

INT64_MAX: int = 2**63 - 1
INT64_MIN: int = -(2**63)


class RenderMode(Enum):
    VALUE = 0
    DIFF = 1
    BASELINE = 2

    @classmethod
    def from_name(cls, name: str | None) -> RenderMode:
        """Maps a command line stat type to a mode, unknown names fall back to VALUE."""
        return {
            "value": cls.VALUE,
            "diff": cls.DIFF,
            "baseline": cls.BASELINE,
        }.get((name or "").strip().lower(), cls.VALUE)


@dataclass(frozen=True)
class Sample:
    snapshot: str
    value: int


def _truncating_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


@dataclass
class SeriesHistory:
    entries: list[Sample] = field(default_factory=list)
    diffs: list[int] = field(default_factory=list)
    baseline: list[int] = field(default_factory=list)
    sum: int = 0
    min: int = INT64_MAX
    max: int = INT64_MIN

    @property
    def trend(self) -> int:
        """Average change per entry, truncated toward zero. 0 with fewer than 2 entries."""
        if len(self.entries) < 2:
            return 0
        return _truncating_div(self.entries[-1].value - self.entries[0].value, len(self.entries))

    def is_empty(self) -> bool:
        return not self.entries

    def add(self, sample: Sample, previous: Sample, seed: Sample) -> None:
        diff = sample.value - previous.value
        self.entries.append(sample)
        self.diffs.append(diff)
        self.baseline.append(sample.value - seed.value)
        self.sum += diff
        self.min = min(self.min, sample.value)
        self.max = max(self.max, sample.value)


def compute_history(samples: list[Sample] | tuple[Sample, ...]) -> SeriesHistory:
    """
    Builds the visible history of a series.

    The first sample is the seed: it never shows up in the entries, but it
    is the reference for the first diff and for every baseline offset.
    Series with fewer than two samples produce an empty history.
    """
    history = SeriesHistory()
    if len(samples) < 2:
        return history

    seed = samples[0]
    for previous, sample in zip(samples, samples[1:]):
        history.add(sample, previous, seed)
    return history


class SeriesAccumulator:
    """Append-only, chronologically ordered samples of one subject."""

    name: str
    _samples: list[Sample]

    def __init__(self, name: str) -> None:
        self.name = name
        self._samples = []

    def add(self, snapshot: str, value: int) -> None:
        self._samples.append(Sample(snapshot, value))

    @property
    def samples(self) -> tuple[Sample, ...]:
        return tuple(self._samples)

    @property
    def values(self) -> list[int]:
        return [s.value for s in self._samples]

    @property
    def count(self) -> int:
        return len(self._samples)

    def history(self) -> SeriesHistory:
        return compute_history(self._samples)


class StatTable:
    """One statistic category, subjects kept in first-insertion order."""

    name: str
    _series: dict[str, SeriesAccumulator]

    def __init__(self, name: str) -> None:
        self.name = name
        self._series = {}

    def series(self, subject: str) -> SeriesAccumulator:
        if subject not in self._series:
            self._series[subject] = SeriesAccumulator(subject)
        return self._series[subject]

    def record(self, snapshot: str, subject: str, value: int) -> None:
        self.series(subject).add(snapshot, value)

    @property
    def subjects(self) -> list[str]:
        return list(self._series.keys())

    def __contains__(self, subject: object) -> bool:
        return subject in self._series

    def __getitem__(self, subject: str) -> SeriesAccumulator:
        return self._series[subject]

    def __iter__(self) -> Iterator[SeriesAccumulator]:
        return iter(self._series.values())

    def __len__(self) -> int:
        return len(self._series)


class ReportCollection:
    """All statistic categories of one run, in discovery order."""

    _tables: dict[str, StatTable]

    def __init__(self) -> None:
        self._tables = {}

    def table(self, category: str) -> StatTable:
        if category not in self._tables:
            self._tables[category] = StatTable(category)
        return self._tables[category]

    def record_sample(self, category: str, snapshot: str, subject: str, value: int) -> None:
        self.table(category).record(snapshot, subject, value)

    @property
    def categories(self) -> list[str]:
        return list(self._tables.keys())

    def __contains__(self, category: object) -> bool:
        return category in self._tables

    def __getitem__(self, category: str) -> StatTable:
        return self._tables[category]

    def __iter__(self) -> Iterator[StatTable]:
        return iter(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)


@dataclass
class SnapshotSummary:
    path: Path = field(default_factory=Path)
    snapshot: str = ""
    line_count: int = 0
    sample_count: int = 0
    skipped_count: int = 0
