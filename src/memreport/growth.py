from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from scipy.stats import mannwhitneyu

from memreport.common import ReportCollection, SeriesAccumulator

logger = logging.getLogger(__name__)

DEFAULT_STEP_FIT_THRESHOLD: float = 25.0
DEFAULT_P_VALUE_THRESHOLD: float = 0.01
MIN_GROWTH_SAMPLES: int = 4

GROWTH_METHODS: dict[str, dict[str, str]] = {
    "stepfit": {
        "header": "Step Fit",
        "state": "fit",
    },
    "mannwhitneyu": {
        "header": "Mann-Whitney U-Test",
        "state": "pval",
    },
}


class Verdict(Enum):
    NOT_SIGNIFICANT = 0
    GROWTH = 1
    SHRINK = 2


@dataclass
class GrowthResult:
    category: str
    series: SeriesAccumulator
    method: str
    result: Any
    verdict: Verdict

    @property
    def subject(self) -> str:
        return self.series.name


def calculate_step_fit_score(a: list[float], b: list[float]) -> float:
    """
    Calculates the step fit between two distributions.

    Args:
        a: The earlier data points.
        b: The later data points.

    Returns:
        The step fit score. A positive value indicates 'b' is lower than 'a',
        a negative value indicates 'b' is higher than 'a' (growth).
        Returns 0.0 if either list is empty or the pooled error is zero.
    """
    def sum_squared_error(values: list[float]) -> float:
        avg = sum(values) / len(values)
        return sum((v - avg) ** 2 for v in values)

    if not a or not b:
        return 0.0

    total_squared_error = sum_squared_error(a) + sum_squared_error(b)
    step_error = math.sqrt(total_squared_error) / (len(a) + len(b))
    if step_error == 0.0:
        return 0.0

    return (sum(a) / len(a) - sum(b) / len(b)) / step_error


def split_series(values: list[int]) -> tuple[list[int], list[int]]:
    """Splits a chronological series into its early and late halves."""
    half = len(values) // 2
    return values[:half], values[half:]


def evaluate_growth_significance(
    method: str,
    early: list[int],
    late: list[int],
    threshold: float,
) -> tuple[Verdict, Any]:
    """
    Tests whether the late half of a series sits higher than the early half.

    Args:
        method: "stepfit" or "mannwhitneyu".
        early: Values from the first snapshots.
        late: Values from the last snapshots.
        threshold: The significance cutoff (fit score or p-value).

    Returns:
        A tuple of (Verdict, result_value), where result_value is
        either the step fit score or the p-value.
    """
    verdict: Verdict = Verdict.NOT_SIGNIFICANT
    test_result = None
    match method:
        case "stepfit":
            test_result = calculate_step_fit_score(early, late)
            if abs(test_result) < threshold:
                verdict = Verdict.NOT_SIGNIFICANT
            elif test_result < 0:
                verdict = Verdict.GROWTH
            else:
                verdict = Verdict.SHRINK
        case "mannwhitneyu":
            less_test = mannwhitneyu(early, late, alternative="less")
            greater_test = mannwhitneyu(early, late, alternative="greater")
            test_result = min(less_test.pvalue, greater_test.pvalue)
            if less_test.pvalue < threshold:
                verdict = Verdict.GROWTH
            elif greater_test.pvalue < threshold:
                verdict = Verdict.SHRINK
        case _:
            raise ValueError(f"Unknown growth method: {method}")

    return (verdict, test_result)


def analyze_growth(
    collection: ReportCollection,
    method: str,
    threshold: float,
) -> list[GrowthResult]:
    """
    Runs the growth test over every subject with enough snapshots.

    Returns:
        The significant results only, in category then subject order.
    """
    if method not in GROWTH_METHODS:
        raise ValueError(f"Unknown growth method: {method}")

    results: list[GrowthResult] = []
    for table in collection:
        for series in table:
            if series.count < MIN_GROWTH_SAMPLES:
                continue

            early, late = split_series(series.values)
            try:
                verdict, result = evaluate_growth_significance(method, early, late, threshold)
            except Exception:
                logger.exception(f"failed to analyze growth of '{series.name}' in '{table.name}', skipping")
                continue

            if verdict != Verdict.NOT_SIGNIFICANT:
                results.append(
                    GrowthResult(
                        category=table.name,
                        series=series,
                        method=method,
                        result=result,
                        verdict=verdict,
                    )
                )
    return results
