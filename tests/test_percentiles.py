import pandas as pd
import pytest

from aging_wip.analytics.metrics.percentiles import (
    PercentileFormatError,
    parse_percentiles,
    percentile,
    percentile_thresholds,
)


def test_linear_interpolation():
    assert percentile([1, 2, 3, 4], 50) == 2.5
    assert percentile([1, 2, 3, 4, 5], 25) == 2


def test_single_element_sample():
    for p in (0, 10, 50, 85, 100):
        assert percentile([5], p) == 5


def test_extremes_are_min_and_max():
    sample = [2, 3, 3, 8, 13, 21]
    assert percentile(sample, 0) == sample[0]
    assert percentile(sample, 100) == sample[-1]


def test_matches_pandas_linear_quantile():
    sample = sorted([3, 9, 1, 14, 6, 6, 22, 4])
    series = pd.Series(sample)
    for p in (10, 50, 75, 85, 90):
        assert percentile(sample, p) == pytest.approx(series.quantile(p / 100, interpolation="linear"))


def test_invalid_input():
    with pytest.raises(ValueError):
        percentile([], 50)
    with pytest.raises(ValueError):
        percentile([1, 2], 101)


def test_thresholds_round_up_and_are_monotonic():
    thresholds = percentile_thresholds([4, 1, 3, 2], [50, 75, 85, 90])
    assert thresholds == (3, 4, 4, 4)
    assert list(thresholds) == sorted(thresholds)


def test_whole_values_are_not_bumped():
    assert percentile_thresholds([0, 10], [30]) == (3,)


def test_parse_percentiles():
    assert parse_percentiles("50,75,85,90") == [50, 75, 85, 90]
    assert parse_percentiles(" 50 , 99.5 ") == [50, 99.5]
    assert parse_percentiles([50, 95]) == [50, 95]


@pytest.mark.parametrize("text", ["", "50,abc", "50,120", "-1", "90,50", "50,,75"])
def test_parse_percentiles_rejects(text):
    with pytest.raises(PercentileFormatError):
        parse_percentiles(text)
