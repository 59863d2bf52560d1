"""Percentile estimation over day-count samples."""

from __future__ import annotations

import math
from collections.abc import Sequence


class PercentileFormatError(ValueError):
    """Raised for a malformed percentile list."""


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Linear interpolation between order statistics.

    ``index = p / 100 * (n - 1)``; a fractional index blends the floor and
    ceiling elements by its fractional part. Matches
    ``pandas.Series.quantile(p / 100, interpolation="linear")``.

    Parameters
    ----------
    sorted_values : sequence of float
        Non-empty sample sorted ascending.
    p : float
        Percentile in [0, 100].

    Raises
    ------
    ValueError
        If the sample is empty or ``p`` is outside [0, 100].

    Examples
    --------
    >>> percentile([1, 2, 3, 4], 50)
    2.5
    >>> percentile([5], 90)
    5
    """
    if not sorted_values:
        raise ValueError("percentile of an empty sample is undefined")
    if not 0 <= p <= 100:
        raise ValueError(f"percentile must be within [0, 100], got {p}")
    n = len(sorted_values)
    if n == 1:
        return sorted_values[0]
    index = (p / 100) * (n - 1)
    lower = math.floor(index)
    upper = math.ceil(index)
    weight = index - lower
    return sorted_values[lower] * (1 - weight) + sorted_values[upper] * weight


def percentile_thresholds(values: Sequence[float], percentiles: Sequence[float]) -> tuple[int, ...]:
    """SLE thresholds: each requested percentile, rounded up to whole days."""
    ordered = sorted(values)
    # round first so interpolation noise (3.0000000000000004) does not add a day
    return tuple(math.ceil(round(percentile(ordered, p), 9)) for p in percentiles)


def parse_percentiles(text: str | Sequence[float]) -> list[float]:
    """Parse ``"50,75,85,90"`` into ascending percentile values.

    Integral values come back as ``int``. A sequence is validated the same
    way.

    Raises
    ------
    PercentileFormatError
        On an empty list, a non-numeric entry, a value outside [0, 100], or
        a list that is not in ascending order.
    """
    if isinstance(text, str):
        tokens = [tok.strip() for tok in text.split(",")]
    else:
        tokens = list(text)
    if not tokens or tokens == [""]:
        raise PercentileFormatError("Percentile list is empty")

    out: list[float] = []
    for tok in tokens:
        try:
            value = float(tok)
        except (TypeError, ValueError) as exc:
            raise PercentileFormatError(f"Invalid percentile: {tok!r}") from exc
        if math.isnan(value) or not 0 <= value <= 100:
            raise PercentileFormatError(f"Percentile out of range [0, 100]: {tok!r}")
        if out and value < out[-1]:
            raise PercentileFormatError(
                f"Percentiles must be listed in ascending order: {', '.join(map(str, tokens))}"
            )
        out.append(int(value) if value.is_integer() else value)
    return out
