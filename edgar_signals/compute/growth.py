from __future__ import annotations

import math
from statistics import mean
from typing import List, Optional, Sequence, Tuple

from edgar_signals.models import Calculations, DataPoint, GrowthSignal, YoYChange
from edgar_signals.util.normalization import round_half_up

# Half-average difference (percentage points) that counts as a change in pace.
SIGNAL_THRESHOLD_PTS = 2.0


def yoy_change_pct(current: float, prior: float) -> Optional[float]:
    """Percent change vs prior, one decimal.

    None when prior is zero or the sign flips (loss -> profit or profit -> loss),
    where a percentage change has no meaning.
    """
    if prior == 0:
        return None
    if (prior > 0 and current < 0) or (prior < 0 and current > 0):
        return None
    change = (current - prior) / abs(prior) * 100
    if not math.isfinite(change):
        return None
    return round_half_up(change, 1)


def cagr(start: float, end: float, years: float) -> Optional[float]:
    """Compound annual growth rate in percent, one decimal; None for non-positive inputs or overflow."""
    if years <= 0 or start <= 0 or end <= 0:
        return None
    try:
        raw = ((end / start) ** (1 / years) - 1) * 100
    except (OverflowError, ZeroDivisionError):
        return None
    if not math.isfinite(raw):
        return None
    return round_half_up(raw, 1)


def growth_series(points: Sequence[Tuple[int, float]]) -> Calculations:
    """YoY changes and CAGR for chronological (year, value) pairs."""
    if not points:
        return Calculations(yoy_changes=[], cagr=None, cagr_years=0)

    yoy_changes: List[YoYChange] = []
    for i, (year, value) in enumerate(points):
        change = None if i == 0 else yoy_change_pct(value, points[i - 1][1])
        yoy_changes.append(YoYChange(year=year, change_pct=change))

    cagr_years = len(points) - 1
    rate = cagr(points[0][1], points[-1][1], cagr_years) if cagr_years >= 2 else None
    return Calculations(yoy_changes=yoy_changes, cagr=rate, cagr_years=cagr_years)


def growth(data_points: Sequence[DataPoint]) -> Calculations:
    """YoY changes and CAGR for a chronological (oldest-first) DataPoint series."""
    return growth_series([(dp.fiscal_year, dp.value) for dp in data_points])


def growth_signal(values: Sequence[float]) -> Optional[GrowthSignal]:
    """Compare average period growth in the first vs second half of the series.

    Only pairs where both values are positive count. A pair belongs to the
    half its later index falls in (index <= midpoint -> first half).
    """
    n = len(values)
    if n < 4:
        return None

    mid = n // 2
    first: List[float] = []
    second: List[float] = []
    for i in range(1, n):
        prev, curr = values[i - 1], values[i]
        if prev > 0 and curr > 0:
            g = (curr - prev) / prev * 100
            (first if i <= mid else second).append(g)

    if not first or not second:
        return None

    first_avg = mean(first)
    second_avg = mean(second)
    if second_avg > first_avg + SIGNAL_THRESHOLD_PTS:
        signal = "accelerating"
    elif second_avg < first_avg - SIGNAL_THRESHOLD_PTS:
        signal = "decelerating"
    else:
        signal = "stable"
    return GrowthSignal(signal=signal, first_half_avg=first_avg, second_half_avg=second_avg)
