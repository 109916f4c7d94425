from __future__ import annotations

from typing import Dict, List, Optional

from edgar_signals.config import Config, load_config
from edgar_signals.models import CompanyRef, MetricResult, RatioDataPoint, RatioDefinition, RatioResult
from edgar_signals.util.normalization import round_half_up
from edgar_signals.xbrl.definitions import get_metric_definition
from edgar_signals.xbrl.normalizer import FetchFacts, default_fetch_facts, normalize_facts


def _debug(msg: str) -> None:
    print(f"[ratios] {msg}")


def _ratio_value(num: float, den: float, ratio: RatioDefinition) -> Optional[float]:
    if ratio.operation == "subtract":
        value = num - den
    else:
        if den == 0:
            return None
        value = num / den
    # percentages carry one decimal, multiples and currency two
    if ratio.format == "percentage":
        return round_half_up(value * 100, 1)
    return round_half_up(value, 2)


def compute_ratio(num_result: MetricResult, den_result: MetricResult, ratio: RatioDefinition) -> RatioResult:
    """Per-fiscal-year ratio over two normalized series.

    Only years present in both series produce a point. A zero denominator
    on a division yields a point with value None.
    """
    num_by_year: Dict[int, float] = {dp.fiscal_year: dp.value for dp in num_result.data_points}
    den_by_year: Dict[int, float] = {dp.fiscal_year: dp.value for dp in den_result.data_points}

    points: List[RatioDataPoint] = []
    for year in sorted(set(num_by_year) & set(den_by_year)):
        num, den = num_by_year[year], den_by_year[year]
        points.append(
            RatioDataPoint(
                fiscal_year=year,
                value=_ratio_value(num, den, ratio),
                numerator_value=num,
                denominator_value=den,
            )
        )

    num_metric = get_metric_definition(ratio.numerator)
    den_metric = get_metric_definition(ratio.denominator)
    return RatioResult(
        ratio=ratio,
        data_points=points,
        numerator_metric=num_metric.display_name if num_metric else ratio.numerator,
        denominator_metric=den_metric.display_name if den_metric else ratio.denominator,
        numerator_concept=num_result.concept_used,
        denominator_concept=den_result.concept_used,
    )


def normalize_ratio(
    company: CompanyRef,
    ratio: RatioDefinition,
    years: int | None = None,
    *,
    fetch_facts: Optional[FetchFacts] = None,
    cfg: Config | None = None,
) -> RatioResult:
    """Fetch the company's facts once, normalize both component metrics and combine them."""
    cfg = cfg or load_config()
    fetch_facts = fetch_facts or default_fetch_facts(cfg)
    years = cfg.DEFAULT_YEARS if years is None else years

    num_metric = get_metric_definition(ratio.numerator)
    den_metric = get_metric_definition(ratio.denominator)
    if num_metric is None or den_metric is None:
        raise ValueError(f"Ratio {ratio.id} references an uncataloged metric")

    doc = fetch_facts(company.cik)
    result = compute_ratio(
        normalize_facts(doc, company, num_metric, years),
        normalize_facts(doc, company, den_metric, years),
        ratio,
    )
    _debug(f"cik={company.cik} ratio={ratio.id} points={len(result.data_points)}")
    return result
