"""Fact extraction, annual/quarterly filtering and deduplication.

Each 10-K repeats prior years for comparison, all tagged with the filing's
own `fy`. Distinct periods are therefore identified by `period_end`, and
fiscal years are re-derived from it after deduplication.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List

from edgar_signals.models import MetricDefinition, RawFact
from edgar_signals.util.time import days_between, year_of

UNIT_BY_KIND = {"currency": "USD", "shares": "shares"}

QUARTER_PERIODS = ("Q1", "Q2", "Q3", "Q4")

# Single-quarter duration window; year-to-date cumulative values fall outside it.
MIN_QUARTER_DAYS = 60
MAX_QUARTER_DAYS = 120


def unit_for(metric: MetricDefinition) -> str:
    return UNIT_BY_KIND.get(metric.unit_kind, "USD")


def _to_fact(taxonomy: str, concept: str, unit: str, row: Dict[str, Any]) -> RawFact | None:
    end = row.get("end")
    filed = row.get("filed")
    form = row.get("form")
    if not end or not filed or not form:
        return None
    try:
        value = float(row.get("val"))
    except (TypeError, ValueError):
        return None

    fy = row.get("fy")
    try:
        fiscal_year = int(fy) if fy else None
    except (TypeError, ValueError):
        fiscal_year = None

    return RawFact(
        taxonomy=taxonomy,
        concept=concept,
        unit=unit,
        value=value,
        fiscal_year=fiscal_year,
        fiscal_period=row.get("fp"),
        period_start=row.get("start"),
        period_end=str(end),
        filed_date=str(filed),
        form_type=str(form),
        accession_number=str(row.get("accn") or ""),
    )


def extract_facts(doc: Dict[str, Any], taxonomy: str, concept: str, unit: str = "USD") -> List[RawFact]:
    """All facts for one taxonomy/concept/unit triple of a companyfacts document."""
    tax_facts = ((doc or {}).get("facts") or {}).get(taxonomy) or {}
    concept_facts = tax_facts.get(concept) or {}
    rows = (concept_facts.get("units") or {}).get(unit) or []

    out: List[RawFact] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        fact = _to_fact(taxonomy, concept, unit, row)
        if fact is not None:
            out.append(fact)
    return out


def is_annual_fact(fact: RawFact, aggregation_kind: str) -> bool:
    if not fact.form_type.startswith("10-K"):
        return False
    if not fact.fiscal_year:
        return False
    # Q4 end of a balance-sheet metric is the fiscal year end
    if aggregation_kind == "end_of_period":
        return fact.fiscal_period in ("FY", "Q4")
    return fact.fiscal_period == "FY"


def filter_annual_facts(facts: List[RawFact], aggregation_kind: str) -> List[RawFact]:
    return [f for f in facts if is_annual_fact(f, aggregation_kind)]


def is_quarterly_fact(fact: RawFact, aggregation_kind: str) -> bool:
    if not (fact.form_type.startswith("10-Q") or fact.form_type.startswith("10-K")):
        return False
    if not fact.fiscal_year:
        return False
    if fact.fiscal_period not in QUARTER_PERIODS:
        return False
    if aggregation_kind == "sum":
        if not fact.period_start or not fact.period_end:
            return False
        try:
            duration = days_between(fact.period_start, fact.period_end)
        except ValueError:
            return False
        return MIN_QUARTER_DAYS <= duration <= MAX_QUARTER_DAYS
    return True


def filter_quarterly_facts(facts: List[RawFact], aggregation_kind: str) -> List[RawFact]:
    return [f for f in facts if is_quarterly_fact(f, aggregation_kind)]


def latest_filed_by_period_end(facts: List[RawFact]) -> Dict[str, RawFact]:
    """period_end -> most recently filed fact (ISO dates compare correctly as strings)."""
    by_end: Dict[str, RawFact] = {}
    for fact in facts:
        existing = by_end.get(fact.period_end)
        if existing is None or fact.filed_date > existing.filed_date:
            by_end[fact.period_end] = fact
    return by_end


def derive_fiscal_year(period_end: str) -> int:
    """Calendar year of the period end (Dec, Sep and Jan year-ends alike)."""
    return year_of(period_end)


def deduplicate_facts(facts: List[RawFact]) -> List[RawFact]:
    """One fact per period_end, most recently filed wins, fiscal_year re-derived from period_end."""
    return [
        replace(fact, fiscal_year=derive_fiscal_year(fact.period_end))
        for fact in latest_filed_by_period_end(facts).values()
    ]


def deduplicate_quarterly_facts(facts: List[RawFact]) -> List[RawFact]:
    return list(latest_filed_by_period_end(facts).values())
