"""Metric normalization: company facts -> deduplicated, provenance-tracked DataPoints.

Deduplication: "most recently filed wins". The same period shows up in
several filings (10-K, 10-K/A, next year's comparatives); the latest filed
value is kept, which is what makes restatements come out right.

Concept selection: "most recent data wins". Filers switch XBRL concepts
across years, so every candidate is tried and the one whose data reaches the
latest period is used. Ties keep the higher-priority (earlier) candidate.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from typing import Any, Callable, Dict, List, Optional, Union

from edgar_signals.config import Config, load_config
from edgar_signals.models import (
    CompanyRef,
    ConceptAttempt,
    ConceptSelection,
    DataPoint,
    FilingSource,
    MetricDefinition,
    MetricResult,
    RawFact,
    Restatement,
    XbrlConcept,
)
from edgar_signals.sec.edgar import fetch_company_facts
from edgar_signals.util.hashing import checksum
from edgar_signals.util.normalization import round_half_up
from edgar_signals.util.time import month_of, utcnow_iso, year_of
from edgar_signals.xbrl.facts import (
    deduplicate_facts,
    deduplicate_quarterly_facts,
    derive_fiscal_year,
    extract_facts,
    filter_annual_facts,
    filter_quarterly_facts,
    unit_for,
)


def _debug(msg: str) -> None:
    print(f"[normalize] {msg}")


FetchFacts = Callable[[str], Dict[str, Any]]


@dataclass(frozen=True)
class ConceptCandidate:
    """One candidate concept after extract -> filter -> dedup.

    `recency` is the derived max fiscal year (annual) or the max period_end
    string (quarterly); None when the candidate produced no usable facts.
    """

    concept: XbrlConcept
    found: bool
    filtered: List[RawFact]
    facts: List[RawFact]
    recency: Union[int, str, None]

    @property
    def qualified_name(self) -> str:
        return self.concept.qualified_name


def _prefer_more_recent(
    best: Optional[ConceptCandidate],
    candidate: ConceptCandidate,
) -> Optional[ConceptCandidate]:
    if not candidate.facts:
        return best
    if best is None:
        return candidate
    # Strictly greater: on a tie the earlier (higher-priority) candidate stays.
    return candidate if candidate.recency > best.recency else best


def select_concept(candidates: List[ConceptCandidate]) -> Optional[ConceptCandidate]:
    """Left fold over candidates in priority order keeping the most recent one."""
    return reduce(_prefer_more_recent, candidates, None)


def _ordered_candidates(metric: MetricDefinition) -> List[XbrlConcept]:
    return sorted(metric.candidates, key=lambda c: c.priority)


def _annual_candidate(doc: Dict[str, Any], concept: XbrlConcept, metric: MetricDefinition) -> ConceptCandidate:
    raw = extract_facts(doc, concept.taxonomy, concept.concept, unit_for(metric))
    annual = filter_annual_facts(raw, metric.aggregation_kind)
    deduped = deduplicate_facts(annual)
    max_fy = max((f.fiscal_year for f in deduped), default=None)
    return ConceptCandidate(concept=concept, found=bool(raw), filtered=annual, facts=deduped, recency=max_fy)


def _quarterly_candidate(doc: Dict[str, Any], concept: XbrlConcept, metric: MetricDefinition) -> ConceptCandidate:
    raw = extract_facts(doc, concept.taxonomy, concept.concept, unit_for(metric))
    quarterly = filter_quarterly_facts(raw, metric.aggregation_kind)
    deduped = deduplicate_quarterly_facts(quarterly)
    max_end = max((f.period_end for f in deduped), default=None)
    return ConceptCandidate(concept=concept, found=bool(raw), filtered=quarterly, facts=deduped, recency=max_end)


def _attempt(c: ConceptCandidate) -> ConceptAttempt:
    max_fy: Optional[int]
    if c.recency is None:
        max_fy = None
    elif isinstance(c.recency, str):
        max_fy = year_of(c.recency)
    else:
        max_fy = c.recency
    return ConceptAttempt(
        taxonomy=c.concept.taxonomy,
        concept=c.concept.concept,
        priority=c.concept.priority,
        found=c.found,
        annual_count=len(c.facts),
        max_fiscal_year=max_fy,
    )


def build_data_point(
    fact: RawFact,
    metric: MetricDefinition,
    company: CompanyRef,
    xbrl_concept: str,
    *,
    fiscal_year: int | None = None,
    fiscal_period: str = "FY",
    restated_in: str | None = None,
    extracted_at: str | None = None,
) -> DataPoint:
    """Canonical record for one deduplicated fact. The checksum ignores extracted_at."""
    fy = fiscal_year if fiscal_year is not None else derive_fiscal_year(fact.period_end)
    if fiscal_period == "FY":
        digest = checksum(company.cik, metric.id, fy, fact.value, fact.accession_number)
    else:
        digest = checksum(company.cik, metric.id, fy, fiscal_period, fact.value, fact.accession_number)

    return DataPoint(
        metric_id=metric.id,
        cik=company.cik,
        fiscal_year=fy,
        fiscal_period=fiscal_period,
        period_start=fact.period_start or "",
        period_end=fact.period_end,
        value=fact.value,
        unit=unit_for(metric),
        source=FilingSource(
            accession_number=fact.accession_number,
            filing_date=fact.filed_date,
            form_type=fact.form_type,
            xbrl_concept=xbrl_concept,
        ),
        restated_in=restated_in,
        is_latest=True,
        checksum=digest,
        company_name=company.name,
        extracted_at=extracted_at or utcnow_iso(),
    )


def detect_restatements(facts: List[RawFact]) -> List[Restatement]:
    """Periods whose earliest-filed and latest-filed values differ (annual facts, before dedup)."""
    by_end: Dict[str, List[RawFact]] = {}
    for fact in facts:
        by_end.setdefault(fact.period_end, []).append(fact)

    out: List[Restatement] = []
    for period_end, group in by_end.items():
        if len(group) < 2:
            continue
        original = min(group, key=lambda f: f.filed_date)
        restated = max(group, key=lambda f: f.filed_date)
        if original.value == restated.value:
            continue
        change_pct = (
            round_half_up((restated.value - original.value) / abs(original.value) * 100, 1)
            if original.value != 0
            else None
        )
        out.append(
            Restatement(
                fiscal_year=derive_fiscal_year(period_end),
                period_end=period_end,
                original_value=original.value,
                original_filing=original.accession_number,
                original_filing_date=original.filed_date,
                restated_value=restated.value,
                restated_filing=restated.accession_number,
                restated_filing_date=restated.filed_date,
                change_pct=change_pct,
            )
        )
    out.sort(key=lambda r: (r.fiscal_year, r.period_end))
    return out


def _selection_reason(best: ConceptCandidate, candidates: List[ConceptCandidate], label: str) -> str:
    reason = f"Selected {best.qualified_name} ({label}: {best.recency})"
    others = [c for c in candidates if c.facts and c.qualified_name != best.qualified_name]
    if others:
        reason += ". Also found: " + ", ".join(f"{c.qualified_name} (max FY: {_attempt(c).max_fiscal_year})" for c in others)
    return reason


def normalize_facts(
    doc: Dict[str, Any],
    company: CompanyRef,
    metric: MetricDefinition,
    years: int = 5,
) -> MetricResult:
    """Annual series for one metric from an already fetched companyfacts document."""
    candidates = [_annual_candidate(doc, c, metric) for c in _ordered_candidates(metric)]
    attempts = [_attempt(c) for c in candidates]
    best = select_concept(candidates)

    if best is None:
        _debug(f"cik={company.cik} metric={metric.id}: no annual data")
        return MetricResult(
            data_points=[],
            concept_used="",
            concept_selection=ConceptSelection(
                concepts_tried=attempts,
                selected_reason="No XBRL concepts had annual data for this company",
            ),
        )

    chosen = sorted(best.facts, key=lambda f: f.fiscal_year, reverse=True)[: max(0, int(years))]
    chosen.reverse()

    chosen_ends = {f.period_end for f in chosen}
    restatements = [r for r in detect_restatements(best.filtered) if r.period_end in chosen_ends]
    restated_in = {r.period_end: r.restated_filing for r in restatements}

    extracted_at = utcnow_iso()
    data_points = [
        build_data_point(
            f,
            metric,
            company,
            best.qualified_name,
            fiscal_year=f.fiscal_year,
            restated_in=restated_in.get(f.period_end),
            extracted_at=extracted_at,
        )
        for f in chosen
    ]

    _debug(
        f"cik={company.cik} metric={metric.id} concept={best.qualified_name} "
        f"points={len(data_points)} restatements={len(restatements)}"
    )
    return MetricResult(
        data_points=data_points,
        concept_used=best.qualified_name,
        concept_selection=ConceptSelection(
            concepts_tried=attempts,
            selected_reason=_selection_reason(best, candidates, "most recent FY"),
        ),
        restatements=restatements,
    )


def _calendar_quarter(period_end: str) -> str:
    return f"Q{(month_of(period_end) - 1) // 3 + 1}"


def normalize_quarterly_facts(
    doc: Dict[str, Any],
    company: CompanyRef,
    metric: MetricDefinition,
    quarters: int = 8,
) -> MetricResult:
    """Single-quarter series (balance-sheet snapshots or ~3-month durations)."""
    candidates = [_quarterly_candidate(doc, c, metric) for c in _ordered_candidates(metric)]
    attempts = [_attempt(c) for c in candidates]
    best = select_concept(candidates)

    if best is None:
        _debug(f"cik={company.cik} metric={metric.id}: no quarterly data")
        return MetricResult(
            data_points=[],
            concept_used="",
            concept_selection=ConceptSelection(
                concepts_tried=attempts,
                selected_reason="No XBRL concepts had quarterly data for this company",
            ),
        )

    chosen = sorted(best.facts, key=lambda f: f.period_end, reverse=True)[: max(0, int(quarters))]
    chosen.reverse()

    extracted_at = utcnow_iso()
    data_points = [
        build_data_point(
            f,
            metric,
            company,
            best.qualified_name,
            fiscal_year=year_of(f.period_end),
            fiscal_period=_calendar_quarter(f.period_end),
            extracted_at=extracted_at,
        )
        for f in chosen
    ]
    return MetricResult(
        data_points=data_points,
        concept_used=best.qualified_name,
        concept_selection=ConceptSelection(
            concepts_tried=attempts,
            selected_reason=f"Selected {best.qualified_name} (most recent: {best.recency})",
        ),
    )


def default_fetch_facts(cfg: Config) -> FetchFacts:
    def fetch(cik: str) -> Dict[str, Any]:
        return fetch_company_facts(
            cik,
            user_agent=cfg.SEC_USER_AGENT,
            min_interval_seconds=cfg.SEC_MIN_INTERVAL_SECONDS,
            timeout=cfg.SEC_TIMEOUT_SECONDS,
        )

    return fetch


def normalize_metric(
    company: CompanyRef,
    metric: MetricDefinition,
    years: int | None = None,
    *,
    fetch_facts: Optional[FetchFacts] = None,
    cfg: Config | None = None,
) -> MetricResult:
    """Fetch the company's facts through the collaborator and normalize one metric (annual)."""
    cfg = cfg or load_config()
    fetch_facts = fetch_facts or default_fetch_facts(cfg)
    years = cfg.DEFAULT_YEARS if years is None else years
    return normalize_facts(fetch_facts(company.cik), company, metric, years)


def normalize_quarterly_metric(
    company: CompanyRef,
    metric: MetricDefinition,
    quarters: int | None = None,
    *,
    fetch_facts: Optional[FetchFacts] = None,
    cfg: Config | None = None,
) -> MetricResult:
    cfg = cfg or load_config()
    fetch_facts = fetch_facts or default_fetch_facts(cfg)
    quarters = cfg.DEFAULT_QUARTERS if quarters is None else quarters
    return normalize_quarterly_facts(fetch_facts(company.cik), company, metric, quarters)
