from __future__ import annotations

from typing import Dict, List, Optional

from edgar_signals.models import (
    ConceptSelection,
    DataPoint,
    FilingUsed,
    MetricDefinition,
    Provenance,
    Restatement,
)

DEDUP_STRATEGY = "Most recently filed values selected (grouped by period end date)"


def format_compact(value: float) -> str:
    """98e9 -> '98.0B'."""
    a = abs(value)
    if a >= 1e12:
        return f"{value / 1e12:.1f}T"
    if a >= 1e9:
        return f"{value / 1e9:.1f}B"
    if a >= 1e6:
        return f"{value / 1e6:.1f}M"
    if a >= 1e3:
        return f"{value / 1e3:.0f}K"
    return f"{value:.0f}"


def restatement_note(r: Restatement) -> str:
    change = ""
    if r.change_pct is not None:
        sign = "+" if r.change_pct > 0 else ""
        change = f" ({sign}{r.change_pct}%)"
    return (
        f"FY{r.fiscal_year} was restated: original ${format_compact(r.original_value)} "
        f"→ ${format_compact(r.restated_value)}{change} in filing {r.restated_filing_date}"
    )


def build_provenance(
    data_points: List[DataPoint],
    metric: MetricDefinition,
    concept_used: str,
    concept_selection: Optional[ConceptSelection] = None,
    restatements: Optional[List[Restatement]] = None,
) -> Provenance:
    """Which filings fed a series, how it was deduplicated, and anything a reader should know."""
    filings: Dict[str, FilingUsed] = {}
    for dp in data_points:
        acc = dp.source.accession_number
        if acc not in filings:
            filings[acc] = FilingUsed(
                accession_number=acc,
                form_type=dp.source.form_type,
                filing_date=dp.source.filing_date,
                fiscal_year=dp.fiscal_year,
            )

    notes: List[str] = [restatement_note(r) for r in (restatements or [])]

    is_quarterly = any(dp.fiscal_period != "FY" for dp in data_points)
    if metric.aggregation_kind == "end_of_period":
        notes.append("Values are end-of-period (balance sheet) snapshots")
    elif metric.aggregation_kind == "sum":
        notes.append("Values are single-quarter amounts" if is_quarterly else "Values are cumulative for the full fiscal year")

    if concept_selection is not None:
        tried = concept_selection.concepts_tried
        missing = [c.concept for c in tried if not c.found]
        if missing:
            notes.append(f"Concepts not found: {', '.join(missing)}")
        alternatives = [
            f"{c.concept} (max FY{c.max_fiscal_year})"
            for c in tried
            if c.found and c.annual_count > 0 and f"{c.taxonomy}:{c.concept}" != concept_used
        ]
        if alternatives:
            notes.append(f"Alternative concepts available: {', '.join(alternatives)}")

    return Provenance(
        metric_concept=concept_used,
        filings_used=sorted(filings.values(), key=lambda f: f.fiscal_year),
        dedup_strategy=DEDUP_STRATEGY,
        period_type="Quarterly (single quarter)" if is_quarterly else "Annual (full fiscal year)",
        notes=notes,
    )
