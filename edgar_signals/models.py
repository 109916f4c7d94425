from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple


class _Record:
    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Companies / catalog
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompanyRef(_Record):
    cik: str
    ticker: str = ""
    name: str = ""


@dataclass(frozen=True)
class XbrlConcept(_Record):
    taxonomy: str
    concept: str
    priority: int
    valid_from: str | None = None
    valid_to: str | None = None

    @property
    def qualified_name(self) -> str:
        return f"{self.taxonomy}:{self.concept}"


@dataclass(frozen=True)
class MetricDefinition(_Record):
    id: str
    display_name: str
    description: str
    statement_type: str  # income_statement | balance_sheet | cash_flow
    candidates: Tuple[XbrlConcept, ...]
    unit_kind: str = "currency"  # currency | shares
    aggregation_kind: str = "sum"  # sum | end_of_period


# ---------------------------------------------------------------------------
# XBRL facts -> DataPoints
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawFact(_Record):
    taxonomy: str
    concept: str
    unit: str
    value: float
    fiscal_year: int | None
    fiscal_period: str | None
    period_start: str | None
    period_end: str
    filed_date: str
    form_type: str
    accession_number: str


@dataclass(frozen=True)
class FilingSource(_Record):
    accession_number: str
    filing_date: str
    form_type: str
    xbrl_concept: str


@dataclass(frozen=True)
class DataPoint(_Record):
    metric_id: str
    cik: str
    fiscal_year: int
    fiscal_period: str
    period_start: str
    period_end: str
    value: float
    unit: str
    source: FilingSource
    restated_in: str | None
    is_latest: bool
    checksum: str
    company_name: str = ""
    extracted_at: str = ""


@dataclass(frozen=True)
class ConceptAttempt(_Record):
    taxonomy: str
    concept: str
    priority: int
    found: bool
    annual_count: int
    max_fiscal_year: int | None


@dataclass(frozen=True)
class ConceptSelection(_Record):
    concepts_tried: List[ConceptAttempt]
    selected_reason: str


@dataclass(frozen=True)
class Restatement(_Record):
    fiscal_year: int
    period_end: str
    original_value: float
    original_filing: str
    original_filing_date: str
    restated_value: float
    restated_filing: str
    restated_filing_date: str
    change_pct: float | None


@dataclass(frozen=True)
class MetricResult(_Record):
    data_points: List[DataPoint]
    concept_used: str
    concept_selection: ConceptSelection
    restatements: List[Restatement] = field(default_factory=list)


@dataclass(frozen=True)
class FilingUsed(_Record):
    accession_number: str
    form_type: str
    filing_date: str
    fiscal_year: int


@dataclass(frozen=True)
class Provenance(_Record):
    metric_concept: str
    filings_used: List[FilingUsed]
    dedup_strategy: str
    period_type: str
    notes: List[str]


# ---------------------------------------------------------------------------
# Growth
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class YoYChange(_Record):
    year: int
    change_pct: float | None


@dataclass(frozen=True)
class Calculations(_Record):
    yoy_changes: List[YoYChange]
    cagr: float | None
    cagr_years: int


@dataclass(frozen=True)
class GrowthSignal(_Record):
    signal: str  # accelerating | decelerating | stable
    first_half_avg: float
    second_half_avg: float


# ---------------------------------------------------------------------------
# Derived ratios
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RatioDefinition(_Record):
    id: str
    display_name: str
    description: str
    numerator: str  # metric id
    denominator: str  # metric id
    format: str  # percentage | multiple | currency
    operation: str = "divide"  # divide | subtract


@dataclass(frozen=True)
class RatioDataPoint(_Record):
    fiscal_year: int
    value: float | None
    numerator_value: float
    denominator_value: float


@dataclass(frozen=True)
class RatioResult(_Record):
    ratio: RatioDefinition
    data_points: List[RatioDataPoint]
    numerator_metric: str
    denominator_metric: str
    numerator_concept: str = ""
    denominator_concept: str = ""


# ---------------------------------------------------------------------------
# Form 4 / insiders
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InsiderInfo(_Record):
    cik: str
    name: str
    is_director: bool
    is_officer: bool
    is_ten_percent_owner: bool
    officer_title: str


@dataclass(frozen=True)
class InsiderTransaction(_Record):
    insider: InsiderInfo
    transaction_date: str
    transaction_code: str
    transaction_type: str  # acquisition | disposition
    shares: int
    price_per_share: float | None
    total_value: float | None
    shares_owned_after: int
    filing_date: str
    filing_accession: str


@dataclass(frozen=True)
class FilingRef(_Record):
    form_type: str
    filing_date: str
    accession_number: str
    primary_document: str


@dataclass(frozen=True)
class FilingIndex(_Record):
    """Parallel arrays from the submissions JSON `filings.recent` block (most recent first)."""

    form: Tuple[str, ...] = ()
    filing_date: Tuple[str, ...] = ()
    accession_number: Tuple[str, ...] = ()
    primary_document: Tuple[str, ...] = ()

    @classmethod
    def from_submissions(cls, submissions: Dict[str, Any]) -> "FilingIndex":
        recent = ((submissions or {}).get("filings") or {}).get("recent") or {}

        def col(name: str) -> Tuple[str, ...]:
            return tuple(str(v or "").strip() for v in (recent.get(name) or []))

        return cls(
            form=col("form"),
            filing_date=col("filingDate"),
            accession_number=col("accessionNumber"),
            primary_document=col("primaryDocument"),
        )

    def __iter__(self):
        n = len(self.accession_number)
        for i in range(n):
            yield FilingRef(
                form_type=self.form[i] if i < len(self.form) else "",
                filing_date=self.filing_date[i] if i < len(self.filing_date) else "",
                accession_number=self.accession_number[i],
                primary_document=self.primary_document[i] if i < len(self.primary_document) else "",
            )


@dataclass(frozen=True)
class InsiderSummary(_Record):
    total_buys: int
    total_sells: int
    buy_shares: int
    sell_shares: int
    buy_value: float
    sell_value: float
    net_shares: int
    unique_insiders: int
    signal: str  # bullish | bearish | neutral | mixed


@dataclass(frozen=True)
class InsiderProvenance(_Record):
    filing_count: int
    filing_date_range: Tuple[str, str]
    accession_numbers: List[str]


@dataclass(frozen=True)
class InsiderActivity(_Record):
    company: CompanyRef
    period_days: int
    transactions: List[InsiderTransaction]
    summary: InsiderSummary
    provenance: InsiderProvenance
