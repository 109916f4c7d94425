"""Metric and derived-ratio catalogs.

Candidates are listed in priority order (priority 1 = try first). Several
concepts exist per metric because the US-GAAP taxonomy evolves and filers
use different tags for the same economic meaning; the normalizer picks
whichever candidate carries the most recent fiscal year.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from edgar_signals.models import MetricDefinition, RatioDefinition, XbrlConcept


def _gaap(concept: str, priority: int, valid_from: str | None = None, valid_to: str | None = None) -> XbrlConcept:
    return XbrlConcept(taxonomy="us-gaap", concept=concept, priority=priority, valid_from=valid_from, valid_to=valid_to)


METRIC_DEFINITIONS: List[MetricDefinition] = [
    MetricDefinition(
        id="revenue",
        display_name="Revenue",
        description="Total revenue / net sales for the period",
        statement_type="income_statement",
        candidates=(
            _gaap("RevenueFromContractWithCustomerExcludingAssessedTax", 1, valid_from="2018-01-01"),
            _gaap("Revenues", 2),
            _gaap("SalesRevenueNet", 3, valid_to="2018-12-31"),
            _gaap("RevenueFromContractWithCustomerIncludingAssessedTax", 4, valid_from="2018-01-01"),
        ),
    ),
    MetricDefinition(
        id="net_income",
        display_name="Net Income",
        description="Net income attributable to the company (GAAP)",
        statement_type="income_statement",
        candidates=(
            _gaap("NetIncomeLoss", 1),
            _gaap("ProfitLoss", 2),
            _gaap("NetIncomeLossAvailableToCommonStockholdersBasic", 3),
        ),
    ),
    MetricDefinition(
        id="operating_cash_flow",
        display_name="Operating Cash Flow",
        description="Net cash provided by operating activities",
        statement_type="cash_flow",
        candidates=(
            _gaap("NetCashProvidedByUsedInOperatingActivities", 1),
            _gaap("NetCashProvidedByUsedInOperatingActivitiesContinuingOperations", 2),
        ),
    ),
    MetricDefinition(
        id="capex",
        display_name="Capital Expenditures",
        description="Payments for acquisition of property, plant, and equipment",
        statement_type="cash_flow",
        candidates=(
            _gaap("PaymentsToAcquirePropertyPlantAndEquipment", 1),
            _gaap("PaymentsToAcquireProductiveAssets", 2),
            _gaap("CapitalExpendituresIncurredButNotYetPaid", 3),
        ),
    ),
    MetricDefinition(
        id="rd_expense",
        display_name="Research & Development Expense",
        description="Total research and development costs for the period",
        statement_type="income_statement",
        candidates=(
            _gaap("ResearchAndDevelopmentExpense", 1),
            _gaap("ResearchAndDevelopmentExpenseExcludingAcquiredInProcessCost", 2),
        ),
    ),
    MetricDefinition(
        id="sbc",
        display_name="Stock-Based Compensation",
        description="Share-based / stock-based compensation expense",
        statement_type="cash_flow",
        candidates=(
            _gaap("ShareBasedCompensation", 1),
            _gaap("AllocatedShareBasedCompensationExpense", 2),
            _gaap("EmployeeBenefitsAndShareBasedCompensation", 3),
        ),
    ),
    MetricDefinition(
        id="total_debt",
        display_name="Total Debt",
        description="Total short-term and long-term debt",
        statement_type="balance_sheet",
        candidates=(
            _gaap("LongTermDebtAndCapitalLeaseObligations", 1),
            _gaap("LongTermDebt", 2),
            _gaap("DebtAndCapitalLeaseObligations", 3),
            _gaap("LongTermDebtNoncurrent", 4),
        ),
        aggregation_kind="end_of_period",
    ),
    MetricDefinition(
        id="total_assets",
        display_name="Total Assets",
        description="Total assets at period end",
        statement_type="balance_sheet",
        candidates=(_gaap("Assets", 1),),
        aggregation_kind="end_of_period",
    ),
    MetricDefinition(
        id="total_equity",
        display_name="Shareholders' Equity",
        description="Total stockholders' equity at period end",
        statement_type="balance_sheet",
        candidates=(
            _gaap("StockholdersEquity", 1),
            _gaap("StockholdersEquityIncludingPortionAttributableToNoncontrollingInterest", 2),
        ),
        aggregation_kind="end_of_period",
    ),
    MetricDefinition(
        id="shares_outstanding",
        display_name="Shares Outstanding",
        description="Common shares outstanding at period end",
        statement_type="balance_sheet",
        candidates=(
            _gaap("CommonStockSharesOutstanding", 1),
            XbrlConcept(taxonomy="dei", concept="EntityCommonStockSharesOutstanding", priority=2),
        ),
        unit_kind="shares",
        aggregation_kind="end_of_period",
    ),
]

# Free-text keyword -> metric id. Longest keyword is tried first.
_KEYWORDS: Dict[str, str] = {
    "revenue": "revenue",
    "sales": "revenue",
    "top line": "revenue",
    "net income": "net_income",
    "profit": "net_income",
    "earnings": "net_income",
    "bottom line": "net_income",
    "operating cash flow": "operating_cash_flow",
    "cash from operations": "operating_cash_flow",
    "ocf": "operating_cash_flow",
    "capex": "capex",
    "capital expenditure": "capex",
    "capital spending": "capex",
    "r&d": "rd_expense",
    "r and d": "rd_expense",
    "research and development": "rd_expense",
    "research & development": "rd_expense",
    "stock based compensation": "sbc",
    "stock-based compensation": "sbc",
    "share based compensation": "sbc",
    "sbc": "sbc",
    "total debt": "total_debt",
    "long term debt": "total_debt",
    "debt": "total_debt",
    "total assets": "total_assets",
    "assets": "total_assets",
    "shareholders equity": "total_equity",
    "stockholders equity": "total_equity",
    "equity": "total_equity",
    "shares outstanding": "shares_outstanding",
    "share count": "shares_outstanding",
}


def get_metric_definition(metric_id: str) -> Optional[MetricDefinition]:
    for m in METRIC_DEFINITIONS:
        if m.id == metric_id:
            return m
    return None


def find_metric_by_name(name: str) -> Optional[MetricDefinition]:
    """Resolve free text to a metric: exact id, then display name, then keyword containment."""
    lower = (name or "").strip().lower()
    if not lower:
        return None

    by_id = get_metric_definition(lower)
    if by_id is not None:
        return by_id

    for m in METRIC_DEFINITIONS:
        if m.display_name.lower() == lower:
            return m

    for keyword in sorted(_KEYWORDS, key=len, reverse=True):
        if keyword in lower:
            return get_metric_definition(_KEYWORDS[keyword])

    return None


# ---------------------------------------------------------------------------
# Derived ratios (two cataloged metrics, matched by fiscal year)
# ---------------------------------------------------------------------------

RATIO_DEFINITIONS: List[RatioDefinition] = [
    RatioDefinition(
        id="net_margin",
        display_name="Net Profit Margin",
        description="Net income as a percentage of revenue",
        numerator="net_income",
        denominator="revenue",
        format="percentage",
    ),
    RatioDefinition(
        id="rd_intensity",
        display_name="R&D Intensity",
        description="R&D spending as a percentage of revenue",
        numerator="rd_expense",
        denominator="revenue",
        format="percentage",
    ),
    RatioDefinition(
        id="sbc_ratio",
        display_name="SBC / Revenue",
        description="Stock-based compensation as a percentage of revenue",
        numerator="sbc",
        denominator="revenue",
        format="percentage",
    ),
    RatioDefinition(
        id="debt_to_equity",
        display_name="Debt-to-Equity",
        description="Total debt divided by shareholders' equity",
        numerator="total_debt",
        denominator="total_equity",
        format="multiple",
    ),
    RatioDefinition(
        id="free_cash_flow",
        display_name="Free Cash Flow",
        description="Operating cash flow minus capital expenditures",
        numerator="operating_cash_flow",
        denominator="capex",
        format="currency",
        operation="subtract",
    ),
    RatioDefinition(
        id="capex_to_ocf",
        display_name="Capex / OCF",
        description="Capital expenditures as a percentage of operating cash flow",
        numerator="capex",
        denominator="operating_cash_flow",
        format="percentage",
    ),
    RatioDefinition(
        id="return_on_assets",
        display_name="Return on Assets",
        description="Net income divided by total assets",
        numerator="net_income",
        denominator="total_assets",
        format="percentage",
    ),
    RatioDefinition(
        id="return_on_equity",
        display_name="Return on Equity",
        description="Net income divided by shareholders' equity",
        numerator="net_income",
        denominator="total_equity",
        format="percentage",
    ),
]

_RATIO_KEYWORDS: Dict[str, str] = {
    "net margin": "net_margin",
    "net profit margin": "net_margin",
    "profit margin": "net_margin",
    "r&d intensity": "rd_intensity",
    "r&d ratio": "rd_intensity",
    "research intensity": "rd_intensity",
    "sbc ratio": "sbc_ratio",
    "sbc %": "sbc_ratio",
    "stock comp ratio": "sbc_ratio",
    "debt to equity": "debt_to_equity",
    "debt/equity": "debt_to_equity",
    "d/e": "debt_to_equity",
    "leverage": "debt_to_equity",
    "free cash flow": "free_cash_flow",
    "fcf": "free_cash_flow",
    "capex ratio": "capex_to_ocf",
    "capex to ocf": "capex_to_ocf",
    "capital intensity": "capex_to_ocf",
    "return on assets": "return_on_assets",
    "roa": "return_on_assets",
    "return on equity": "return_on_equity",
    "roe": "return_on_equity",
}


def get_ratio_definition(ratio_id: str) -> Optional[RatioDefinition]:
    for r in RATIO_DEFINITIONS:
        if r.id == ratio_id:
            return r
    return None


def find_ratio_by_name(name: str) -> Optional[RatioDefinition]:
    lower = (name or "").strip().lower()
    if not lower:
        return None

    by_id = get_ratio_definition(lower)
    if by_id is not None:
        return by_id

    for r in RATIO_DEFINITIONS:
        if r.display_name.lower() == lower:
            return r

    for keyword in sorted(_RATIO_KEYWORDS, key=len, reverse=True):
        if keyword in lower:
            return get_ratio_definition(_RATIO_KEYWORDS[keyword])

    return None
