"""
Tests for concept selection, DataPoint building, restatements and provenance.
"""

import pytest

from conftest import company_facts, fact_row

from edgar_signals.compute.provenance import build_provenance, format_compact
from edgar_signals.xbrl.definitions import get_metric_definition
from edgar_signals.xbrl.normalizer import (
    build_data_point,
    normalize_facts,
    normalize_metric,
    normalize_quarterly_facts,
)
from edgar_signals.xbrl.facts import extract_facts

PRIMARY = "us-gaap:RevenueFromContractWithCustomerExcludingAssessedTax"


@pytest.fixture
def revenue():
    return get_metric_definition("revenue")


def _annual_rows(values_by_year, filed_month_day="02-15"):
    return [fact_row(v, f"{y}-12-31", f"{y + 1}-{filed_month_day}", fy=y + 1, start=f"{y}-01-01") for y, v in values_by_year]


def test_tie_on_fiscal_year_keeps_higher_priority(company, revenue):
    doc = company_facts(
        {
            PRIMARY: _annual_rows([(2022, 90.0), (2023, 100.0)]),
            "us-gaap:Revenues": _annual_rows([(2022, 91.0), (2023, 101.0)]),
        }
    )
    result = normalize_facts(doc, company, revenue, years=5)
    assert result.concept_used == PRIMARY
    assert [dp.value for dp in result.data_points] == [90.0, 100.0]


def test_strictly_more_recent_candidate_wins(company, revenue):
    doc = company_facts(
        {
            PRIMARY: _annual_rows([(2019, 50.0), (2020, 55.0)]),
            "us-gaap:SalesRevenueNet": _annual_rows([(2020, 56.0), (2021, 60.0)]),
        }
    )
    result = normalize_facts(doc, company, revenue)
    assert result.concept_used == "us-gaap:SalesRevenueNet"
    assert result.data_points[-1].fiscal_year == 2021
    assert "Also found: " + PRIMARY in result.concept_selection.selected_reason

    tried = {a.concept: a for a in result.concept_selection.concepts_tried}
    assert len(tried) == len(revenue.candidates)
    assert tried["RevenueFromContractWithCustomerExcludingAssessedTax"].max_fiscal_year == 2020
    assert tried["Revenues"].found is False
    assert tried["Revenues"].max_fiscal_year is None


def test_series_is_oldest_first_and_capped(company, revenue):
    doc = company_facts({PRIMARY: _annual_rows([(y, float(y)) for y in range(2016, 2024)])})
    result = normalize_facts(doc, company, revenue, years=5)
    assert [dp.fiscal_year for dp in result.data_points] == [2019, 2020, 2021, 2022, 2023]
    assert all(dp.fiscal_period == "FY" for dp in result.data_points)
    assert all(dp.is_latest for dp in result.data_points)


def test_no_data_returns_empty_result(company, revenue):
    result = normalize_facts(company_facts({}), company, revenue)
    assert result.data_points == []
    assert result.concept_used == ""
    assert result.restatements == []
    assert all(not a.found for a in result.concept_selection.concepts_tried)


def test_restatement_detected_and_latest_value_used(company, revenue):
    rows = [
        fact_row(98e9, "2023-12-31", "2024-02-01", start="2023-01-01", accn="0000320193-24-000010"),
        fact_row(100e9, "2023-12-31", "2024-08-10", form="10-K/A", start="2023-01-01", accn="0000320193-24-000090"),
        fact_row(90e9, "2022-12-31", "2023-02-01", start="2022-01-01", accn="0000320193-23-000010"),
    ]
    result = normalize_facts(company_facts({PRIMARY: rows}), company, revenue)

    latest = result.data_points[-1]
    assert latest.fiscal_year == 2023
    assert latest.value == 100e9
    assert latest.source.accession_number == "0000320193-24-000090"
    assert latest.source.form_type == "10-K/A"
    assert latest.restated_in == "0000320193-24-000090"
    assert result.data_points[0].restated_in is None

    (r,) = result.restatements
    assert r.fiscal_year == 2023
    assert r.original_value == 98e9
    assert r.restated_value == 100e9
    assert r.change_pct == 2.0
    assert r.original_filing_date == "2024-02-01"
    assert r.restated_filing_date == "2024-08-10"


def test_provenance_notes_restatement(company, revenue):
    rows = [
        fact_row(98e9, "2023-12-31", "2024-02-01", start="2023-01-01", accn="a-1"),
        fact_row(100e9, "2023-12-31", "2024-08-10", form="10-K/A", start="2023-01-01", accn="a-2"),
    ]
    result = normalize_facts(company_facts({PRIMARY: rows}), company, revenue)
    prov = build_provenance(result.data_points, revenue, result.concept_used, result.concept_selection, result.restatements)

    assert prov.metric_concept == PRIMARY
    assert [f.accession_number for f in prov.filings_used] == ["a-2"]
    assert prov.period_type == "Annual (full fiscal year)"
    assert "FY2023 was restated: original $98.0B → $100.0B (+2.0%) in filing 2024-08-10" in prov.notes
    assert "Values are cumulative for the full fiscal year" in prov.notes


def test_format_compact():
    assert format_compact(98e9) == "98.0B"
    assert format_compact(1.5e12) == "1.5T"
    assert format_compact(2.5e6) == "2.5M"
    assert format_compact(950) == "950"


def test_checksum_ignores_extraction_time(company, revenue):
    doc = company_facts({PRIMARY: _annual_rows([(2023, 100.0)])})
    (fact,) = extract_facts(doc, "us-gaap", "RevenueFromContractWithCustomerExcludingAssessedTax")

    a = build_data_point(fact, revenue, company, PRIMARY, fiscal_year=2023, extracted_at="2024-01-01T00:00:00Z")
    b = build_data_point(fact, revenue, company, PRIMARY, fiscal_year=2023, extracted_at="2025-06-01T12:00:00Z")
    assert a.checksum == b.checksum
    assert len(a.checksum) == 64

    c = build_data_point(fact, revenue, company, PRIMARY, fiscal_year=2022)
    assert c.checksum != a.checksum


def test_balance_sheet_metric_accepts_q4(company):
    assets = get_metric_definition("total_assets")
    rows = [
        fact_row(350e9, "2023-09-30", "2023-11-03", fp="Q4", fy=2023),
        fact_row(352e9, "2022-09-24", "2022-10-28", fp="FY", fy=2022),
    ]
    result = normalize_facts(company_facts({"us-gaap:Assets": rows}), company, assets)
    assert [dp.value for dp in result.data_points] == [352e9, 350e9]
    assert [dp.period_start for dp in result.data_points] == ["", ""]


def test_shares_metric_reads_shares_unit(company):
    shares = get_metric_definition("shares_outstanding")
    doc = company_facts({"us-gaap:CommonStockSharesOutstanding": [fact_row(15.5e9, "2023-09-30", "2023-11-03")]}, unit="shares")
    result = normalize_facts(doc, company, shares)
    assert result.data_points[0].unit == "shares"


def test_quarterly_series_uses_single_quarter_amounts(company, revenue):
    rows = [
        fact_row(90e9, "2024-03-30", "2024-05-03", fy=2024, fp="Q2", form="10-Q", start="2023-12-31", accn="q2"),
        fact_row(210e9, "2024-03-30", "2024-05-03", fy=2024, fp="Q2", form="10-Q", start="2023-10-01", accn="q2-ytd"),
        fact_row(85e9, "2024-06-29", "2024-08-02", fy=2024, fp="Q3", form="10-Q", start="2024-03-31", accn="q3"),
    ]
    result = normalize_quarterly_facts(company_facts({PRIMARY: rows}), company, revenue, quarters=8)
    assert [dp.value for dp in result.data_points] == [90e9, 85e9]
    assert [dp.fiscal_period for dp in result.data_points] == ["Q1", "Q2"]

    prov = build_provenance(result.data_points, revenue, result.concept_used, result.concept_selection)
    assert prov.period_type == "Quarterly (single quarter)"


def test_normalize_metric_uses_injected_fetcher(company, revenue, cfg):
    calls = []

    def fetch_facts(cik):
        calls.append(cik)
        return company_facts({PRIMARY: _annual_rows([(2022, 1.0), (2023, 2.0)])})

    result = normalize_metric(company, revenue, fetch_facts=fetch_facts, cfg=cfg)
    assert calls == ["0000320193"]
    assert len(result.data_points) == 2
    assert result.data_points[0].cik == "0000320193"
    assert result.data_points[0].company_name == "Apple Inc."
