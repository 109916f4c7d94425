"""
API tests with the SEC collaborator replaced by in-memory fetchers.
"""

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from conftest import company_facts, fact_row, form4_xml, nd_transaction

from edgar_signals.api.server import app
from edgar_signals.errors import NotFoundError, SecApiError
from edgar_signals.models import FilingIndex

PRIMARY = "us-gaap:RevenueFromContractWithCustomerExcludingAssessedTax"


@pytest.fixture
def client(cfg):
    saved = (app.state.cfg, app.state.fetch_facts, app.state.fetch_index, app.state.fetch_document)
    app.state.cfg = cfg
    yield TestClient(app)
    app.state.cfg, app.state.fetch_facts, app.state.fetch_index, app.state.fetch_document = saved


def _revenue_doc():
    rows = [
        fact_row(v, f"{y}-12-31", f"{y + 1}-02-15", start=f"{y}-01-01", accn=f"acc-{y}")
        for y, v in [(2019, 100.0), (2020, 120.0), (2021, 140.0), (2022, 170.0), (2023, 200.0)]
    ]
    return company_facts({PRIMARY: rows})


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_metrics_catalog(client):
    r = client.get("/metrics")
    assert r.status_code == 200
    ids = [m["id"] for m in r.json()["metrics"]]
    assert "revenue" in ids
    assert "shares_outstanding" in ids


def test_company_metric(client):
    app.state.fetch_facts = lambda cik: _revenue_doc()
    r = client.get("/company/320193/metric/revenue", params={"years": 5})
    assert r.status_code == 200
    body = r.json()
    assert body["company"]["cik"] == "0000320193"
    assert body["concept_used"] == PRIMARY
    assert [dp["fiscal_year"] for dp in body["data_points"]] == [2019, 2020, 2021, 2022, 2023]
    assert body["calculations"]["cagr"] == 18.9
    assert body["growth_signal"]["signal"] == "stable"
    assert body["provenance"]["metric_concept"] == PRIMARY


def test_company_metric_without_data(client):
    app.state.fetch_facts = lambda cik: company_facts({})
    body = client.get("/company/320193/metric/revenue").json()
    assert body["data_points"] == []
    assert body["concept_used"] is None
    assert body["growth_signal"] is None


def test_unknown_metric(client):
    r = client.get("/company/320193/metric/ebitda")
    assert r.status_code == 404
    assert r.json()["detail"] == "unknown_metric"


def test_invalid_cik_and_period(client):
    assert client.get("/company/abc/metric/revenue").json()["detail"] == "invalid_cik"
    r = client.get("/company/320193/metric/revenue", params={"period": "monthly"})
    assert r.status_code == 400
    assert r.json()["detail"] == "invalid_period"


def test_years_out_of_range(client):
    assert client.get("/company/320193/metric/revenue", params={"years": 0}).status_code == 422


def test_sec_errors_are_mapped(client):
    def missing(cik):
        raise NotFoundError("https://data.sec.gov/x")

    def broken(cik):
        raise SecApiError("boom", 500, "https://data.sec.gov/x")

    app.state.fetch_facts = missing
    r = client.get("/company/1/metric/revenue")
    assert r.status_code == 404
    assert r.json()["detail"] == "company_not_found"

    app.state.fetch_facts = broken
    assert client.get("/company/1/metric/revenue").status_code == 502


def test_company_insiders(client):
    recent = (date.today() - timedelta(days=3)).isoformat()
    app.state.fetch_index = lambda cik: FilingIndex(
        form=("4",),
        filing_date=(recent,),
        accession_number=("a-1",),
        primary_document=("xslF345X05/f.xml",),
    )
    app.state.fetch_document = lambda cik, acc, name: form4_xml([nd_transaction(date=recent)])

    r = client.get("/company/320193/insiders", params={"days": 30})
    assert r.status_code == 200
    body = r.json()
    assert body["period_days"] == 30
    assert len(body["transactions"]) == 1
    assert body["summary"]["signal"] == "bullish"
    assert body["provenance"]["filing_date_range"] == [recent, recent]
    assert body["transaction_code_labels"]["P"] == "BUY"


def test_growth_endpoint(client):
    r = client.post("/growth", json={"values": [100, 120, 140, 170, 200], "years": [2019, 2020, 2021, 2022, 2023]})
    assert r.status_code == 200
    body = r.json()
    assert body["calculations"]["yoy_changes"][1] == {"year": 2020, "change_pct": 20.0}
    assert body["growth_signal"]["signal"] == "stable"

    r = client.post("/growth", json={"values": [1, 2], "years": [2020]})
    assert r.status_code == 400


def test_ratio_catalog_and_series(client):
    ids = [r["id"] for r in client.get("/ratios").json()["ratios"]]
    assert "net_margin" in ids

    revenue = [fact_row(v, f"{y}-12-31", f"{y + 1}-02-15", start=f"{y}-01-01") for y, v in [(2022, 100.0), (2023, 200.0)]]
    net_income = [fact_row(v, f"{y}-12-31", f"{y + 1}-02-15", start=f"{y}-01-01") for y, v in [(2022, 10.0), (2023, 30.0)]]
    app.state.fetch_facts = lambda cik: company_facts({PRIMARY: revenue, "us-gaap:NetIncomeLoss": net_income})

    r = client.get("/company/320193/ratio/net_margin", params={"years": 5})
    assert r.status_code == 200
    body = r.json()
    assert body["company"]["cik"] == "0000320193"
    assert body["ratio"]["id"] == "net_margin"
    assert [p["value"] for p in body["data_points"]] == [10.0, 15.0]


def test_unknown_ratio(client):
    r = client.get("/company/320193/ratio/gross_margin")
    assert r.status_code == 404
    assert r.json()["detail"] == "unknown_ratio"
