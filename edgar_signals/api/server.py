from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from edgar_signals import __version__
from edgar_signals.compute.growth import growth, growth_series, growth_signal
from edgar_signals.compute.provenance import build_provenance
from edgar_signals.compute.ratios import normalize_ratio
from edgar_signals.config import Config, load_config
from edgar_signals.errors import NotFoundError, SecApiError
from edgar_signals.models import CompanyRef
from edgar_signals.sec.insiders import fetch_insider_activity
from edgar_signals.sec.parser import TRANSACTION_CODE_LABELS
from edgar_signals.util.normalization import normalize_cik
from edgar_signals.xbrl.definitions import (
    METRIC_DEFINITIONS,
    RATIO_DEFINITIONS,
    get_metric_definition,
    get_ratio_definition,
)
from edgar_signals.xbrl.normalizer import normalize_metric, normalize_quarterly_metric


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


app = FastAPI(title="EDGAR Signals", version=__version__)
cfg: Config = load_config()

# Collaborator overrides (None -> SEC HTTP collaborator). Tests and embedding
# callers swap these for in-memory fetchers.
app.state.cfg = cfg
app.state.fetch_facts = None
app.state.fetch_index = None
app.state.fetch_document = None

_cors_origins = [o.strip() for o in (cfg.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]
if _cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _company(cik: str) -> CompanyRef:
    cik10 = normalize_cik(cik)
    if cik10 is None:
        raise HTTPException(status_code=400, detail="invalid_cik")
    return CompanyRef(cik=cik10)


def _upstream_error(e: SecApiError) -> HTTPException:
    _debug(f"SEC error status={e.status_code} url={e.url}: {e}")
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail="company_not_found")
    return HTTPException(status_code=502, detail=f"sec_error: {e.status_code}")


# -----------------------------
# Health / catalog
# -----------------------------


@app.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "ok"}


@app.get("/metrics")
def list_metrics() -> Dict[str, Any]:
    return {"metrics": [m.to_dict() for m in METRIC_DEFINITIONS]}


@app.get("/ratios")
def list_ratios() -> Dict[str, Any]:
    return {"ratios": [r.to_dict() for r in RATIO_DEFINITIONS]}


# -----------------------------
# Metric series
# -----------------------------


@app.get("/company/{cik}/metric/{metric_id}")
def company_metric(
    request: Request,
    cik: str,
    metric_id: str,
    years: int = Query(5, ge=1, le=30),
    quarters: int = Query(8, ge=1, le=40),
    period: str = Query("annual"),
) -> Dict[str, Any]:
    metric = get_metric_definition(metric_id)
    if metric is None:
        raise HTTPException(status_code=404, detail="unknown_metric")
    if period not in ("annual", "quarterly"):
        raise HTTPException(status_code=400, detail="invalid_period")

    company = _company(cik)
    state = request.app.state
    try:
        if period == "annual":
            result = normalize_metric(company, metric, years, fetch_facts=state.fetch_facts, cfg=state.cfg)
        else:
            result = normalize_quarterly_metric(company, metric, quarters, fetch_facts=state.fetch_facts, cfg=state.cfg)
    except SecApiError as e:
        raise _upstream_error(e)

    signal = growth_signal([dp.value for dp in result.data_points])
    provenance = build_provenance(
        result.data_points,
        metric,
        result.concept_used,
        result.concept_selection,
        result.restatements,
    )
    return {
        "company": company.to_dict(),
        "metric": metric.to_dict(),
        "period": period,
        "data_points": [dp.to_dict() for dp in result.data_points],
        "calculations": growth(result.data_points).to_dict(),
        "growth_signal": signal.to_dict() if signal is not None else None,
        "concept_used": result.concept_used or None,
        "concept_selection": result.concept_selection.to_dict(),
        "restatements": [r.to_dict() for r in result.restatements],
        "provenance": provenance.to_dict(),
    }


# -----------------------------
# Derived ratios
# -----------------------------


@app.get("/company/{cik}/ratio/{ratio_id}")
def company_ratio(
    request: Request,
    cik: str,
    ratio_id: str,
    years: int = Query(5, ge=1, le=30),
) -> Dict[str, Any]:
    ratio = get_ratio_definition(ratio_id)
    if ratio is None:
        raise HTTPException(status_code=404, detail="unknown_ratio")

    company = _company(cik)
    state = request.app.state
    try:
        result = normalize_ratio(company, ratio, years, fetch_facts=state.fetch_facts, cfg=state.cfg)
    except SecApiError as e:
        raise _upstream_error(e)

    out = result.to_dict()
    out["company"] = company.to_dict()
    return out


# -----------------------------
# Insider activity
# -----------------------------


@app.get("/company/{cik}/insiders")
def company_insiders(
    request: Request,
    cik: str,
    days: int = Query(90, ge=1, le=3650),
) -> Dict[str, Any]:
    company = _company(cik)
    state = request.app.state
    try:
        activity = fetch_insider_activity(
            company,
            days,
            fetch_index=state.fetch_index,
            fetch_document=state.fetch_document,
            cfg=state.cfg,
        )
    except SecApiError as e:
        raise _upstream_error(e)

    out = activity.to_dict()
    out["transaction_code_labels"] = dict(TRANSACTION_CODE_LABELS)
    return out


# -----------------------------
# Ad-hoc growth math
# -----------------------------


class GrowthRequest(BaseModel):
    values: List[float]
    years: Optional[List[int]] = None


@app.post("/growth")
def compute_growth(req: GrowthRequest) -> Dict[str, Any]:
    years = req.years if req.years is not None else list(range(len(req.values)))
    if len(years) != len(req.values):
        raise HTTPException(status_code=400, detail="years_values_length_mismatch")

    signal = growth_signal(req.values)
    return {
        "calculations": growth_series(list(zip(years, req.values))).to_dict(),
        "growth_signal": signal.to_dict() if signal is not None else None,
    }
