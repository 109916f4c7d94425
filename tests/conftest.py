"""Shared builders: companyfacts documents and Form 4 XML."""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from edgar_signals.config import Config
from edgar_signals.models import CompanyRef


def fact_row(
    val: float,
    end: str,
    filed: str,
    *,
    fy: Optional[int] = None,
    fp: str = "FY",
    form: str = "10-K",
    start: Optional[str] = None,
    accn: Optional[str] = None,
) -> Dict[str, Any]:
    """One row of a companyfacts `units` array."""
    row: Dict[str, Any] = {
        "val": val,
        "end": end,
        "filed": filed,
        "fy": fy if fy is not None else int(filed[:4]),
        "fp": fp,
        "form": form,
        "accn": accn or f"0000320193-{filed[2:4]}-{filed[5:7]}{filed[8:10]}",
    }
    if start is not None:
        row["start"] = start
    return row


def company_facts(concepts: Dict[str, List[Dict[str, Any]]], unit: str = "USD") -> Dict[str, Any]:
    """companyfacts document; keys are "taxonomy:Concept"."""
    facts: Dict[str, Dict[str, Any]] = {}
    for qualified, rows in concepts.items():
        taxonomy, concept = qualified.split(":", 1)
        facts.setdefault(taxonomy, {})[concept] = {"label": concept, "units": {unit: rows}}
    return {"cik": 320193, "entityName": "Apple Inc.", "facts": facts}


def nd_transaction(
    *,
    date: Optional[str] = "2024-03-01",
    code: Optional[str] = "P",
    shares: Optional[str] = "1000",
    price: Optional[str] = "10.50",
    acq_disp: str = "A",
    after: Optional[str] = "5000",
) -> str:
    parts = ["<nonDerivativeTransaction>", "<securityTitle><value>Common Stock</value></securityTitle>"]
    if date is not None:
        parts.append(f"<transactionDate><value>{date}</value></transactionDate>")
    if code is not None:
        parts.append(f"<transactionCoding><transactionFormType>4</transactionFormType><transactionCode>{code}</transactionCode></transactionCoding>")
    parts.append("<transactionAmounts>")
    if shares is not None:
        parts.append(f"<transactionShares><value>{shares}</value></transactionShares>")
    if price is not None:
        parts.append(f"<transactionPricePerShare><value>{price}</value></transactionPricePerShare>")
    parts.append(f"<transactionAcquiredDisposedCode><value>{acq_disp}</value></transactionAcquiredDisposedCode>")
    parts.append("</transactionAmounts>")
    if after is not None:
        parts.append(
            "<postTransactionAmounts><sharesOwnedFollowingTransaction>"
            f"<value>{after}</value></sharesOwnedFollowingTransaction></postTransactionAmounts>"
        )
    parts.append("</nonDerivativeTransaction>")
    return "".join(parts)


def form4_xml(
    transactions: List[str],
    *,
    owner_name: Optional[str] = "COOK TIMOTHY D",
    owner_cik: str = "0001214156",
    is_director: str = "0",
    is_officer: str = "1",
    officer_title: str = "Chief Executive Officer",
    with_owner: bool = True,
) -> str:
    owner = ""
    if with_owner:
        name = f"<rptOwnerName>{owner_name}</rptOwnerName>" if owner_name is not None else ""
        owner = (
            "<reportingOwner>"
            f"<reportingOwnerId><rptOwnerCik>{owner_cik}</rptOwnerCik>{name}</reportingOwnerId>"
            "<reportingOwnerRelationship>"
            f"<isDirector>{is_director}</isDirector><isOfficer>{is_officer}</isOfficer>"
            f"<isTenPercentOwner>0</isTenPercentOwner><officerTitle>{officer_title}</officerTitle>"
            "</reportingOwnerRelationship>"
            "</reportingOwner>"
        )
    return (
        '<?xml version="1.0"?>\n'
        "<ownershipDocument>"
        "<schemaVersion>X0508</schemaVersion>"
        "<documentType>4</documentType>"
        "<issuer><issuerCik>0000320193</issuerCik><issuerName>Apple Inc.</issuerName></issuer>"
        f"{owner}"
        f"<nonDerivativeTable>{''.join(transactions)}</nonDerivativeTable>"
        "</ownershipDocument>"
    )


@pytest.fixture
def company() -> CompanyRef:
    return CompanyRef(cik="0000320193", ticker="AAPL", name="Apple Inc.")


@pytest.fixture
def cfg() -> Config:
    return Config(
        SEC_USER_AGENT="edgar-signals-tests (tests@example.com)",
        SEC_MIN_INTERVAL_SECONDS=0.0,
        DEFAULT_YEARS=5,
        DEFAULT_QUARTERS=8,
        INSIDER_LOOKBACK_DAYS=90,
        INSIDER_MAX_FILINGS=50,
        INSIDER_BATCH_SIZE=5,
    )
