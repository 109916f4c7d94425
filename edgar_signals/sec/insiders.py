from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Callable, Iterable, List, Optional

from edgar_signals.config import Config, load_config
from edgar_signals.models import (
    CompanyRef,
    FilingIndex,
    FilingRef,
    InsiderActivity,
    InsiderProvenance,
    InsiderSummary,
    InsiderTransaction,
)
from edgar_signals.sec.edgar import fetch_company_submissions, fetch_filing_document
from edgar_signals.sec.parser import parse_form4
from edgar_signals.util.time import cutoff_date


def _debug(msg: str) -> None:
    print(f"[insiders] {msg}")


FetchIndex = Callable[[str], FilingIndex]
FetchDocument = Callable[[str, str, str], str]

FORM4_TYPES = ("4", "4/A")


def select_form4_filings(
    index: Iterable[FilingRef],
    days: int,
    *,
    today: date | None = None,
    limit: int = 50,
) -> List[FilingRef]:
    """Form 4 / 4/A filings inside the lookback window, capped to the first `limit` (index order)."""
    cutoff = cutoff_date(days, today)
    selected = [f for f in index if f.form_type in FORM4_TYPES and f.filing_date >= cutoff]
    return selected[:limit]


def raw_document_name(primary_document: str) -> str:
    """Strip the XSLT rendering prefix ("xslF345X05/form4.xml") to get the raw XML at the filing root."""
    return primary_document.rsplit("/", 1)[-1]


def fetch_filing_transactions(
    cik: str,
    filing: FilingRef,
    fetch_document: FetchDocument,
) -> List[InsiderTransaction]:
    """Fetch + parse one filing. Any failure degrades to no transactions for that filing."""
    try:
        text = fetch_document(cik, filing.accession_number, raw_document_name(filing.primary_document))
        return parse_form4(text, filing.accession_number, filing.filing_date)
    except Exception as e:
        # Older filings routinely have non-conforming markup; siblings must still be processed.
        _debug(f"Skipping filing {filing.accession_number}: {type(e).__name__}: {e}")
        return []


def fetch_in_batches(
    cik: str,
    filings: List[FilingRef],
    fetch_document: FetchDocument,
    *,
    batch_size: int = 5,
) -> List[List[InsiderTransaction]]:
    """Fetch filings `batch_size` at a time; each batch fully drains before the next starts.

    Returns one transaction list per filing, in filing order.
    """
    results: List[List[InsiderTransaction]] = []
    size = max(1, int(batch_size))
    for start in range(0, len(filings), size):
        batch = filings[start : start + size]
        _debug(f"Batch {start // size + 1}: fetching {len(batch)} filings")
        with ThreadPoolExecutor(max_workers=size) as pool:
            futures = [pool.submit(fetch_filing_transactions, cik, f, fetch_document) for f in batch]
            results.extend(fut.result() for fut in futures)
    return results


def classify_signal(buy_value: float, sell_value: float) -> str:
    """Qualitative signal from open-market buy vs sell dollar totals."""
    if buy_value == 0 and sell_value == 0:
        return "neutral"
    if buy_value > 0 and sell_value == 0:
        return "bullish"
    if sell_value > 0 and buy_value == 0:
        return "bearish"

    ratio = buy_value / sell_value
    if ratio > 2:
        return "bullish"
    if ratio < 0.5:
        return "bearish"
    return "mixed"


def summarize_transactions(transactions: List[InsiderTransaction]) -> InsiderSummary:
    # Only open market purchases (P) and sales (S) are market signals.
    # Grants, exercises, gifts, tax withholding etc. stay in the transaction list only.
    buys = [t for t in transactions if t.transaction_code == "P"]
    sells = [t for t in transactions if t.transaction_code == "S"]

    buy_value = sum(t.total_value or 0 for t in buys)
    sell_value = sum(t.total_value or 0 for t in sells)
    buy_shares = sum(t.shares for t in buys)
    sell_shares = sum(t.shares for t in sells)

    return InsiderSummary(
        total_buys=len(buys),
        total_sells=len(sells),
        buy_shares=buy_shares,
        sell_shares=sell_shares,
        buy_value=buy_value,
        sell_value=sell_value,
        net_shares=buy_shares - sell_shares,
        unique_insiders=len({t.insider.cik for t in transactions}),
        signal=classify_signal(buy_value, sell_value),
    )


def _default_fetch_index(cfg: Config) -> FetchIndex:
    def fetch(cik: str) -> FilingIndex:
        submissions = fetch_company_submissions(
            cik,
            user_agent=cfg.SEC_USER_AGENT,
            min_interval_seconds=cfg.SEC_MIN_INTERVAL_SECONDS,
            timeout=cfg.SEC_TIMEOUT_SECONDS,
        )
        return FilingIndex.from_submissions(submissions)

    return fetch


def _default_fetch_document(cfg: Config) -> FetchDocument:
    def fetch(cik: str, accession_number: str, filename: str) -> str:
        return fetch_filing_document(
            cik,
            accession_number,
            filename,
            user_agent=cfg.SEC_USER_AGENT,
            min_interval_seconds=cfg.SEC_MIN_INTERVAL_SECONDS,
            timeout=cfg.SEC_TIMEOUT_SECONDS,
        )

    return fetch


def fetch_insider_activity(
    company: CompanyRef,
    days: int | None = None,
    *,
    fetch_index: Optional[FetchIndex] = None,
    fetch_document: Optional[FetchDocument] = None,
    cfg: Config | None = None,
    today: date | None = None,
) -> InsiderActivity:
    """Recent Form 4 activity for a company: merged transactions, buy/sell summary, signal, provenance.

    fetch_index / fetch_document default to the SEC HTTP collaborator.
    """
    cfg = cfg or load_config()
    days = cfg.INSIDER_LOOKBACK_DAYS if days is None else int(days)
    fetch_index = fetch_index or _default_fetch_index(cfg)
    fetch_document = fetch_document or _default_fetch_document(cfg)

    index = fetch_index(company.cik)
    filings = select_form4_filings(index, days, today=today, limit=cfg.INSIDER_MAX_FILINGS)
    _debug(f"cik={company.cik} days={days} form4_candidates={len(filings)}")

    per_filing = fetch_in_batches(company.cik, filings, fetch_document, batch_size=cfg.INSIDER_BATCH_SIZE)

    transactions: List[InsiderTransaction] = [t for txs in per_filing for t in txs]
    transactions.sort(key=lambda t: t.transaction_date, reverse=True)

    filing_dates = [f.filing_date for f in filings]
    date_range = (min(filing_dates), max(filing_dates)) if filing_dates else ("", "")

    summary = summarize_transactions(transactions)
    _debug(
        f"cik={company.cik} filings={len(filings)} txs={len(transactions)} "
        f"buy_value={summary.buy_value} sell_value={summary.sell_value} signal={summary.signal}"
    )

    return InsiderActivity(
        company=company,
        period_days=days,
        transactions=transactions,
        summary=summary,
        provenance=InsiderProvenance(
            filing_count=len(filings),
            filing_date_range=date_range,
            accession_numbers=[f.accession_number for f in filings],
        ),
    )
