from __future__ import annotations

import time
import threading
from typing import Any, Dict

import requests

from edgar_signals.errors import NotFoundError, RateLimitError, SecApiError
from edgar_signals.util.normalization import normalize_cik


def _debug(msg: str) -> None:
    print(f"[sec] {msg}")


# Per-process polite throttling for SEC endpoints. Shared by the insider
# aggregator's worker threads, so it must be lock-guarded.
_SEC_LAST_REQUEST_MONO: float = 0.0
_SEC_LOCK = threading.Lock()

DATA_BASE_URL = "https://data.sec.gov"
ARCHIVES_BASE_URL = "https://www.sec.gov/Archives/edgar/data"


def _throttle(min_interval_seconds: float | None) -> None:
    if not min_interval_seconds or min_interval_seconds <= 0:
        return
    global _SEC_LAST_REQUEST_MONO
    with _SEC_LOCK:
        now = time.monotonic()
        dt = now - _SEC_LAST_REQUEST_MONO
        if dt < min_interval_seconds:
            time.sleep(min_interval_seconds - dt)
        _SEC_LAST_REQUEST_MONO = time.monotonic()


def _cik10(cik: str) -> str:
    cik10 = normalize_cik(cik)
    if cik10 is None:
        raise ValueError(f"Invalid CIK: {cik!r}")
    return cik10


def _cik_path_component(cik10: str) -> str:
    # EDGAR archive paths use the integer CIK without leading zeros
    return str(int(cik10))


def _accession_nodash(accession_number: str) -> str:
    return str(accession_number or "").replace("-", "").strip()


def _get(url: str, user_agent: str, min_interval_seconds: float | None, timeout: int) -> requests.Response:
    _debug(f"GET {url}")
    _throttle(min_interval_seconds)
    r = requests.get(url, headers={"User-Agent": user_agent}, timeout=timeout)
    if r.status_code == 404:
        raise NotFoundError(url)
    if r.status_code == 429:
        raise RateLimitError(url)
    if r.status_code != 200:
        raise SecApiError(f"SEC request failed {r.status_code}: {r.text[:500]}", r.status_code, url)
    return r


def _get_json(
    url: str,
    user_agent: str,
    min_interval_seconds: float | None = None,
    timeout: int = 60,
) -> Dict[str, Any]:
    return _get(url, user_agent, min_interval_seconds, timeout).json()


def _get_text(
    url: str,
    user_agent: str,
    min_interval_seconds: float | None = None,
    timeout: int = 60,
) -> str:
    return _get(url, user_agent, min_interval_seconds, timeout).text


def fetch_company_facts(
    cik: str,
    user_agent: str,
    min_interval_seconds: float | None = None,
    timeout: int = 60,
) -> Dict[str, Any]:
    """Fetch the XBRL company-facts document (all concepts, all filings) for a company."""
    url = f"{DATA_BASE_URL}/api/xbrl/companyfacts/CIK{_cik10(cik)}.json"
    return _get_json(url, user_agent, min_interval_seconds, timeout)


def fetch_company_submissions(
    cik: str,
    user_agent: str,
    min_interval_seconds: float | None = None,
    timeout: int = 60,
) -> Dict[str, Any]:
    """Fetch the submissions JSON; `filings.recent` is the most-recent-first filing index."""
    url = f"{DATA_BASE_URL}/submissions/CIK{_cik10(cik)}.json"
    return _get_json(url, user_agent, min_interval_seconds, timeout)


def fetch_filing_document(
    cik: str,
    accession_number: str,
    filename: str,
    user_agent: str,
    min_interval_seconds: float | None = None,
    timeout: int = 60,
) -> str:
    """Fetch one document from a filing's archive directory as text."""
    cik_path = _cik_path_component(_cik10(cik))
    url = f"{ARCHIVES_BASE_URL}/{cik_path}/{_accession_nodash(accession_number)}/{filename}"
    return _get_text(url, user_agent, min_interval_seconds, timeout)
