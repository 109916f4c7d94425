from __future__ import annotations

import re
from typing import List, Optional
from xml.etree import ElementTree as ET

from edgar_signals.errors import Form4ParseError
from edgar_signals.models import InsiderInfo, InsiderTransaction
from edgar_signals.util.normalization import format_owner_name, parse_float, round_half_up, strip_cik


def _debug(msg: str) -> None:
    print(f"[parser] {msg}")


# Human-readable transaction code labels
TRANSACTION_CODE_LABELS = {
    "P": "BUY",
    "S": "SELL",
    "A": "GRANT",
    "D": "DISP",
    "F": "TAX",
    "M": "EXERCISE",
    "G": "GIFT",
    "C": "CONVERT",
    "X": "EXPIRE",
    "J": "OTHER",
}

_OWNERSHIP_START = re.compile(r"<ownershipdocument\b", flags=re.IGNORECASE)
_OWNERSHIP_END = re.compile(r"</ownershipdocument>", flags=re.IGNORECASE)


def _strip_ns(tag: str) -> str:
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


def _find_child(parent: ET.Element | None, name: str) -> Optional[ET.Element]:
    if parent is None:
        return None
    for child in parent:
        if _strip_ns(child.tag) == name:
            return child
    return None


def _find_path(parent: ET.Element | None, path: List[str]) -> Optional[ET.Element]:
    cur: Optional[ET.Element] = parent
    for p in path:
        if cur is None:
            return None
        cur = _find_child(cur, p)
    return cur


def _find_text(parent: ET.Element | None, path: List[str]) -> Optional[str]:
    cur = _find_path(parent, path)
    if cur is None:
        return None
    text = (cur.text or "").strip()
    return text if text else None


def _find_amount_text(parent: ET.Element | None, path: List[str]) -> Optional[str]:
    """Amount fields come as <foo><value>TEXT</value></foo> or, in older filings, <foo>TEXT</foo>."""
    el = _find_path(parent, path)
    if el is None:
        return None
    nested = _find_text(el, ["value"])
    if nested is not None:
        return nested
    text = (el.text or "").strip()
    return text if text else None


def _flag(v: Optional[str]) -> bool:
    return v in ("1", "true")


def _round_half_up(x: float) -> int:
    return int(round_half_up(x))


def extract_ownership_fragment(text: str) -> str:
    """Cut the <ownershipDocument> element out of .txt/.htm wrappers; return text unchanged otherwise."""
    m_start = _OWNERSHIP_START.search(text)
    if not m_start:
        return text
    m_end = _OWNERSHIP_END.search(text, m_start.end())
    if not m_end:
        return text
    return text[m_start.start() : m_end.end()]


def _parse_root(text: str) -> ET.Element:
    try:
        root = ET.fromstring(extract_ownership_fragment(text).strip())
    except ET.ParseError as e:
        raise Form4ParseError(f"Unparseable Form 4 markup: {e}") from e

    # Some filings wrap ownershipDocument; search for it
    if _strip_ns(root.tag).lower() != "ownershipdocument":
        for el in root.iter():
            if _strip_ns(el.tag).lower() == "ownershipdocument":
                return el
    return root


def parse_reporting_owner(root: ET.Element) -> Optional[InsiderInfo]:
    """Owner identity from the first reportingOwner element; None when the owner has no name."""
    ro_el = _find_child(root, "reportingOwner")
    if ro_el is None:
        return None

    ro_id = _find_child(ro_el, "reportingOwnerId")
    name = _find_text(ro_id, ["rptOwnerName"])
    if not name:
        return None
    cik = _find_text(ro_id, ["rptOwnerCik"])

    rel = _find_child(ro_el, "reportingOwnerRelationship")
    return InsiderInfo(
        cik=strip_cik(cik),
        name=format_owner_name(name),
        is_director=_flag(_find_text(rel, ["isDirector"])),
        is_officer=_flag(_find_text(rel, ["isOfficer"])),
        is_ten_percent_owner=_flag(_find_text(rel, ["isTenPercentOwner"])),
        officer_title=_find_text(rel, ["officerTitle"]) or "",
    )


def _parse_transaction(
    tx_el: ET.Element,
    insider: InsiderInfo,
    accession_number: str,
    filing_date: str,
) -> Optional[InsiderTransaction]:
    tx_date = _find_amount_text(tx_el, ["transactionDate"])
    if not tx_date:
        return None

    tx_code = _find_text(tx_el, ["transactionCoding", "transactionCode"])
    if not tx_code or len(tx_code) != 1 or not tx_code.isalpha():
        return None

    shares = parse_float(_find_amount_text(tx_el, ["transactionAmounts", "transactionShares"]))
    if shares is None or shares == 0:
        return None
    shares_rounded = _round_half_up(shares)
    if shares_rounded == 0:
        return None

    price = parse_float(_find_amount_text(tx_el, ["transactionAmounts", "transactionPricePerShare"]))
    acq_disp = _find_amount_text(tx_el, ["transactionAmounts", "transactionAcquiredDisposedCode"])
    shares_after = parse_float(
        _find_amount_text(tx_el, ["postTransactionAmounts", "sharesOwnedFollowingTransaction"])
    )

    return InsiderTransaction(
        insider=insider,
        transaction_date=tx_date,
        transaction_code=tx_code,
        transaction_type="acquisition" if acq_disp == "A" else "disposition",
        shares=shares_rounded,
        price_per_share=round_half_up(price, 2) if price is not None else None,
        total_value=round_half_up(shares * price, 2) if price is not None else None,
        shares_owned_after=_round_half_up(shares_after) if shares_after is not None else 0,
        filing_date=filing_date,
        filing_accession=accession_number,
    )


def parse_form4(text: str, accession_number: str, filing_date: str) -> List[InsiderTransaction]:
    """Parse a Form 4 document into non-derivative insider transactions.

    Tolerant by construction: any missing field skips the transaction (or,
    for the owner name, the whole document) instead of failing. Only markup
    that is not XML at all raises Form4ParseError.
    """
    root = _parse_root(text)

    insider = parse_reporting_owner(root)
    if insider is None:
        _debug(f"No reporting owner in {accession_number}; skipping")
        return []

    transactions: List[InsiderTransaction] = []
    blocks = 0
    nd_table = _find_child(root, "nonDerivativeTable")
    if nd_table is not None:
        for tx in nd_table:
            if _strip_ns(tx.tag) != "nonDerivativeTransaction":
                continue
            blocks += 1
            parsed = _parse_transaction(tx, insider, accession_number, filing_date)
            if parsed is not None:
                transactions.append(parsed)

    _debug(
        f"Parsed Form4: accession={accession_number} owner_cik={insider.cik} "
        f"blocks={blocks} txs={len(transactions)}"
    )
    return transactions
