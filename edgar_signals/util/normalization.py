from __future__ import annotations

import math
from typing import Optional


def normalize_cik(cik: str | int | None) -> str | None:
    """Normalize a CIK: digits only, left-pad to 10.

    Returns None if input is blank or contains no digits.
    """
    if cik is None:
        return None
    s = str(cik).strip()
    if not s:
        return None
    digits = "".join(ch for ch in s if ch.isdigit())
    if not digits:
        return None
    return digits.zfill(10)


def strip_cik(cik: str | None) -> str:
    """Owner CIK without leading zeros ('0' when nothing is left)."""
    return (cik or "").strip().lstrip("0") or "0"


def parse_float(s: Optional[str]) -> Optional[float]:
    if s is None:
        return None
    t = str(s).strip()
    if not t:
        return None
    # Remove commas
    t = t.replace(",", "")
    try:
        v = float(t)
    except ValueError:
        return None
    # nan/inf are not amounts
    if v != v or v in (float("inf"), float("-inf")):
        return None
    return v


def format_owner_name(name: str) -> str:
    """Format an EDGAR owner name ("COOK TIMOTHY D") as "Timothy D Cook".

    Names that already contain a space and are not all upper-case are assumed
    to be in display order and returned unchanged.
    """
    if " " in name and name != name.upper():
        return name

    parts = name.split()
    if len(parts) >= 2:
        reordered = parts[1:] + parts[:1]
        return " ".join(p[:1].upper() + p[1:].lower() for p in reordered)

    return name[:1].upper() + name[1:].lower()


def round_half_up(x: float, digits: int = 0) -> float:
    """Round with exact halves going up (10.125 -> 10.13, -2.5 -> -2.0).

    Non-finite input is returned unchanged.
    """
    if not math.isfinite(x):
        return x
    scale = 10**digits
    return math.floor(x * scale + 0.5) / scale
