"""SEC EDGAR financial signals - normalization core.

Turns raw regulatory disclosures into clean, provenance-tracked data:
- XBRL company facts -> deduplicated annual/quarterly DataPoints per metric.
- Form 4 ownership filings -> insider transactions + buy/sell signal.
- Growth math (YoY, CAGR, acceleration) over either series.

HTTP fetching is a thin collaborator (see edgar_signals.sec.edgar); everything
else is in-memory and side-effect free.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
