import os
from dataclasses import dataclass

# Optional: load a local .env file if present.
try:
    from dotenv import load_dotenv

    load_dotenv()
except Exception:
    # If python-dotenv isn't installed or .env isn't present, that's fine.
    pass


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    Everything is read from environment variables (or a .env file) so the
    same code runs in scripts, the API and tests without edits.
    """

    # -----------------
    # SEC
    # -----------------
    # EDGAR requires a descriptive User-Agent with contact details.
    SEC_USER_AGENT: str = os.environ.get(
        "SEC_USER_AGENT",
        "EdgarSignals/0.1 (contact: you@example.com)",
    )

    # Polite per-process spacing between SEC requests. Pacing belongs here,
    # not in the insider aggregator (which only bounds in-flight requests).
    SEC_MIN_INTERVAL_SECONDS: float = float(os.environ.get("SEC_MIN_INTERVAL_SECONDS", "0.12"))
    SEC_TIMEOUT_SECONDS: int = int(os.environ.get("SEC_TIMEOUT_SECONDS", "60"))

    # -----------------
    # Metric normalization
    # -----------------
    DEFAULT_YEARS: int = int(os.environ.get("DEFAULT_YEARS", "5"))
    DEFAULT_QUARTERS: int = int(os.environ.get("DEFAULT_QUARTERS", "8"))

    # -----------------
    # Insider activity (Form 4)
    # -----------------
    INSIDER_LOOKBACK_DAYS: int = int(os.environ.get("INSIDER_LOOKBACK_DAYS", "90"))
    INSIDER_MAX_FILINGS: int = int(os.environ.get("INSIDER_MAX_FILINGS", "50"))
    INSIDER_BATCH_SIZE: int = int(os.environ.get("INSIDER_BATCH_SIZE", "5"))

    # -----------------
    # CORS (development)
    # -----------------
    CORS_ALLOW_ORIGINS: str = os.environ.get(
        "CORS_ALLOW_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
    )


def load_config() -> Config:
    return Config()
