import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from edgar_signals.config import load_config
from edgar_signals.models import CompanyRef
from edgar_signals.sec.insiders import fetch_insider_activity
from edgar_signals.util.normalization import normalize_cik


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python scripts/insider_activity.py <cik> [days]")
        sys.exit(2)

    cik = normalize_cik(sys.argv[1])
    if cik is None:
        print(f"Invalid CIK: {sys.argv[1]}")
        sys.exit(2)
    days = int(sys.argv[2]) if len(sys.argv) > 2 else None

    cfg = load_config()
    activity = fetch_insider_activity(CompanyRef(cik=cik), days, cfg=cfg)
    print(json.dumps(activity.summary.to_dict(), indent=2))
    print(f"filings={activity.provenance.filing_count} transactions={len(activity.transactions)}")


if __name__ == "__main__":
    main()
