import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from edgar_signals.compute.growth import growth, growth_signal
from edgar_signals.compute.provenance import build_provenance
from edgar_signals.config import load_config
from edgar_signals.models import CompanyRef
from edgar_signals.util.normalization import normalize_cik
from edgar_signals.xbrl.definitions import find_metric_by_name
from edgar_signals.xbrl.normalizer import normalize_metric


def main() -> None:
    if len(sys.argv) < 3:
        print("Usage: python scripts/query_metric.py <cik> <metric name> [years]")
        sys.exit(2)

    cik = normalize_cik(sys.argv[1])
    metric = find_metric_by_name(sys.argv[2])
    if cik is None or metric is None:
        print(f"Unknown company or metric: cik={sys.argv[1]} metric={sys.argv[2]}")
        sys.exit(2)
    years = int(sys.argv[3]) if len(sys.argv) > 3 else None

    cfg = load_config()
    company = CompanyRef(cik=cik)
    result = normalize_metric(company, metric, years, cfg=cfg)
    if not result.data_points:
        print(f"No annual data found for {metric.display_name} (cik={cik})")
        sys.exit(1)

    signal = growth_signal([dp.value for dp in result.data_points])
    out = {
        "data_points": [dp.to_dict() for dp in result.data_points],
        "calculations": growth(result.data_points).to_dict(),
        "growth_signal": signal.to_dict() if signal is not None else None,
        "provenance": build_provenance(
            result.data_points, metric, result.concept_used, result.concept_selection, result.restatements
        ).to_dict(),
    }
    print(json.dumps(out, indent=2))


if __name__ == "__main__":
    main()
