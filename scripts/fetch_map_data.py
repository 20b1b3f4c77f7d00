"""
Fetch and validate map datasets from CLI.
"""

from __future__ import annotations

import argparse
import json

from citymaps.logging_utils import configure_logging
from citymaps.services.map_data_service import LOCATIONS, OVERLAY, REGIONS, STATISTICS, get_map_data_service


def main() -> int:
    parser = argparse.ArgumentParser(description="Fetch map datasets and print a load summary.")
    parser.add_argument(
        "--dataset",
        dest="datasets",
        action="append",
        choices=[LOCATIONS, STATISTICS, REGIONS, OVERLAY],
        default=None,
        help="Dataset to load; repeat to load several. Defaults to all.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default="WARNING",
        help="Logging level for pipeline events.",
    )
    args = parser.parse_args()
    configure_logging(args.log_level)

    service = get_map_data_service()
    loaders = {
        LOCATIONS: service.load_locations,
        STATISTICS: service.load_statistics,
        REGIONS: service.load_regions,
        OVERLAY: service.load_overlay,
    }

    payload = []
    for name in args.datasets or list(loaders):
        result = loaders[name]()
        payload.append(
            {
                "dataset": result.name,
                "status": result.status.value,
                "message": result.message,
                "records": _record_count(result.data),
                "rows_rejected": len(result.rejections),
                "rejections": [
                    {"row": rejection.row_number, "column": rejection.column, "message": rejection.message}
                    for rejection in result.rejections
                ],
            }
        )
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0 if all(item["status"] != "unavailable" for item in payload) else 1


def _record_count(data: object) -> int | None:
    if data is None:
        return None
    location_count = getattr(data, "location_count", None)
    if location_count is not None:
        return location_count
    features = getattr(data, "features", None)
    if features is not None:
        return len(features)
    return len(data)  # type: ignore[arg-type]


if __name__ == "__main__":
    raise SystemExit(main())
