# services/data_export.py

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd

from puff_tracker.core.models import DailyLog, Settings, UnlockedAchievement

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.2"
CSV_COLUMNS = ["date", "count", "timestamps", "cost"]

def _rows(log: DailyLog, settings: Settings) -> List[Dict[str, Any]]:
    return [
        {
            "date": day.isoformat(),
            "count": count,
            "timestamps": ";".join(log.timestamps.get(day, [])),
            "cost": round(count * settings.cost_per_unit, 2)
        }
        for day, count in log.items()
    ]

def export_to_json(log: DailyLog, settings: Settings,
                   achievements: List[UnlockedAchievement]) -> bytes:
    export_data = {
        "export_info": {
            "format": "json",
            "version": EXPORT_VERSION,
            "exported_at": datetime.now().isoformat()
        },
        "settings": settings.to_dict(),
        "puffData": log.counts_to_dict(),
        "puffTimestamps": log.timestamps_to_dict(),
        "achievements": [record.to_dict() for record in achievements]
    }
    return json.dumps(export_data, ensure_ascii=False, indent=2).encode("utf-8")

def export_to_csv(log: DailyLog, settings: Settings) -> bytes:
    """One row per tracked day"""
    rows = _rows(log, settings)
    if not rows:
        return (",".join(CSV_COLUMNS) + "\n").encode("utf-8")
    df = pd.DataFrame(rows, columns=CSV_COLUMNS)
    return df.to_csv(index=False).encode("utf-8")

def export_data(log: DailyLog, settings: Settings, achievements: List[UnlockedAchievement],
                format: str = "json") -> Optional[bytes]:
    fmt = format.lower()
    if fmt == "json":
        payload = export_to_json(log, settings, achievements)
    elif fmt == "csv":
        payload = export_to_csv(log, settings)
    else:
        logger.warning(f"Unsupported export format: {format}")
        return None

    logger.info(f"📤 {fmt.upper()} export prepared ({len(log)} days)")
    return payload
