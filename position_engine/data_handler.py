import json
import logging
from pathlib import Path
from typing import Any, Optional

import pandas as pd
import requests
from pydantic import BaseModel

from . import settings
from . import utils
from .schemas import PositionSummary

logger = logging.getLogger(__name__)


def positions_to_frame(positions: list[PositionSummary]) -> pd.DataFrame:
    """Export view of positions: configured columns, renamed to their CSV headers."""
    columns = settings.POSITION_EXPORT_COLUMNS
    df = pd.DataFrame([p.model_dump(mode="json") for p in positions])
    if df.empty:
        return pd.DataFrame(columns=list(columns.values()))
    return df[list(columns.keys())].rename(columns=columns)


def save_outputs(validated_data: list[BaseModel], report_name: str) -> Path:
    """Saves the records to a dated CSV and, if configured, a JSON dump. Returns the CSV path."""
    settings.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    date_suffix = utils.get_date_suffix_for_filename()

    csv_path = settings.OUTPUT_DIR / f"{report_name}_{date_suffix}.csv"
    json_path = settings.OUTPUT_DIR / f"{report_name}_{date_suffix}.json"

    if validated_data and isinstance(validated_data[0], PositionSummary):
        df = positions_to_frame(validated_data)
    else:
        df = pd.DataFrame([item.model_dump(mode="json") for item in validated_data])

    df.to_csv(csv_path, index=False, sep=settings.CSV_DELIMITER)
    logger.info(f"✅ Report saved to: {csv_path}")

    if settings.SAVE_JSON_OUTPUT:
        with open(json_path, "w") as f:
            json_data = [item.model_dump(mode="json") for item in validated_data]
            json.dump(json_data, f, indent=2, default=str)
        logger.info(f"✅ JSON output saved to: {json_path}")
    else:
        logger.info("Skipping JSON file save as per configuration.")

    return csv_path


def post_to_webhook(
    validated_data: list[BaseModel],
    status_summary: dict[str, Optional[dict[str, Any]]],
    report_type: str,
    extra: Optional[dict[str, Any]] = None,
):
    """
    Posts the records, the per-source status summary and any extra sections
    (alerts, KPIs) to the webhook.
    """
    if not settings.WEBHOOK_URL:
        logger.warning("⚠️ WEBHOOK_URL not set. Skipping webhook post.")
        return

    logger.info(f"🚀 Posting {report_type} data and summary to webhook.")

    payload = {
        "reportType": report_type,
        "reportData": [item.model_dump(mode="json") for item in validated_data],
        "statusSummary": status_summary,
    }
    payload.update(extra or {})

    try:
        response = requests.post(settings.WEBHOOK_URL, json=payload, timeout=15)
        response.raise_for_status()
        logger.info("✅ Data and summary successfully posted to webhook.")
    except requests.exceptions.RequestException as e:
        logger.error(f"❌ Error posting to webhook: {e}")
