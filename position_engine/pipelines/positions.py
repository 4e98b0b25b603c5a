import logging
from datetime import date
from typing import Any, Optional

from pydantic import ValidationError

from position_engine import parsers, settings, utils
from position_engine.pipeline import DataPipeline, SourceStatus
from position_engine.schemas import PositionStatus, PositionSummary
from position_engine.snapshot import PositionSnapshot, build_snapshot

logger = logging.getLogger(__name__)


class PositionPipeline(DataPipeline):
    def __init__(
        self,
        test_mode: bool = False,
        threshold_kg: Optional[float] = None,
        completion_policy: Optional[str] = None,
        as_of: Optional[date] = None,
    ):
        self.SOURCE_REGISTRY = [
            {
                "source": "articles",
                "file": settings.ARTICLES_FILENAME_PREFIX,
                "func": parsers.parse_articles,
            },
            {
                "source": "supplier_contracts",
                "file": settings.SUPPLIER_CONTRACTS_FILENAME_PREFIX,
                "func": parsers.parse_supplier_contracts,
            },
            {
                "source": "client_contracts",
                "file": settings.CLIENT_CONTRACTS_FILENAME_PREFIX,
                "func": parsers.parse_client_contracts,
            },
        ]
        super().__init__(
            settings.POSITIONS_FILENAME_BASE,
            sources=[s["source"] for s in self.SOURCE_REGISTRY],
            test_mode=test_mode,
        )
        self.threshold_kg = threshold_kg
        self.completion_policy = completion_policy
        self.as_of = as_of or date.today()
        self.snapshot: Optional[PositionSnapshot] = None

    def extract(self) -> Optional[dict[str, Any]]:
        logger.info("--- Loading Articles & Contracts ---")

        raw_data = {}
        for entry in self.SOURCE_REGISTRY:
            source = entry["source"]
            logger.info(f"\n-- Processing Source: {source} --")

            found_info = utils.find_latest_report(settings.INPUT_DIR, entry["file"])
            if not found_info:
                # A missing source is read as empty: no stock or no contracts.
                logger.warning(f"  > ⚠️  File missing ({entry['file']}*.csv). Treating as empty.")
                raw_data[source] = []
                continue

            path, file_date = found_info
            logger.info(f"  > Found: {path.name} (File Date: {file_date})")

            df = utils.load_csv(path, sep=settings.CSV_DELIMITER)
            if df is None:
                logger.warning(f"  > ⚠️  Could not read {path.name}. Treating as empty.")
                raw_data[source] = []
                continue

            if source == "articles":
                raw_data[source] = entry["func"](df)
            else:
                raw_data[source] = entry["func"](df, self.completion_policy, self.as_of)
            self.status_summary[source] = SourceStatus(
                file_name=path.name, report_date=file_date, records=len(raw_data[source])
            )

        if not any(raw_data.values()):
            return None
        return raw_data

    def transform(self, raw_data: dict[str, Any]) -> Optional[list[PositionSummary]]:
        logger.info("\n--- Calculating Net Positions ---")
        try:
            self.snapshot = build_snapshot(
                raw_data.get("articles", []),
                raw_data.get("supplier_contracts", []),
                raw_data.get("client_contracts", []),
                threshold_kg=self.threshold_kg,
                as_of=self.as_of,
            )
        except ValidationError as e:
            logger.error("❌ Data validation failed!")
            logger.error(e)
            return None

        kpis = self.snapshot.kpis
        logger.info(
            f"  > {kpis.total_products} SKUs | {kpis.short_count} SHORT | "
            f"{kpis.critical_count} CRITICAL | {kpis.active_contracts} active contracts"
        )
        for position in self.snapshot.positions:
            if position.status is not PositionStatus.LONG:
                logger.info(
                    f"    - {position.status.value:<8} {position.sku}: "
                    f"{utils.format_weight(position.net_position_kg)}"
                )

        return list(self.snapshot.positions)

    def extra_payload(self) -> dict[str, Any]:
        if self.snapshot is None:
            return {}
        return {
            "alerts": [a.model_dump(mode="json") for a in self.snapshot.alerts],
            "kpis": self.snapshot.kpis.model_dump(mode="json"),
        }
