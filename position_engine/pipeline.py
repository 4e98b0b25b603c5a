import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from position_engine import data_handler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceStatus:
    """Which export fed a source, and how many records came out of it."""

    file_name: str
    report_date: date
    records: int

    def as_payload(self) -> dict[str, Any]:
        return {
            "file": self.file_name,
            "date": self.report_date.isoformat(),
            "records": self.records,
        }


class DataPipeline(ABC):
    """
    Base class for report pipelines: extract raw records per source, derive the
    report, then export it and notify the webhook.
    """

    def __init__(self, report_type: str, sources: list[str], test_mode: bool = False):
        self.report_type = report_type
        self.sources = sources
        self.test_mode = test_mode
        # None until a source file has been read
        self.status_summary: dict[str, Optional[SourceStatus]] = dict.fromkeys(sources)

    def run(self) -> Optional[list[Any]]:
        """Returns the report records, or None when the run was aborted."""
        logger.info(f"🚀 {self.report_type.upper()} REPORT")
        logger.info("-" * 30)

        raw_data = self.extract()
        if not raw_data:
            logger.warning(f"⚠️ No input records for {self.report_type}. Nothing to report.")
            self.load([])
            return None

        records = self.transform(raw_data)
        if records is None:
            logger.error(f"❌ Could not build the {self.report_type} report.")
            return None

        self.load(records)
        logger.info(f"✅ {self.report_type.capitalize()} report done ({len(records)} rows).\n")
        logger.info("=" * 60)
        return records

    @abstractmethod
    def extract(self) -> Optional[dict[str, Any]]:
        """
        Reads the latest export of every source. Returns parsed records keyed
        by source name, or None when nothing usable was found. Fills
        self.status_summary for each file it reads.
        """

    @abstractmethod
    def transform(self, raw_data: dict[str, Any]) -> Optional[list[Any]]:
        """Derives the report rows. None aborts the run."""

    def extra_payload(self) -> dict[str, Any]:
        return {}

    def log_status_summary(self):
        logger.info("\n--- Sources ---")
        for source in self.sources:
            status = self.status_summary.get(source)
            if status is None:
                logger.info(f"{source}: no file")
            else:
                logger.info(
                    f"{source}: {status.file_name} "
                    f"({status.report_date.isoformat()}, {status.records} records)"
                )

    def load(self, records: list[Any]):
        self.log_status_summary()

        if records:
            data_handler.save_outputs(records, self.report_type)
        else:
            logger.warning("No report rows; nothing written.")

        if self.test_mode:
            logger.info("🧪 Test Mode: webhook not called.")
            return

        data_handler.post_to_webhook(
            validated_data=records,
            status_summary={
                source: status.as_payload() if status else None
                for source, status in self.status_summary.items()
            },
            report_type=self.report_type,
            extra=self.extra_payload(),
        )
