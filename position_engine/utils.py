import logging
import re
from datetime import date, datetime
from pathlib import Path
import pandas as pd

logger = logging.getLogger(__name__)

_REPORT_DATE_PATTERN = re.compile(r"(\d{4}-\d{2}-\d{2})\.csv$")


def get_date_suffix_for_filename() -> str:
    """Returns the current date as a YYYY-MM-DD string for filenames."""
    return datetime.now().strftime("%Y-%m-%d")


def find_latest_report(directory: Path, prefix: str) -> tuple[Path, date] | None:
    """
    Finds the most recent '<prefix>YYYY-MM-DD.csv' in directory.
    Returns (path, report_date), or None when no file matches.
    """
    if not directory.exists():
        return None

    candidates = []
    for path in directory.glob(f"{prefix}*.csv"):
        match = _REPORT_DATE_PATTERN.search(path.name)
        if not match:
            continue
        try:
            report_date = date.fromisoformat(match.group(1))
        except ValueError:
            logger.warning(f"Ignoring {path.name}: invalid date in filename.")
            continue
        candidates.append((report_date, path))

    if not candidates:
        return None

    report_date, path = max(candidates)
    return path, report_date


def load_csv(file_path: Path, skiprows: int = 0, sep: str = ",") -> pd.DataFrame | None:
    """
    CSV loader with an encoding fallback: UTF-8 (with BOM support) first,
    then latin-1.
    Every cell is read as a string; numeric parsing happens in parsers.
    """
    read_kwargs = {
        "skiprows": skiprows,
        "sep": sep,
        "dtype": str,
        "keep_default_na": False,
    }
    try:
        return pd.read_csv(file_path, encoding="utf-8-sig", **read_kwargs)

    except UnicodeDecodeError:
        logger.info(
            f"UTF-8 decoding failed for {file_path.name}. Retrying with 'latin-1'."
        )
        try:
            return pd.read_csv(file_path, encoding="latin-1", **read_kwargs)
        except Exception as e_latin1:
            logger.error(
                f"Could not read {file_path.name} even with latin-1. Reason: {e_latin1}"
            )
            return None

    except FileNotFoundError:
        logger.info(f"Report not found at {file_path}, skipping.")
        return None

    except Exception as e_general:
        logger.error(
            f"An unexpected error occurred while reading {file_path.name}. Reason: {e_general}"
        )
        return None


def format_weight(kg: float) -> str:
    """1234.5 -> '1.23 T', 950.4 -> '950 kg'."""
    if abs(kg) >= 1000:
        return f"{kg / 1000:.2f} T"
    return f"{round(kg)} kg"
