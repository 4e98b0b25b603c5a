import logging
import math
import re
from datetime import date
from typing import Any, Optional, Union

import pandas as pd
from pydantic import ValidationError

from . import settings
from .contracts import build_client_contract, build_supplier_contract, parse_policy
from .schemas import Article, ClientContract, CompletionPolicy, SupplierContract

logger = logging.getLogger(__name__)

_LEADING_NUMBER = re.compile(r"-?(\d+(\.\d*)?|\.\d+)")
_DMY_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def parse_number(value: Any) -> float:
    """
    Lenient spreadsheet number parser. Blank or unparseable cells become 0.
    '1 250,5 kg' -> 1250.5
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return 0.0 if math.isnan(value) else float(value)

    cleaned = re.sub(r"\s", "", str(value)).replace(",", ".")
    cleaned = re.sub(r"[^\d.-]", "", cleaned)
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return 0.0
    return float(match.group(0))


def parse_integer(value: Any) -> int:
    return round(parse_number(value))


def parse_date(value: Any) -> str:
    """'5/3/2025' -> '2025-03-05' (day first). Anything else is returned stripped."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    text = str(value).strip()
    match = _DMY_DATE.match(text)
    if match:
        day, month, year = match.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"
    return text


def parse_string(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value).strip()


def _rows(df: pd.DataFrame, column_map: dict[str, str]) -> list[dict[str, Any]]:
    """Re-keys DataFrame rows from export headers to field names. Missing columns read as None."""
    missing = [header for header in column_map.values() if header not in df.columns]
    if missing:
        logger.warning(f"  > Missing columns (defaulted): {', '.join(missing)}")

    rows = []
    for record in df.to_dict("records"):
        rows.append({field: record.get(header) for field, header in column_map.items()})
    return rows


def parse_articles(df: pd.DataFrame) -> list[Article]:
    articles = []
    for row in _rows(df, settings.ARTICLE_COLUMNS):
        sku = parse_string(row["sku"])
        if not sku:
            continue
        articles.append(
            Article(
                sku=sku,
                name=parse_string(row["name"]),
                stock_uvc=parse_integer(row["stock_uvc"]),
                stock_kg=parse_number(row["stock_kg"]),
            )
        )
    logger.info(f"✅ Parsed {len(articles)} articles.")
    return articles


def parse_supplier_contracts(
    df: pd.DataFrame,
    policy: Union[str, CompletionPolicy, None] = None,
    as_of: Optional[date] = None,
) -> list[SupplierContract]:
    """Builds supplier contracts, deriving remaining/in-transit quantities and status."""
    policy = parse_policy(policy)
    contracts = []
    for row in _rows(df, settings.SUPPLIER_CONTRACT_COLUMNS):
        sku = parse_string(row["sku"])
        if not sku:
            continue
        try:
            contracts.append(
                build_supplier_contract(
                    policy=policy,
                    as_of=as_of,
                    supplier_code=parse_string(row["supplier_code"]),
                    supplier_name=parse_string(row["supplier_name"]) or settings.DEFAULT_SUPPLIER_NAME,
                    sku=sku,
                    supplier_sku=parse_string(row["supplier_sku"]),
                    article_name=parse_string(row["article_name"]),
                    price_buy=parse_number(row["price_buy"]),
                    price_unit=parse_string(row["price_unit"]) or settings.DEFAULT_PRICE_UNIT,
                    date_start=parse_date(row["date_start"]),
                    date_end=parse_date(row["date_end"]),
                    qty_contracted_uvc=parse_integer(row["qty_contracted_uvc"]),
                    qty_contracted_kg=parse_number(row["qty_contracted_kg"]),
                    qty_ordered_uvc=parse_integer(row["qty_ordered_uvc"]),
                    qty_received_uvc=parse_integer(row["qty_received_uvc"]),
                    qty_in_transit_uvc=parse_integer(row["qty_in_transit_uvc"]),
                )
            )
        except ValidationError as e:
            logger.warning(f"  > Skipping supplier contract row for SKU {sku}: {e}")
    logger.info(f"✅ Parsed {len(contracts)} supplier contracts.")
    return contracts


def parse_client_contracts(
    df: pd.DataFrame,
    policy: Union[str, CompletionPolicy, None] = None,
    as_of: Optional[date] = None,
) -> list[ClientContract]:
    """Builds client contracts; remaining kg is contracted minus purchased."""
    policy = parse_policy(policy)
    contracts = []
    for row in _rows(df, settings.CLIENT_CONTRACT_COLUMNS):
        sku = parse_string(row["sku"])
        if not sku:
            continue
        try:
            contracts.append(
                build_client_contract(
                    policy=policy,
                    as_of=as_of,
                    contract_id=parse_string(row["contract_id"]),
                    client_code=parse_string(row["client_code"]),
                    client_name=parse_string(row["client_name"]) or settings.DEFAULT_CLIENT_NAME,
                    sku=sku,
                    article_name=parse_string(row["article_name"]),
                    date_start=parse_date(row["date_start"]),
                    date_end=parse_date(row["date_end"]),
                    price_sell=parse_number(row["price_sell"]),
                    qty_contracted_uvc=parse_integer(row["qty_contracted_uvc"]),
                    qty_contracted_kg=parse_number(row["qty_contracted_kg"]),
                    qty_purchased_uvc=parse_integer(row["qty_purchased_uvc"]),
                    qty_purchased_kg=parse_number(row["qty_purchased_kg"]),
                )
            )
        except ValidationError as e:
            logger.warning(f"  > Skipping client contract row for SKU {sku}: {e}")
    logger.info(f"✅ Parsed {len(contracts)} client contracts.")
    return contracts
