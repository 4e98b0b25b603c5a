import logging
from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from . import settings
from .contracts import to_date, is_active
from .schemas import (
    Alert,
    AlertSeverity,
    AlertType,
    ClientContract,
    PositionStatus,
    PositionSummary,
    SupplierContract,
)

logger = logging.getLogger(__name__)

_SEVERITY_RANK = {
    AlertSeverity.CRITICAL: 0,
    AlertSeverity.WARNING: 1,
    AlertSeverity.INFO: 2,
}


def _timestamp(as_of: date) -> str:
    return datetime.combine(as_of, time.min).isoformat()


def build_position_alerts(
    positions: Sequence[PositionSummary], as_of: Optional[date] = None
) -> list[Alert]:
    """One alert per SHORT or CRITICAL position."""
    as_of = as_of or date.today()
    alerts = []
    for p in positions:
        if p.status is PositionStatus.CRITICAL:
            alert_type, severity = AlertType.POSITION_CRITICAL, AlertSeverity.CRITICAL
        elif p.status is PositionStatus.SHORT:
            alert_type, severity = AlertType.POSITION_SHORT, AlertSeverity.WARNING
        else:
            continue

        alerts.append(
            Alert(
                id=f"{alert_type.value}_{p.sku.lower()}",
                created_at=_timestamp(as_of),
                type=alert_type,
                severity=severity,
                sku=p.sku,
                message=f"{p.article_name or p.sku}: net position {p.net_position_kg:.0f} kg ({p.status.value})",
            )
        )
    return alerts


def build_expiry_alerts(
    supplier_contracts: Sequence[SupplierContract],
    client_contracts: Sequence[ClientContract],
    as_of: Optional[date] = None,
    window_days: Optional[int] = None,
) -> list[Alert]:
    """Active contracts whose end date falls within [as_of, as_of + window_days]."""
    as_of = as_of or date.today()
    if window_days is None:
        window_days = settings.CONTRACT_EXPIRY_WARNING_DAYS
    horizon = as_of + timedelta(days=window_days)

    candidates = [
        ("supplier", c.supplier_code, c.supplier_name, c) for c in supplier_contracts
    ] + [("client", c.client_code, c.client_name, c) for c in client_contracts]

    alerts = []
    seen: dict[str, int] = {}
    for side, code, name, contract in candidates:
        if not is_active(contract):
            continue
        end = to_date(contract.date_end)
        if end is None or not (as_of <= end <= horizon):
            continue

        days_left = (end - as_of).days
        ref = getattr(contract, "contract_id", "") or code
        # Same partner, SKU and end date: numbered in input order.
        alert_id = f"{AlertType.CONTRACT_EXPIRING.value}_{side}_{ref}_{contract.sku.lower()}_{end.isoformat()}"
        seen[alert_id] = seen.get(alert_id, 0) + 1
        if seen[alert_id] > 1:
            alert_id = f"{alert_id}_{seen[alert_id]}"
        alerts.append(
            Alert(
                id=alert_id,
                created_at=_timestamp(as_of),
                type=AlertType.CONTRACT_EXPIRING,
                severity=AlertSeverity.INFO,
                sku=contract.sku,
                message=f"{side.capitalize()} contract {name or code} on {contract.sku} ends in {days_left} day(s) ({end.isoformat()})",
            )
        )
    return alerts


def build_alerts(
    positions: Sequence[PositionSummary],
    supplier_contracts: Sequence[SupplierContract],
    client_contracts: Sequence[ClientContract],
    as_of: Optional[date] = None,
    window_days: Optional[int] = None,
) -> list[Alert]:
    """All alerts for a snapshot, most severe first."""
    alerts = build_position_alerts(positions, as_of) + build_expiry_alerts(
        supplier_contracts, client_contracts, as_of, window_days
    )
    alerts.sort(key=lambda a: _SEVERITY_RANK[a.severity])
    logger.debug(f"Built {len(alerts)} alerts.")
    return alerts
