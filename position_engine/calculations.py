"""
Net position calculator.

Folds one article and its contracts into a PositionSummary, classifies the
result into LONG / SHORT / CRITICAL and projects hypothetical client
commitments. Every function here is pure: inputs are never mutated and each
call returns fresh records.
"""

import logging
from typing import Iterable, Optional, Sequence

from . import settings
from .contracts import is_active
from .indexes import build_article_index, build_contract_indexes
from .schemas import (
    Article,
    ClientContract,
    DashboardKpis,
    PositionStatus,
    PositionSummary,
    SimulationResult,
    SupplierContract,
)

logger = logging.getLogger(__name__)


def resolve_threshold(threshold_kg: Optional[float] = None) -> float:
    """Returns the CRITICAL threshold magnitude, falling back to settings."""
    if threshold_kg is None:
        threshold_kg = settings.CRITICAL_THRESHOLD_KG
    if threshold_kg < 0:
        raise ValueError(
            f"Critical threshold must be a non-negative magnitude in kg, got {threshold_kg}"
        )
    return threshold_kg


def classify_position(
    net_position_kg: float, threshold_kg: Optional[float] = None
) -> PositionStatus:
    """
    Three-band classification of a net position:
        net >= 0                      -> LONG
        -threshold < net < 0          -> SHORT
        net <= -threshold             -> CRITICAL
    A deficit of exactly the threshold is CRITICAL, not SHORT: the comparison
    is net <= -threshold, never the strict net < -threshold.
    """
    threshold = resolve_threshold(threshold_kg)
    if net_position_kg >= 0:
        return PositionStatus.LONG
    if net_position_kg <= -threshold:
        return PositionStatus.CRITICAL
    return PositionStatus.SHORT


def _weighted_average(pairs: Iterable[tuple[float, float]]) -> float:
    """Average of (value, weight) pairs; 0 when the total weight is not positive."""
    total_value = 0.0
    total_weight = 0.0
    for value, weight in pairs:
        total_value += value * weight
        total_weight += weight
    if total_weight > 0:
        return total_value / total_weight
    return 0.0


def get_margin_percentage(buy_price: float, sell_price: float) -> float:
    if buy_price == 0:
        return 0.0
    return (sell_price - buy_price) / buy_price * 100


def calculate_position(
    article: Article,
    supplier_contracts: Sequence[SupplierContract],
    client_contracts: Sequence[ClientContract],
    threshold_kg: Optional[float] = None,
) -> PositionSummary:
    """
    Computes the PositionSummary for one article. Contracts of any status may
    be passed in; only active ones are aggregated.
    """
    active_supplier = [c for c in supplier_contracts if is_active(c)]
    active_client = [c for c in client_contracts if is_active(c)]

    supply_remaining_kg = sum(c.qty_remaining_kg for c in active_supplier)
    supply_remaining_uvc = sum(c.qty_remaining_uvc for c in active_supplier)
    supply_in_transit_kg = sum(c.qty_in_transit_kg for c in active_supplier)
    supply_in_transit_uvc = sum(c.qty_in_transit_uvc for c in active_supplier)

    demand_remaining_kg = sum(c.qty_remaining_kg for c in active_client)
    demand_remaining_uvc = sum(c.qty_remaining_uvc for c in active_client)

    total_available_kg = article.stock_kg + supply_remaining_kg + supply_in_transit_kg
    total_available_uvc = article.stock_uvc + supply_remaining_uvc + supply_in_transit_uvc

    net_position_kg = total_available_kg - demand_remaining_kg
    net_position_uvc = total_available_uvc - demand_remaining_uvc

    avg_buy_price = _weighted_average(
        (c.price_buy, c.qty_contracted_kg) for c in active_supplier
    )
    avg_sell_price = _weighted_average(
        (c.price_sell, c.qty_contracted_kg) for c in active_client
    )

    return PositionSummary(
        sku=article.sku,
        article_name=article.name,
        stock_kg=article.stock_kg,
        stock_uvc=article.stock_uvc,
        supply_remaining_kg=supply_remaining_kg,
        supply_remaining_uvc=supply_remaining_uvc,
        supply_in_transit_kg=supply_in_transit_kg,
        supply_in_transit_uvc=supply_in_transit_uvc,
        demand_remaining_kg=demand_remaining_kg,
        demand_remaining_uvc=demand_remaining_uvc,
        total_available_kg=total_available_kg,
        net_position_kg=net_position_kg,
        net_position_uvc=net_position_uvc,
        status=classify_position(net_position_kg, threshold_kg),
        supplier_contracts=len(active_supplier),
        client_contracts=len(active_client),
        avg_buy_price=avg_buy_price,
        avg_sell_price=avg_sell_price,
        margin_percent=get_margin_percentage(avg_buy_price, avg_sell_price),
    )


def _placeholder_article(sku: str, contracts: Sequence) -> Article:
    """Zero-stock stand-in for a SKU that only exists in contracts."""
    name = next((c.article_name for c in contracts if c.article_name), "")
    return Article(sku=sku, name=name, stock_uvc=0, stock_kg=0.0)


def calculate_all_positions(
    articles: Sequence[Article],
    supplier_contracts: Sequence[SupplierContract],
    client_contracts: Sequence[ClientContract],
    threshold_kg: Optional[float] = None,
) -> list[PositionSummary]:
    """
    One PositionSummary per distinct SKU (case-insensitive) found in articles,
    supplier contracts or client contracts. Articles come first in input order,
    followed by orphan SKUs in order of first appearance.
    """
    threshold = resolve_threshold(threshold_kg)
    article_index = build_article_index(articles)
    supplier_by_sku, client_by_sku = build_contract_indexes(
        supplier_contracts, client_contracts
    )

    # key -> display SKU, insertion-ordered
    skus: dict[str, str] = {}
    for record in [*articles, *supplier_contracts, *client_contracts]:
        skus.setdefault(record.sku.lower(), record.sku)

    positions = []
    orphan_count = 0
    for key, sku in skus.items():
        supplier_for_sku = supplier_by_sku.get(key, [])
        client_for_sku = client_by_sku.get(key, [])
        article = article_index.get(key)
        if article is None:
            orphan_count += 1
            article = _placeholder_article(sku, [*supplier_for_sku, *client_for_sku])
        positions.append(
            calculate_position(article, supplier_for_sku, client_for_sku, threshold)
        )

    logger.debug(
        f"Calculated {len(positions)} positions ({orphan_count} orphan SKUs)."
    )
    return positions


def sort_positions(positions: Iterable[PositionSummary]) -> list[PositionSummary]:
    """Most deficient first. Stable for equal net positions."""
    return sorted(positions, key=lambda p: p.net_position_kg)


def get_risk_positions(
    positions: Iterable[PositionSummary], limit: Optional[int] = None
) -> list[PositionSummary]:
    """Non-LONG positions, most deficient first."""
    if limit is None:
        limit = settings.RISK_POSITIONS_LIMIT
    at_risk = [p for p in positions if p.status is not PositionStatus.LONG]
    return sort_positions(at_risk)[:limit]


def simulate_new_client_contract(
    current_position: PositionSummary,
    new_contract_kg: float,
    threshold_kg: Optional[float] = None,
) -> SimulationResult:
    """
    What-if projection of a new client commitment against a position.
    A warning is only produced when a LONG position would stop being LONG.
    """
    if new_contract_kg < 0:
        raise ValueError(f"Simulated contract volume must be >= 0, got {new_contract_kg}")

    after = current_position.net_position_kg - new_contract_kg
    status_after = classify_position(after, threshold_kg)

    warning = None
    if (
        current_position.status is PositionStatus.LONG
        and status_after is not PositionStatus.LONG
    ):
        warning = f"This contract would create a deficit of {abs(after):.0f} kg"

    return SimulationResult(
        current=current_position.net_position_kg,
        after=after,
        status_before=current_position.status,
        status_after=status_after,
        warning=warning,
    )


def compute_dashboard_kpis(
    positions: Sequence[PositionSummary],
    supplier_contracts: Sequence[SupplierContract],
    client_contracts: Sequence[ClientContract],
) -> DashboardKpis:
    """Headline figures: risk counts, active contracts and engaged value."""
    active_supplier = [c for c in supplier_contracts if is_active(c)]
    active_client = [c for c in client_contracts if is_active(c)]

    engaged_value_buy = sum(c.price_buy * c.qty_remaining_kg for c in active_supplier)
    engaged_value_sell = sum(c.price_sell * c.qty_remaining_kg for c in active_client)

    avg_margin = 0.0
    if positions:
        avg_margin = sum(p.margin_percent for p in positions) / len(positions)

    return DashboardKpis(
        total_products=len(positions),
        short_count=sum(1 for p in positions if p.status is PositionStatus.SHORT),
        critical_count=sum(1 for p in positions if p.status is PositionStatus.CRITICAL),
        active_contracts=len(active_supplier) + len(active_client),
        engaged_value_buy=engaged_value_buy,
        engaged_value_sell=engaged_value_sell,
        potential_margin=engaged_value_sell - engaged_value_buy,
        avg_margin=avg_margin,
    )
