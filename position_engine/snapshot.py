"""
One immutable view of the book: inputs plus everything derived from them.

A refresh builds a new PositionSnapshot from scratch; callers swap the whole
object rather than patching it.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from .alerts import build_alerts
from .calculations import (
    calculate_all_positions,
    compute_dashboard_kpis,
    resolve_threshold,
    simulate_new_client_contract,
    sort_positions,
)
from .indexes import DataIndexes, build_indexes
from .partners import get_partners
from .schemas import (
    Alert,
    Article,
    ClientContract,
    DashboardKpis,
    Partner,
    PositionSummary,
    SimulationResult,
    SupplierContract,
)
from .search import SearchIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionSnapshot:
    articles: tuple[Article, ...]
    supplier_contracts: tuple[SupplierContract, ...]
    client_contracts: tuple[ClientContract, ...]
    positions: tuple[PositionSummary, ...]
    partners: tuple[Partner, ...]
    indexes: DataIndexes
    search: SearchIndex
    alerts: tuple[Alert, ...]
    kpis: DashboardKpis
    threshold_kg: float
    as_of: date

    def simulate(self, sku: str, new_contract_kg: float) -> Optional[SimulationResult]:
        """Simulates a new client contract on a SKU; None if the SKU is unknown."""
        position = self.indexes.position_for(sku)
        if position is None:
            return None
        return simulate_new_client_contract(position, new_contract_kg, self.threshold_kg)


def build_snapshot(
    articles: Sequence[Article],
    supplier_contracts: Sequence[SupplierContract],
    client_contracts: Sequence[ClientContract],
    threshold_kg: Optional[float] = None,
    as_of: Optional[date] = None,
) -> PositionSnapshot:
    threshold = resolve_threshold(threshold_kg)
    as_of = as_of or date.today()

    positions = sort_positions(
        calculate_all_positions(articles, supplier_contracts, client_contracts, threshold)
    )
    partners = get_partners(supplier_contracts, client_contracts)

    snapshot = PositionSnapshot(
        articles=tuple(articles),
        supplier_contracts=tuple(supplier_contracts),
        client_contracts=tuple(client_contracts),
        positions=tuple(positions),
        partners=tuple(partners),
        indexes=build_indexes(
            articles, supplier_contracts, client_contracts, positions, partners
        ),
        search=SearchIndex.from_data(articles, supplier_contracts, client_contracts),
        alerts=tuple(build_alerts(positions, supplier_contracts, client_contracts, as_of)),
        kpis=compute_dashboard_kpis(positions, supplier_contracts, client_contracts),
        threshold_kg=threshold,
        as_of=as_of,
    )
    logger.info(
        f"Snapshot built: {len(snapshot.positions)} positions, "
        f"{snapshot.kpis.short_count} SHORT, {snapshot.kpis.critical_count} CRITICAL, "
        f"{len(snapshot.partners)} partners."
    )
    return snapshot
