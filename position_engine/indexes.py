"""
Lookup maps over one data snapshot.

SKU keys are lowercased; partner codes keep their exact case. Maps are
rebuilt wholesale whenever the snapshot changes, never patched.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from .schemas import (
    Article,
    ClientContract,
    Partner,
    PartnerType,
    PositionSummary,
    SupplierContract,
)


def sku_key(sku: str) -> str:
    return sku.lower()


def build_article_index(articles: Sequence[Article]) -> dict[str, Article]:
    return {sku_key(a.sku): a for a in articles}


def build_contract_indexes(
    supplier_contracts: Sequence[SupplierContract],
    client_contracts: Sequence[ClientContract],
) -> tuple[dict[str, list[SupplierContract]], dict[str, list[ClientContract]]]:
    """Groups contracts of every status by SKU, preserving insertion order."""
    supplier_by_sku: dict[str, list[SupplierContract]] = {}
    for contract in supplier_contracts:
        supplier_by_sku.setdefault(sku_key(contract.sku), []).append(contract)

    client_by_sku: dict[str, list[ClientContract]] = {}
    for contract in client_contracts:
        client_by_sku.setdefault(sku_key(contract.sku), []).append(contract)

    return supplier_by_sku, client_by_sku


def build_position_index(positions: Sequence[PositionSummary]) -> dict[str, PositionSummary]:
    return {sku_key(p.sku): p for p in positions}


def build_partner_index(
    partners: Sequence[Partner], partner_type: Optional[PartnerType] = None
) -> dict[str, Partner]:
    """
    Partner code -> Partner. Without a type filter a code used by both a
    supplier and a client resolves to the later entry (the client, given
    get_partners ordering); use the per-type maps when that matters.
    """
    return {
        p.code: p
        for p in partners
        if partner_type is None or p.type is partner_type
    }


@dataclass(frozen=True)
class DataIndexes:
    articles_by_sku: dict[str, Article] = field(default_factory=dict)
    supplier_contracts_by_sku: dict[str, list[SupplierContract]] = field(default_factory=dict)
    client_contracts_by_sku: dict[str, list[ClientContract]] = field(default_factory=dict)
    positions_by_sku: dict[str, PositionSummary] = field(default_factory=dict)
    partners_by_code: dict[str, Partner] = field(default_factory=dict)
    suppliers_by_code: dict[str, Partner] = field(default_factory=dict)
    clients_by_code: dict[str, Partner] = field(default_factory=dict)

    def article_for(self, sku: str) -> Optional[Article]:
        return self.articles_by_sku.get(sku_key(sku))

    def supplier_contracts_for(self, sku: str) -> list[SupplierContract]:
        return list(self.supplier_contracts_by_sku.get(sku_key(sku), []))

    def client_contracts_for(self, sku: str) -> list[ClientContract]:
        return list(self.client_contracts_by_sku.get(sku_key(sku), []))

    def position_for(self, sku: str) -> Optional[PositionSummary]:
        return self.positions_by_sku.get(sku_key(sku))

    def partner_for(
        self, code: str, partner_type: Optional[PartnerType] = None
    ) -> Optional[Partner]:
        if partner_type is PartnerType.SUPPLIER:
            return self.suppliers_by_code.get(code)
        if partner_type is PartnerType.CLIENT:
            return self.clients_by_code.get(code)
        return self.partners_by_code.get(code)


def build_indexes(
    articles: Sequence[Article],
    supplier_contracts: Sequence[SupplierContract],
    client_contracts: Sequence[ClientContract],
    positions: Sequence[PositionSummary],
    partners: Sequence[Partner],
) -> DataIndexes:
    supplier_by_sku, client_by_sku = build_contract_indexes(
        supplier_contracts, client_contracts
    )
    return DataIndexes(
        articles_by_sku=build_article_index(articles),
        supplier_contracts_by_sku=supplier_by_sku,
        client_contracts_by_sku=client_by_sku,
        positions_by_sku=build_position_index(positions),
        partners_by_code=build_partner_index(partners),
        suppliers_by_code=build_partner_index(partners, PartnerType.SUPPLIER),
        clients_by_code=build_partner_index(partners, PartnerType.CLIENT),
    )
