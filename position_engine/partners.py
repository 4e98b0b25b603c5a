from typing import Sequence

from .contracts import is_active
from .schemas import ClientContract, Partner, PartnerType, SupplierContract


def _fold(entries, partner_type: PartnerType) -> list[Partner]:
    """
    Folds (code, name, volume_kg, active) tuples into one Partner per code.
    The first name seen for a code wins.
    """
    totals: dict[str, dict] = {}
    for code, name, volume_kg, active in entries:
        row = totals.setdefault(
            code, {"code": code, "name": name, "contracts_count": 0, "total_volume_kg": 0.0}
        )
        if active:
            row["contracts_count"] += 1
            row["total_volume_kg"] += volume_kg

    return [Partner(type=partner_type, **row) for row in totals.values()]


def get_partners(
    supplier_contracts: Sequence[SupplierContract],
    client_contracts: Sequence[ClientContract],
) -> list[Partner]:
    """
    Per-counterparty rollup: suppliers first, then clients, each in order of
    first appearance. Only active contracts count toward contracts_count and
    total_volume_kg. A code used on both sides yields two separate Partners.
    """
    suppliers = _fold(
        (
            (c.supplier_code, c.supplier_name, c.qty_contracted_kg, is_active(c))
            for c in supplier_contracts
        ),
        PartnerType.SUPPLIER,
    )
    clients = _fold(
        (
            (c.client_code, c.client_name, c.qty_contracted_kg, is_active(c))
            for c in client_contracts
        ),
        PartnerType.CLIENT,
    )
    return suppliers + clients
