"""
Contract quantity derivation and completion policy.

Supplier contracts track open obligation in UVC and convert to kg with the
contract's own kg/UVC ratio. Client contracts subtract kg directly.
"""

from datetime import date
from typing import Optional, Union

from . import settings
from .schemas import ClientContract, CompletionPolicy, ContractStatus, SupplierContract


def kg_per_uvc(qty_contracted_uvc: float, qty_contracted_kg: float) -> float:
    """Conversion ratio for a contract, 0 when it has no UVC quantity."""
    if qty_contracted_uvc > 0:
        return qty_contracted_kg / qty_contracted_uvc
    return 0.0


def derive_supplier_quantities(
    qty_contracted_uvc: int,
    qty_contracted_kg: float,
    qty_ordered_uvc: int,
    qty_in_transit_uvc: int,
) -> dict[str, float]:
    """Returns qty_remaining_uvc/kg and qty_in_transit_kg for a supplier contract."""
    qty_remaining_uvc = round(max(0, qty_contracted_uvc - qty_ordered_uvc))
    ratio = kg_per_uvc(qty_contracted_uvc, qty_contracted_kg)
    return {
        "qty_remaining_uvc": qty_remaining_uvc,
        "qty_remaining_kg": qty_remaining_uvc * ratio,
        "qty_in_transit_kg": qty_in_transit_uvc * ratio,
    }


def derive_client_quantities(
    qty_contracted_uvc: int,
    qty_contracted_kg: float,
    qty_purchased_uvc: int,
    qty_purchased_kg: float,
) -> dict[str, float]:
    """Returns qty_remaining_uvc/kg for a client contract."""
    return {
        "qty_remaining_uvc": round(max(0, qty_contracted_uvc - qty_purchased_uvc)),
        "qty_remaining_kg": max(0.0, qty_contracted_kg - qty_purchased_kg),
    }


def parse_policy(value: Union[str, CompletionPolicy, None]) -> CompletionPolicy:
    if value is None:
        value = settings.CONTRACT_COMPLETION_POLICY
    try:
        return CompletionPolicy(value)
    except ValueError:
        raise ValueError(
            f"Unknown contract completion policy '{value}'. "
            f"Expected one of: {', '.join(p.value for p in CompletionPolicy)}"
        ) from None


def to_date(iso_value: str) -> Optional[date]:
    if not iso_value:
        return None
    try:
        return date.fromisoformat(iso_value[:10])
    except ValueError:
        return None


def is_expired(date_end: str, as_of: date) -> bool:
    """True when date_end is a valid date strictly before as_of."""
    end = to_date(date_end)
    return end is not None and end < as_of


def resolve_contract_status(
    qty_remaining_uvc: float,
    qty_remaining_kg: float,
    date_end: str = "",
    policy: Union[str, CompletionPolicy, None] = None,
    as_of: Optional[date] = None,
) -> ContractStatus:
    """
    A contract is completed once nothing remains in either unit. Under the
    quantity_or_expiry policy it is also completed once its end date has passed.
    """
    policy = parse_policy(policy)

    if qty_remaining_uvc <= 0 and qty_remaining_kg <= 0:
        return ContractStatus.COMPLETED

    if policy is CompletionPolicy.QUANTITY_OR_EXPIRY:
        if is_expired(date_end, as_of or date.today()):
            return ContractStatus.COMPLETED

    return ContractStatus.ACTIVE


def build_supplier_contract(
    policy: Union[str, CompletionPolicy, None] = None,
    as_of: Optional[date] = None,
    **fields,
) -> SupplierContract:
    """
    Builds a SupplierContract from raw fields, deriving remaining/in-transit
    quantities and status. Any derived value passed in is overwritten.
    """
    derived = derive_supplier_quantities(
        fields.get("qty_contracted_uvc", 0),
        fields.get("qty_contracted_kg", 0.0),
        fields.get("qty_ordered_uvc", 0),
        fields.get("qty_in_transit_uvc", 0),
    )
    fields.update(derived)
    fields["status"] = resolve_contract_status(
        derived["qty_remaining_uvc"],
        derived["qty_remaining_kg"],
        fields.get("date_end", ""),
        policy,
        as_of,
    )
    return SupplierContract(**fields)


def build_client_contract(
    policy: Union[str, CompletionPolicy, None] = None,
    as_of: Optional[date] = None,
    **fields,
) -> ClientContract:
    """Client counterpart of build_supplier_contract."""
    derived = derive_client_quantities(
        fields.get("qty_contracted_uvc", 0),
        fields.get("qty_contracted_kg", 0.0),
        fields.get("qty_purchased_uvc", 0),
        fields.get("qty_purchased_kg", 0.0),
    )
    fields.update(derived)
    fields["status"] = resolve_contract_status(
        derived["qty_remaining_uvc"],
        derived["qty_remaining_kg"],
        fields.get("date_end", ""),
        policy,
        as_of,
    )
    return ClientContract(**fields)


def is_active(contract: Union[SupplierContract, ClientContract]) -> bool:
    return contract.status is ContractStatus.ACTIVE
