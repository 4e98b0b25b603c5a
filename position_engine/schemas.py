from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class ContractStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class PositionStatus(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"
    CRITICAL = "CRITICAL"


class PartnerType(str, Enum):
    SUPPLIER = "supplier"
    CLIENT = "client"


class CompletionPolicy(str, Enum):
    """How a contract is decided to be completed."""

    QUANTITY = "quantity"
    QUANTITY_OR_EXPIRY = "quantity_or_expiry"


class AlertType(str, Enum):
    POSITION_SHORT = "position_short"
    POSITION_CRITICAL = "position_critical"
    CONTRACT_EXPIRING = "contract_expiring"


class AlertSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class SearchResultType(str, Enum):
    SUPPLIER = "supplier"
    CLIENT = "client"
    PRODUCT = "product"


class Record(BaseModel):
    """Base for all snapshot records: immutable once loaded."""

    class Config:
        frozen = True
        populate_by_name = True


class Article(Record):
    sku: str
    name: str = ""
    stock_uvc: int = 0
    stock_kg: float = 0.0


class SupplierContract(Record):
    """
    A purchase commitment from one supplier for one SKU.
    Remaining and in-transit kg are derived from the UVC quantities using the
    contract's own kg/UVC ratio (see contracts.derive_supplier_quantities).
    """

    supplier_code: str = ""
    supplier_name: str = ""
    sku: str
    supplier_sku: str = ""
    article_name: str = ""
    price_buy: float = 0.0
    price_unit: str = "KG"
    date_start: str = ""
    date_end: str = ""
    qty_contracted_uvc: int = 0
    qty_contracted_kg: float = 0.0
    qty_ordered_uvc: int = 0
    qty_received_uvc: int = 0
    qty_in_transit_uvc: int = 0
    qty_in_transit_kg: float = 0.0
    qty_remaining_uvc: int = 0
    qty_remaining_kg: float = 0.0
    status: ContractStatus = ContractStatus.ACTIVE


class ClientContract(Record):
    """A sale commitment to one client for one SKU, identified by contract_id."""

    contract_id: str = ""
    client_code: str = ""
    client_name: str = ""
    sku: str
    article_name: str = ""
    date_start: str = ""
    date_end: str = ""
    price_sell: float = 0.0
    qty_contracted_uvc: int = 0
    qty_contracted_kg: float = 0.0
    qty_purchased_uvc: int = 0
    qty_purchased_kg: float = 0.0
    qty_remaining_uvc: int = 0
    qty_remaining_kg: float = 0.0
    status: ContractStatus = ContractStatus.ACTIVE


class Partner(Record):
    code: str
    name: str
    type: PartnerType
    contracts_count: int = Field(default=0, ge=0)
    total_volume_kg: float = 0.0


class PositionSummary(Record):
    """
    Derived balance for one SKU. Recomputed from scratch on every refresh.

    total_available_kg = stock_kg + supply_remaining_kg + supply_in_transit_kg
    net_position_kg    = total_available_kg - demand_remaining_kg
    """

    sku: str
    article_name: str = ""
    stock_kg: float = 0.0
    stock_uvc: int = 0
    supply_remaining_kg: float = 0.0
    supply_remaining_uvc: int = 0
    supply_in_transit_kg: float = 0.0
    supply_in_transit_uvc: int = 0
    demand_remaining_kg: float = 0.0
    demand_remaining_uvc: int = 0
    total_available_kg: float = 0.0
    net_position_kg: float = 0.0
    net_position_uvc: int = 0
    status: PositionStatus = PositionStatus.LONG
    supplier_contracts: int = Field(default=0, ge=0)
    client_contracts: int = Field(default=0, ge=0)
    avg_buy_price: float = 0.0
    avg_sell_price: float = 0.0
    margin_percent: float = 0.0


class SimulationResult(Record):
    current: float
    after: float
    status_before: PositionStatus
    status_after: PositionStatus
    warning: Optional[str] = None


class Alert(Record):
    id: str
    created_at: str
    type: AlertType
    severity: AlertSeverity
    sku: Optional[str] = None
    message: str
    is_read: bool = False


class DashboardKpis(Record):
    total_products: int = 0
    short_count: int = 0
    critical_count: int = 0
    active_contracts: int = 0
    engaged_value_buy: float = 0.0
    engaged_value_sell: float = 0.0
    potential_margin: float = 0.0
    avg_margin: float = 0.0


class SearchResult(Record):
    type: SearchResultType
    id: str
    primary_text: str
    secondary_text: str
    code: str
    score: float = Field(default=0.0, ge=0, le=1)
