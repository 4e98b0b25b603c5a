import os
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")

# --- Path Configuration ---
INPUT_DIR = BASE_DIR / os.getenv("INPUT_DIR", "input")
OUTPUT_DIR = BASE_DIR / os.getenv("OUTPUT_DIR", "output")

# --- Filename Configuration ---
# Input exports are expected as <prefix>YYYY-MM-DD.csv
ARTICLES_FILENAME_PREFIX = os.getenv("ARTICLES_FILENAME_PREFIX", "articles_")
SUPPLIER_CONTRACTS_FILENAME_PREFIX = os.getenv(
    "SUPPLIER_CONTRACTS_FILENAME_PREFIX", "supplier_contracts_"
)
CLIENT_CONTRACTS_FILENAME_PREFIX = os.getenv(
    "CLIENT_CONTRACTS_FILENAME_PREFIX", "client_contracts_"
)
POSITIONS_FILENAME_BASE = os.getenv("POSITIONS_FILENAME", "positions")
CSV_DELIMITER = os.getenv("CSV_DELIMITER", ";")
SAVE_JSON_OUTPUT = os.getenv("SAVE_JSON_OUTPUT", "false").lower() in ("1", "true", "yes")

# --- Logging ---
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")
LOG_FILENAME = os.getenv("LOG_FILENAME", "positions.log")
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

# --- Webhook ---
WEBHOOK_URL = os.getenv("WEBHOOK_URL")

# --- Position Policy ---
# Magnitude (kg) of the deficit at which a SHORT position becomes CRITICAL.
CRITICAL_THRESHOLD_KG = float(os.getenv("CRITICAL_THRESHOLD_KG", "1000"))

# "quantity" or "quantity_or_expiry"
CONTRACT_COMPLETION_POLICY = os.getenv("CONTRACT_COMPLETION_POLICY", "quantity")
CONTRACT_EXPIRY_WARNING_DAYS = int(os.getenv("CONTRACT_EXPIRY_WARNING_DAYS", "30"))
RISK_POSITIONS_LIMIT = 6

# --- Loader Defaults ---
DEFAULT_SUPPLIER_NAME = "Unknown supplier"
DEFAULT_CLIENT_NAME = "Unknown client"
DEFAULT_PRICE_UNIT = "KG"

# --- Search ---
SEARCH_MIN_QUERY_LENGTH = 2
SEARCH_MIN_SCORE = float(os.getenv("SEARCH_MIN_SCORE", "0.6"))

# --- Export ---
# Field name -> CSV header, in export order.
POSITION_EXPORT_COLUMNS = {
    "sku": "SKU",
    "article_name": "Product",
    "stock_kg": "Stock KG",
    "stock_uvc": "Stock UVC",
    "net_position_kg": "Net Position KG",
    "status": "Status",
    "supply_remaining_kg": "To Receive KG",
    "supply_in_transit_kg": "In Transit KG",
    "demand_remaining_kg": "To Deliver KG",
    "supplier_contracts": "Supplier Contracts",
    "client_contracts": "Client Contracts",
    "avg_buy_price": "Avg Buy Price",
    "avg_sell_price": "Avg Sell Price",
    "margin_percent": "Margin %",
}

# Column headers of the raw exports, mapped to record field names.
ARTICLE_COLUMNS = {
    "sku": "SKU",
    "name": "Name",
    "stock_uvc": "Stock UVC",
    "stock_kg": "Stock KG",
}

SUPPLIER_CONTRACT_COLUMNS = {
    "supplier_code": "Supplier Code",
    "supplier_name": "Supplier Name",
    "sku": "SKU",
    "supplier_sku": "Supplier SKU",
    "article_name": "Article",
    "price_buy": "Buy Price",
    "price_unit": "Price Unit",
    "date_start": "Start Date",
    "date_end": "End Date",
    "qty_contracted_uvc": "Contracted UVC",
    "qty_contracted_kg": "Contracted KG",
    "qty_ordered_uvc": "Ordered UVC",
    "qty_received_uvc": "Received UVC",
    "qty_in_transit_uvc": "In Transit UVC",
}

CLIENT_CONTRACT_COLUMNS = {
    "contract_id": "Contract ID",
    "client_code": "Client Code",
    "client_name": "Client Name",
    "sku": "SKU",
    "article_name": "Article",
    "date_start": "Start Date",
    "date_end": "End Date",
    "price_sell": "Sell Price",
    "qty_contracted_uvc": "Contracted UVC",
    "qty_contracted_kg": "Contracted KG",
    "qty_purchased_uvc": "Purchased UVC",
    "qty_purchased_kg": "Purchased KG",
}
