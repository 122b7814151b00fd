"""
Row shapes shared by the dashboard modules.
Supabase returns plain dicts; these TypedDicts document the columns we read.
"""
from typing import TypedDict, Optional, List, Dict, Literal


Marketplace = Literal['amazon', 'walmart', 'ebay', 'other']
AlertStatus = Literal['open', 'resolved', 'muted']
LinkPriority = Literal['low', 'normal', 'high']
StockStatus = Literal['IN_STOCK', 'OUT_OF_STOCK', 'LOW_STOCK', 'ERROR', 'PAUSED']
Frequency = Literal['REAL_TIME', '15_MIN', '1_HOUR', 'DAILY']

STOCK_STATUSES = ('IN_STOCK', 'OUT_OF_STOCK', 'LOW_STOCK', 'ERROR', 'PAUSED')


class RestockEvent(TypedDict, total=False):
    id: str
    supplier_name: Optional[str]
    product_name: Optional[str]
    url: str
    detected_at: str            # ISO-8601
    price: Optional[float]
    marketplace: Optional[Marketplace]


class SupplierLink(TypedDict, total=False):
    id: str
    supplier_name: str
    url: str
    marketplace: Optional[Marketplace]
    is_active: bool
    created_at: str
    # ── Optional metadata ─────────────────────────────────────
    product_name: Optional[str]
    category: Optional[str]     # department
    priority: Optional[LinkPriority]


class AlertRow(TypedDict, total=False):
    id: str
    url: str
    supplier_name: Optional[str]
    status: AlertStatus
    reason: Optional[str]
    created_at: str
    link_id: Optional[str]
    restock_event_id: Optional[str]


class RestockMonitor(TypedDict, total=False):
    id: str
    product_name: str
    product_url: str
    supplier_name: str
    supplier_logo_url: Optional[str]
    status: StockStatus
    last_checked_at: Optional[str]
    frequency: Frequency
    notify_email: bool
    notify_whatsapp: bool
    notify_slack: bool
    created_at: str


class DashboardData(TypedDict):
    restocks: List[RestockEvent]
    links: List[SupplierLink]
    alerts: List[AlertRow]
    monitors: List[RestockMonitor]
    errors: Dict[str, str]      # table key -> error message
