"""
In-memory filtering for the restocks feed, the links table and the
monitors table. Filters run over rows already loaded from Supabase.
"""
from typing import List

from dashboard.state import RestockEvent, RestockMonitor, SupplierLink

ALL_MARKETPLACES = 'all'
ALL = 'ALL'


def _query(search: str | None) -> str:
    return (search or '').strip().lower()


def _marketplace_ok(row, marketplace: str) -> bool:
    return marketplace == ALL_MARKETPLACES or row.get('marketplace') == marketplace


def filter_restocks(
    restocks: List[RestockEvent],
    marketplace: str = ALL_MARKETPLACES,
    search: str | None = None,
) -> List[RestockEvent]:
    q = _query(search)

    def matches(event: RestockEvent) -> bool:
        if not _marketplace_ok(event, marketplace):
            return False
        if not q:
            return True
        return (
            q in (event.get('url') or '').lower()
            or q in (event.get('product_name') or '').lower()
            or q in (event.get('supplier_name') or '').lower()
        )

    return [e for e in restocks if matches(e)]


def filter_links(
    links: List[SupplierLink],
    marketplace: str = ALL_MARKETPLACES,
    search: str | None = None,
    active_only: bool = True,
) -> List[SupplierLink]:
    q = _query(search)

    def matches(link: SupplierLink) -> bool:
        if not _marketplace_ok(link, marketplace):
            return False
        if active_only and not link.get('is_active'):
            return False
        if not q:
            return True
        return (
            q in (link.get('url') or '').lower()
            or q in (link.get('supplier_name') or '').lower()
        )

    return [l for l in links if matches(l)]


def filter_monitors(
    monitors: List[RestockMonitor],
    search: str | None = None,
    supplier: str = ALL,
    status: str = ALL,
    frequency: str = ALL,
) -> List[RestockMonitor]:
    # Not trimmed, unlike the restock and link search.
    q = (search or '').lower()

    def matches(monitor: RestockMonitor) -> bool:
        text = ' '.join(
            monitor.get(column) or '' for column in ('product_name', 'product_url', 'supplier_name')
        ).lower()
        if q and q not in text:
            return False
        if supplier != ALL and monitor.get('supplier_name') != supplier:
            return False
        if status != ALL and monitor.get('status') != status:
            return False
        if frequency != ALL and monitor.get('frequency') != frequency:
            return False
        return True

    return [m for m in monitors if matches(m)]


def distinct_suppliers(monitors: List[RestockMonitor]) -> List[str]:
    """Supplier names in first-seen order, for the supplier dropdown."""
    return list(dict.fromkeys(m['supplier_name'] for m in monitors if m.get('supplier_name')))
