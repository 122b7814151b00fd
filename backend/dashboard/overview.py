"""
Overview page assembly.
Combines KPIs, the filtered recent-restocks feed and the alerts snapshot
into one payload the dashboard renders as-is.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from dashboard.filters import ALL_MARKETPLACES, filter_restocks
from dashboard.formatting import alert_status_pill, fmt_date, fmt_price, marketplace_label, time_ago, utcnow
from dashboard.kpis import compute_kpis, kpi_cards
from dashboard.state import AlertRow, DashboardData, RestockEvent

FEED_SIZE = 12
ALERTS_SNAPSHOT_SIZE = 8


def feed_item(event: RestockEvent, now: datetime) -> Dict[str, Any]:
    detected_at = event.get('detected_at', '')
    return {
        **event,
        'title': event.get('product_name') or 'Unnamed product',
        'supplier': event.get('supplier_name') or 'Unknown supplier',
        'marketplace_label': marketplace_label(event.get('marketplace')),
        'price_text': fmt_price(event.get('price')),
        'time_ago': time_ago(detected_at, now),
        'detected_at_text': fmt_date(detected_at),
    }


def alert_item(alert: AlertRow, now: datetime, relative: bool = True) -> Dict[str, Any]:
    created_at = alert.get('created_at', '')
    return {
        **alert,
        'title': alert.get('reason') or 'Alert',
        'supplier': alert.get('supplier_name') or 'Unknown supplier',
        'when': time_ago(created_at, now) if relative else fmt_date(created_at),
        'status_pill': alert_status_pill(alert.get('status') or ''),
    }


def build_overview(
    data: DashboardData,
    marketplace: str = ALL_MARKETPLACES,
    search: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Builds the overview payload.
    The restock feed honours the marketplace/search filters; the KPI cards and
    the alerts snapshot always use the unfiltered rows.
    """
    now = now or utcnow()
    restocks = data.get('restocks', [])
    alerts: List[AlertRow] = data.get('alerts', [])

    kpis = compute_kpis(restocks, data.get('links', []), alerts, now)
    filtered = filter_restocks(restocks, marketplace, search)

    return {
        'kpis': kpis,
        'cards': kpi_cards(kpis),
        'recent_restocks': {
            'count': len(filtered),
            'items': [feed_item(e, now) for e in filtered[:FEED_SIZE]],
        },
        'alerts_snapshot': [alert_item(a, now) for a in alerts[:ALERTS_SNAPSHOT_SIZE]],
        'errors': data.get('errors', {}),
        'generated_at': now.isoformat(),
    }
