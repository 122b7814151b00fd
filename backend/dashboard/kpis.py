"""
KPI cards for the overview page.
- Restock counts for the last 24h / 7d against the window right before it
- Percentage change between the two windows
- Active link and open alert counts
"""
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from dashboard.formatting import delta_direction, fmt_delta, parse_timestamp, utcnow
from dashboard.state import AlertRow, RestockEvent, RestockMonitor, STOCK_STATUSES, SupplierLink

DAY = timedelta(days=1)


def delta(current: int, previous: int) -> float:
    """Percent change from previous to current. A window rising from zero counts as +100%."""
    if previous == 0 and current == 0:
        return 0.0
    if previous == 0:
        return 100.0
    return (current - previous) / previous * 100


def _ages(restocks: List[RestockEvent], now: datetime) -> List[timedelta]:
    ages = []
    for event in restocks:
        detected = parse_timestamp(event.get('detected_at'))
        if detected is not None:
            ages.append(now - detected)
    return ages


def count_window(ages: List[timedelta], start: Optional[timedelta], end: timedelta) -> int:
    """Counts ages in (start, end]. start=None means no lower bound (future rows count)."""
    return sum(1 for age in ages if age <= end and (start is None or age > start))


def compute_kpis(
    restocks: List[RestockEvent],
    links: List[SupplierLink],
    alerts: List[AlertRow],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    now = now or utcnow()
    ages = _ages(restocks, now)

    last24 = count_window(ages, None, DAY)
    prev24 = count_window(ages, DAY, 2 * DAY)
    last7 = count_window(ages, None, 7 * DAY)
    prev7 = count_window(ages, 7 * DAY, 14 * DAY)

    return {
        'last24': last24,
        'prev24': prev24,
        'last24_delta': delta(last24, prev24),
        'last7': last7,
        'prev7': prev7,
        'last7_delta': delta(last7, prev7),
        'active_links': sum(1 for link in links if link.get('is_active')),
        'open_alerts': sum(1 for alert in alerts if alert.get('status') == 'open'),
    }


def stat_card(label: str, value: Any, sub: str = '', delta_pct: Optional[float] = None) -> Dict[str, Any]:
    return {
        'label': label,
        'value': value,
        'sub': sub,
        'delta': delta_pct,
        'delta_text': fmt_delta(delta_pct),
        'direction': delta_direction(delta_pct) if delta_pct is not None else None,
    }


def kpi_cards(kpis: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [
        stat_card('Restocks (24h)', kpis['last24'], 'vs prev 24h', kpis['last24_delta']),
        stat_card('Restocks (7d)', kpis['last7'], 'vs prev 7d', kpis['last7_delta']),
        stat_card('Active Links', kpis['active_links']),
        stat_card('Open Alerts', kpis['open_alerts']),
    ]


def monitor_status_counts(monitors: List[RestockMonitor]) -> Dict[str, int]:
    counts = Counter(m.get('status') for m in monitors)
    return {status: counts.get(status, 0) for status in STOCK_STATUSES}
