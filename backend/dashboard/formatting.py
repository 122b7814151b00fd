"""
Display helpers: dates, relative times, badges and labels used by the
overview feed, the links table and the monitor modals.
"""
from datetime import datetime, timezone
from typing import Optional

from dashboard.state import RestockMonitor


STATUS_LABELS = {
    'IN_STOCK': 'In Stock',
    'OUT_OF_STOCK': 'Out of Stock',
    'LOW_STOCK': 'Low Stock',
    'ERROR': 'Error',
    'PAUSED': 'Paused',
}

FREQUENCY_LABELS = {
    'REAL_TIME': 'Real-time',
    '15_MIN': 'Every 15 min',
    '1_HOUR': 'Every hour',
    'DAILY': 'Daily',
}

MARKETPLACE_LABELS = {
    'amazon': 'Amazon',
    'walmart': 'Walmart',
    'ebay': 'eBay',
}


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parses a Supabase ISO timestamp. Naive values are taken as UTC; junk returns None."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def fmt_date(iso: str) -> str:
    """'Oct 19, 02:05 PM' in UTC; empty string when the timestamp is unreadable."""
    parsed = parse_timestamp(iso)
    if parsed is None:
        return ''
    return parsed.astimezone(timezone.utc).strftime('%b %d, %I:%M %p')


def time_ago(iso: str, now: datetime | None = None) -> str:
    parsed = parse_timestamp(iso)
    if parsed is None:
        return ''
    now = now or utcnow()
    minutes = int((now - parsed).total_seconds() // 60)
    if minutes < 1:
        return 'just now'
    if minutes < 60:
        return f'{minutes}m ago'
    hours = minutes // 60
    if hours < 24:
        return f'{hours}h ago'
    return f'{hours // 24}d ago'


def marketplace_label(marketplace: Optional[str]) -> str:
    return MARKETPLACE_LABELS.get(marketplace or '', 'Other')


def fmt_price(price: Optional[float]) -> str:
    if price is None:
        return '--'
    return f'${price:.2f}'


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def frequency_label(frequency: str) -> str:
    return FREQUENCY_LABELS.get(frequency, frequency)


def notification_summary(monitor: RestockMonitor) -> str:
    channels = [
        label
        for flag, label in (
            ('notify_email', 'Email'),
            ('notify_whatsapp', 'WhatsApp'),
            ('notify_slack', 'Slack'),
        )
        if monitor.get(flag)
    ]
    return ', '.join(channels) or 'None'


def link_status_pill(is_active: bool) -> str:
    return 'Active' if is_active else 'Paused'


def alert_status_pill(status: str) -> str:
    return status.upper()


def fmt_delta(delta: Optional[float]) -> str:
    if delta is None:
        return ''
    sign = '+' if delta >= 0 else ''
    return f'{sign}{delta:.1f}%'


def delta_direction(delta: Optional[float]) -> str:
    return 'up' if (delta or 0) >= 0 else 'down'
