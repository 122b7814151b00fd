"""
Seeds demo rows for the dashboard: supplier links, restock events, alerts
and the three demo restock monitors.
Run from the repo root: python seed_data.py
"""
import os
from datetime import datetime, timedelta, timezone

from dotenv import load_dotenv
from supabase import create_client

load_dotenv('.env')
load_dotenv('backend/.env')

url = os.getenv('SUPABASE_URL') or os.getenv('NEXT_PUBLIC_SUPABASE_URL')
key = os.getenv('SUPABASE_SERVICE_ROLE_KEY') or os.getenv('SUPABASE_ANON_KEY')
client = create_client(url, key)

now = datetime.now(timezone.utc)


def ago(**delta) -> str:
    return (now - timedelta(**delta)).isoformat()


LINKS = [
    {'supplier_name': 'KeHE', 'url': 'https://supplier.com/product/quest-bar-cookie-dough',
     'marketplace': 'amazon', 'is_active': True, 'product_name': 'Quest Protein Bar', 'category': 'Snacks', 'priority': 'high'},
    {'supplier_name': 'Frontier', 'url': 'https://supplier.com/product/lindt-90',
     'marketplace': 'walmart', 'is_active': True, 'product_name': 'Lindt 90% Dark Chocolate', 'category': 'Grocery', 'priority': 'normal'},
    {'supplier_name': 'Netrition', 'url': 'https://supplier.com/product/cool-water-42',
     'marketplace': 'ebay', 'is_active': False, 'product_name': 'Davidoff Cool Water EDT', 'category': 'Beauty', 'priority': 'low'},
]

RESTOCKS = [
    {'supplier_name': 'KeHE', 'product_name': 'Quest Protein Bar - Chocolate Chip Cookie Dough',
     'url': LINKS[0]['url'], 'detected_at': ago(minutes=12), 'price': 24.99, 'marketplace': 'amazon'},
    {'supplier_name': 'Frontier', 'product_name': 'Lindt 90% Dark Chocolate 100g',
     'url': LINKS[1]['url'], 'detected_at': ago(hours=30), 'price': 3.49, 'marketplace': 'walmart'},
    {'supplier_name': 'Netrition', 'product_name': 'Davidoff Cool Water EDT 4.2oz',
     'url': LINKS[2]['url'], 'detected_at': ago(days=9), 'price': None, 'marketplace': 'ebay'},
]

ALERTS = [
    {'url': LINKS[0]['url'], 'supplier_name': 'KeHE', 'status': 'open', 'reason': 'Back in stock'},
    {'url': LINKS[1]['url'], 'supplier_name': 'Frontier', 'status': 'resolved', 'reason': 'Price dropped below target'},
    {'url': LINKS[2]['url'], 'supplier_name': 'Netrition', 'status': 'muted', 'reason': None},
]

MONITORS = [
    {'product_name': 'Quest Protein Bar - Chocolate Chip Cookie Dough', 'product_url': LINKS[0]['url'],
     'supplier_name': 'KeHE', 'status': 'IN_STOCK', 'last_checked_at': ago(minutes=5), 'frequency': '15_MIN',
     'notify_email': True, 'notify_whatsapp': True, 'notify_slack': False},
    {'product_name': 'Lindt 90% Dark Chocolate 100g', 'product_url': LINKS[1]['url'],
     'supplier_name': 'Frontier', 'status': 'OUT_OF_STOCK', 'last_checked_at': ago(hours=1), 'frequency': '1_HOUR',
     'notify_email': True, 'notify_whatsapp': False, 'notify_slack': True},
    {'product_name': 'Davidoff Cool Water EDT 4.2oz', 'product_url': LINKS[2]['url'],
     'supplier_name': 'Netrition', 'status': 'LOW_STOCK', 'last_checked_at': ago(minutes=12), 'frequency': 'REAL_TIME',
     'notify_email': False, 'notify_whatsapp': True, 'notify_slack': True},
]


def seed(table: str, rows: list[dict]) -> list[dict]:
    res = client.table(table).insert(rows).execute()
    print(f"Seeded {len(res.data)} rows into {table}")
    return res.data


if __name__ == '__main__':
    links = seed('supplier_links', LINKS)
    events = seed('restock_events', RESTOCKS)
    for alert, link, event in zip(ALERTS, links, events):
        alert['link_id'] = link['id']
        alert['restock_event_id'] = event['id']
    seed('alerts', ALERTS)
    seed('restock_monitors', MONITORS)
