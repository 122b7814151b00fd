import copy
import itertools
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from config import Settings
from store.client import RestockStore, get_store

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def iso_ago(now: datetime = NOW, **delta) -> str:
    return (now - timedelta(**delta)).isoformat()


# ---------------------------------------------------------------------------
# In-memory stand-in for the Supabase query builder chain
# ---------------------------------------------------------------------------


class FakeQuery:
    def __init__(self, db: "FakeSupabase", name: str):
        self.db = db
        self.name = name
        self.action = 'select'
        self.payload: Any = None
        self.filters: List[tuple] = []
        self.order_by: tuple | None = None
        self.limit_n: int | None = None
        self.count_mode: str | None = None

    def select(self, columns: str = '*', count: str | None = None):
        self.count_mode = count
        return self

    def order(self, column: str, desc: bool = False):
        self.order_by = (column, desc)
        return self

    def limit(self, n: int):
        self.limit_n = n
        return self

    def eq(self, column: str, value: Any):
        self.filters.append((column, value))
        return self

    def insert(self, row: Dict[str, Any]):
        self.action = 'insert'
        self.payload = row
        return self

    def update(self, fields: Dict[str, Any]):
        self.action = 'update'
        self.payload = fields
        return self

    def delete(self):
        self.action = 'delete'
        return self

    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(row.get(col) == val for col, val in self.filters)

    def execute(self):
        self.db.executed.append((self.name, self.action))
        if self.name in self.db.failing:
            raise RuntimeError(f'relation "{self.name}" does not exist')
        rows = self.db.tables.setdefault(self.name, [])

        if self.action == 'insert':
            row = {'id': f'{self.name}-{next(self.db.ids)}', 'created_at': NOW.isoformat(), **self.payload}
            rows.append(row)
            return SimpleNamespace(data=[copy.deepcopy(row)], count=None)

        if self.action == 'update':
            hits = [r for r in rows if self._matches(r)]
            for r in hits:
                r.update(self.payload)
            return SimpleNamespace(data=copy.deepcopy(hits), count=None)

        if self.action == 'delete':
            hits = [r for r in rows if self._matches(r)]
            self.db.tables[self.name] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=copy.deepcopy(hits), count=None)

        result = [r for r in rows if self._matches(r)]
        if self.order_by:
            column, desc = self.order_by
            result.sort(key=lambda r: r.get(column) or '', reverse=desc)
        if self.limit_n is not None:
            result = result[:self.limit_n]
        count = len(rows) if self.count_mode == 'exact' else None
        return SimpleNamespace(data=copy.deepcopy(result), count=count)


class FakeSupabase:
    def __init__(self, tables: Dict[str, List[Dict[str, Any]]] | None = None):
        self.tables = copy.deepcopy(tables or {})
        self.failing: set[str] = set()
        self.executed: List[tuple] = []
        self.ids = itertools.count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


# ---------------------------------------------------------------------------
# Sample rows
# ---------------------------------------------------------------------------


def build_restock(id: str, now: datetime = NOW, hours: float = 1, **overrides) -> Dict[str, Any]:
    row = {
        'id': id,
        'supplier_name': 'KeHE',
        'product_name': 'Quest Protein Bar',
        'url': f'https://supplier.com/product/{id}',
        'detected_at': iso_ago(now, hours=hours),
        'price': 19.99,
        'marketplace': 'amazon',
    }
    row.update(overrides)
    return row


def build_link(id: str, **overrides) -> Dict[str, Any]:
    row = {
        'id': id,
        'supplier_name': 'Frontier',
        'url': f'https://frontier.com/{id}',
        'marketplace': 'walmart',
        'is_active': True,
        'created_at': iso_ago(hours=5),
    }
    row.update(overrides)
    return row


def build_alert(id: str, **overrides) -> Dict[str, Any]:
    row = {
        'id': id,
        'url': f'https://supplier.com/product/{id}',
        'supplier_name': 'Netrition',
        'status': 'open',
        'reason': 'Back in stock',
        'created_at': iso_ago(hours=2),
    }
    row.update(overrides)
    return row


def build_monitor(id: str, **overrides) -> Dict[str, Any]:
    row = {
        'id': id,
        'product_name': 'Lindt 90% Dark Chocolate 100g',
        'product_url': 'https://supplier.com/product/lindt-90',
        'supplier_name': 'Frontier',
        'status': 'OUT_OF_STOCK',
        'last_checked_at': iso_ago(hours=1),
        'frequency': '1_HOUR',
        'notify_email': True,
        'notify_whatsapp': False,
        'notify_slack': True,
        'created_at': iso_ago(hours=3),
    }
    row.update(overrides)
    return row


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings():
    return Settings(supabase_url='https://example.supabase.co', supabase_key='service-role-key')


@pytest.fixture
def fake_supabase():
    now = datetime.now(timezone.utc)
    return FakeSupabase({
        'restock_events': [
            build_restock('r1', now, hours=1),
            build_restock('r2', now, hours=30, marketplace='walmart', supplier_name='Frontier',
                          product_name='Lindt 90% Dark', price=None),
            build_restock('r3', now, hours=24 * 10, marketplace='ebay', product_name=None),
        ],
        'supplier_links': [
            build_link('l1'),
            build_link('l2', is_active=False, supplier_name='KeHE', marketplace='amazon'),
        ],
        'alerts': [
            build_alert('a1'),
            build_alert('a2', status='resolved', reason=None),
        ],
        'restock_monitors': [
            build_monitor('m1', product_name='Quest Protein Bar', supplier_name='KeHE',
                          product_url='https://supplier.com/product/quest-bar',
                          status='IN_STOCK', frequency='15_MIN'),
            build_monitor('m2'),
            build_monitor('m3', product_name='Davidoff Cool Water', supplier_name='Netrition',
                          product_url='https://supplier.com/product/cool-water-42',
                          status='LOW_STOCK', frequency='REAL_TIME', last_checked_at=None),
        ],
    })


@pytest.fixture
def store(fake_supabase, settings):
    return RestockStore(fake_supabase, settings)


@pytest.fixture
def api(store):
    from main import app

    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def unconfigured(monkeypatch):
    """No Supabase URL or key anywhere, and no cached client."""
    from store.client import get_client

    for name in ('SUPABASE_URL', 'NEXT_PUBLIC_SUPABASE_URL', 'SUPABASE_SERVICE_ROLE_KEY', 'SUPABASE_ANON_KEY'):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr('config.ENV_CANDIDATES', [])
    get_client.cache_clear()
    yield
    get_client.cache_clear()
