from contextlib import asynccontextmanager
from typing import Iterable, Literal, Optional
import logging

from fastapi import Depends, FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from config import get_settings, setup_logging
from dashboard.feed import RestockFeed
from dashboard.filters import distinct_suppliers, filter_links, filter_monitors, filter_restocks
from dashboard.formatting import (
    fmt_date,
    frequency_label,
    link_status_pill,
    marketplace_label,
    notification_summary,
    status_label,
    time_ago,
    utcnow,
)
from dashboard.kpis import compute_kpis, kpi_cards, monitor_status_counts
from dashboard.overview import alert_item, build_overview, feed_item
from dashboard.state import AlertStatus, DashboardData, Frequency, LinkPriority, Marketplace, StockStatus
from reports.summary_pdf import render_summary_pdf
from store.client import TABLE_KEYS, RestockStore, RowNotFound, StoreError, get_store

settings = get_settings()
setup_logging(settings.log_level, settings.log_file)
logger = logging.getLogger(__name__)

feed = RestockFeed(
    limit=settings.table('restocks').limit,
    table=settings.table('restocks').name,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.supabase_configured:
        try:
            feed.seed(get_store().fetch_rows('restocks'))
            await feed.start(settings)
        except Exception as e:
            logger.error("Realtime restock feed not started: %s", e)
    else:
        logger.warning("Supabase is not configured; realtime restock feed disabled")
    yield
    await feed.stop()


app = FastAPI(
    title='RestocKING',
    description='Restock Radar dashboard backend',
    version='0.1.0',
    lifespan=lifespan,
)

# Allow the dashboard frontend to call the backend (CORS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


MarketplaceFilter = Literal['all', 'amazon', 'walmart', 'ebay', 'other']


# ─── REQUEST MODELS ───────────────────────────────────────────

class LinkCreate(BaseModel):
    supplier_name: str = Field(min_length=1)
    url: str = Field(min_length=1)
    marketplace: Optional[Marketplace] = 'other'
    is_active: bool = True
    product_name: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[LinkPriority] = 'normal'

class LinkUpdate(BaseModel):
    supplier_name: Optional[str] = Field(default=None, min_length=1)
    url: Optional[str] = Field(default=None, min_length=1)
    marketplace: Optional[Marketplace] = None
    is_active: Optional[bool] = None
    product_name: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[LinkPriority] = None

class AlertCreate(BaseModel):
    url: str = Field(min_length=1)
    supplier_name: Optional[str] = None
    status: AlertStatus = 'open'
    reason: Optional[str] = None
    link_id: Optional[str] = None
    restock_event_id: Optional[str] = None

class AlertUpdate(BaseModel):
    url: Optional[str] = Field(default=None, min_length=1)
    supplier_name: Optional[str] = None
    status: Optional[AlertStatus] = None
    reason: Optional[str] = None

class MonitorCreate(BaseModel):
    product_name: str = Field(min_length=1)
    product_url: str = Field(min_length=1)
    supplier_name: str = Field(min_length=1)
    supplier_logo_url: Optional[str] = None
    status: StockStatus = 'IN_STOCK'
    frequency: Frequency = '15_MIN'
    notify_email: bool = False
    notify_whatsapp: bool = False
    notify_slack: bool = False

class MonitorUpdate(BaseModel):
    product_name: Optional[str] = Field(default=None, min_length=1)
    product_url: Optional[str] = Field(default=None, min_length=1)
    supplier_name: Optional[str] = Field(default=None, min_length=1)
    supplier_logo_url: Optional[str] = None
    status: Optional[StockStatus] = None
    frequency: Optional[Frequency] = None
    notify_email: Optional[bool] = None
    notify_whatsapp: Optional[bool] = None
    notify_slack: Optional[bool] = None


LINK_NULLABLE = {'marketplace', 'product_name', 'category', 'priority'}
ALERT_NULLABLE = {'supplier_name', 'reason'}
MONITOR_NULLABLE = {'supplier_logo_url'}


def changed_fields(body: BaseModel, nullable: Iterable[str] = ()) -> dict:
    """Only the fields the client actually sent. Nulls are dropped unless the column is nullable."""
    return {
        k: v for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k in nullable
    }


def load_dashboard(store: RestockStore) -> DashboardData:
    """While the realtime feed runs, restocks come from its live list instead of Supabase."""
    if not feed.running:
        return store.load_all()
    data = store.load_all([key for key in TABLE_KEYS if key != 'restocks'])
    data['restocks'] = feed.restocks
    return data


# ─── HEALTH / DIAGNOSTICS ─────────────────────────────────────

@app.get('/health')
def health_check():
    return {
        'status': 'ok',
        'service': 'restocking-backend',
        'supabase_configured': settings.supabase_configured,
        'realtime_running': feed.running,
    }

@app.get('/test-supabase')
def test_supabase(store: RestockStore = Depends(get_store)):
    """Verify Supabase connection works."""
    try:
        result = store.client.table(store.table_name('restocks')).select('*').limit(1).execute()
        return {'status': 'connected', 'sample_data': result.data}
    except Exception as e:
        return {'status': 'error', 'message': str(e)}

@app.get('/data-summary')
def data_summary(store: RestockStore = Depends(get_store)):
    """Return row counts of all dashboard tables."""
    try:
        counts = {store.table_name(key): store.count_rows(key) for key in TABLE_KEYS}
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {'status': 'ok', 'counts': counts}


# ─── OVERVIEW / KPIs ──────────────────────────────────────────

@app.get('/overview')
def get_overview(
    marketplace: MarketplaceFilter = 'all',
    search: Optional[str] = None,
    store: RestockStore = Depends(get_store),
):
    """KPI cards, recent restocks feed and alerts snapshot."""
    return build_overview(load_dashboard(store), marketplace, search)

@app.get('/kpis')
def get_kpis(store: RestockStore = Depends(get_store)):
    data = load_dashboard(store)
    kpis = compute_kpis(data['restocks'], data['links'], data['alerts'])
    return {
        **kpis,
        'cards': kpi_cards(kpis),
        'monitor_status_counts': monitor_status_counts(data['monitors']),
        'errors': data['errors'],
    }

@app.post('/refresh')
def refresh(store: RestockStore = Depends(get_store)):
    """Reloads every table and reseeds the live restock list."""
    data = store.load_all()
    if 'restocks' not in data['errors']:
        feed.seed(data['restocks'])
    return {
        'status': 'ok' if not data['errors'] else 'partial',
        'counts': {key: len(data[key]) for key in TABLE_KEYS},
        'errors': data['errors'],
    }


# ─── RESTOCKS ─────────────────────────────────────────────────

@app.get('/restocks')
def get_restocks(
    marketplace: MarketplaceFilter = 'all',
    search: Optional[str] = None,
    store: RestockStore = Depends(get_store),
):
    if feed.running:
        restocks = feed.restocks
    else:
        try:
            restocks = store.fetch_rows('restocks')
        except StoreError as e:
            raise HTTPException(status_code=500, detail=str(e))
    now = utcnow()
    filtered = filter_restocks(restocks, marketplace, search)
    return {'count': len(filtered), 'items': [feed_item(e, now) for e in filtered]}

@app.get('/restocks/stream')
async def stream_restocks():
    """Server-Sent Events: one `restock` event per row inserted into restock_events."""
    return StreamingResponse(
        feed.stream(),
        media_type='text/event-stream',
        headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'},
    )


# ─── SUPPLY LINKS ─────────────────────────────────────────────

def link_item(link: dict) -> dict:
    return {
        **link,
        'marketplace_label': marketplace_label(link.get('marketplace')),
        'status_pill': link_status_pill(bool(link.get('is_active'))),
        'created_at_text': fmt_date(link.get('created_at', '')),
    }

@app.get('/links')
def get_links(
    marketplace: MarketplaceFilter = 'all',
    search: Optional[str] = None,
    active_only: bool = True,
    store: RestockStore = Depends(get_store),
):
    try:
        links = store.fetch_rows('links')
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    filtered = filter_links(links, marketplace, search, active_only)
    return {'count': len(filtered), 'items': [link_item(l) for l in filtered]}

@app.post('/links', status_code=201)
def create_link(request: LinkCreate, store: RestockStore = Depends(get_store)):
    try:
        return link_item(store.insert_row('links', request.model_dump()))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

@app.patch('/links/{link_id}')
def update_link(link_id: str, request: LinkUpdate, store: RestockStore = Depends(get_store)):
    try:
        return link_item(store.update_row('links', link_id, changed_fields(request, LINK_NULLABLE)))
    except RowNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

@app.delete('/links/{link_id}')
def delete_link(link_id: str, store: RestockStore = Depends(get_store)):
    try:
        deleted = store.delete_row('links', link_id)
    except RowNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {'status': 'deleted', 'id': deleted.get('id', link_id)}


# ─── ALERTS ───────────────────────────────────────────────────

@app.get('/alerts')
def get_alerts(status: Optional[AlertStatus] = None, store: RestockStore = Depends(get_store)):
    """Open & recent alerts, newest first."""
    try:
        alerts = store.fetch_rows('alerts')
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if status:
        alerts = [a for a in alerts if a.get('status') == status]
    now = utcnow()
    return {'count': len(alerts), 'items': [alert_item(a, now, relative=False) for a in alerts]}

@app.post('/alerts', status_code=201)
def create_alert(request: AlertCreate, store: RestockStore = Depends(get_store)):
    try:
        return store.insert_row('alerts', request.model_dump())
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

@app.patch('/alerts/{alert_id}')
def update_alert(alert_id: str, request: AlertUpdate, store: RestockStore = Depends(get_store)):
    """Edits an alert; also how an alert is resolved, muted or reopened."""
    try:
        return store.update_row('alerts', alert_id, changed_fields(request, ALERT_NULLABLE))
    except RowNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

@app.delete('/alerts/{alert_id}')
def delete_alert(alert_id: str, store: RestockStore = Depends(get_store)):
    try:
        deleted = store.delete_row('alerts', alert_id)
    except RowNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {'status': 'deleted', 'id': deleted.get('id', alert_id)}


# ─── RESTOCK MONITORS ─────────────────────────────────────────

def monitor_item(monitor: dict) -> dict:
    last_checked = monitor.get('last_checked_at')
    return {
        **monitor,
        'status_label': status_label(monitor.get('status', '')),
        'frequency_label': frequency_label(monitor.get('frequency', '')),
        'notifications': notification_summary(monitor),
        'last_check': time_ago(last_checked) if last_checked else 'never',
        'supplier_initial': (monitor.get('supplier_name') or '?')[:1],
    }

@app.get('/monitors')
def get_monitors(
    search: Optional[str] = None,
    supplier: str = 'ALL',
    status: Literal['ALL', 'IN_STOCK', 'OUT_OF_STOCK', 'LOW_STOCK', 'ERROR', 'PAUSED'] = 'ALL',
    frequency: Literal['ALL', 'REAL_TIME', '15_MIN', '1_HOUR', 'DAILY'] = 'ALL',
    store: RestockStore = Depends(get_store),
):
    try:
        monitors = store.fetch_rows('monitors')
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    filtered = filter_monitors(monitors, search, supplier, status, frequency)
    return {
        'count': len(filtered),
        'suppliers': distinct_suppliers(monitors),
        'items': [monitor_item(m) for m in filtered],
    }

@app.get('/monitors/{monitor_id}')
def view_monitor(monitor_id: str, store: RestockStore = Depends(get_store)):
    try:
        return monitor_item(store.get_row('monitors', monitor_id))
    except RowNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

@app.post('/monitors', status_code=201)
def create_monitor(request: MonitorCreate, store: RestockStore = Depends(get_store)):
    try:
        return monitor_item(store.insert_row('monitors', request.model_dump()))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

@app.patch('/monitors/{monitor_id}')
def update_monitor(monitor_id: str, request: MonitorUpdate, store: RestockStore = Depends(get_store)):
    """Saves the edit form over the existing row. An empty form leaves the row unchanged."""
    try:
        return monitor_item(store.update_row('monitors', monitor_id, changed_fields(request, MONITOR_NULLABLE)))
    except RowNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

@app.delete('/monitors/{monitor_id}')
def delete_monitor(monitor_id: str, store: RestockStore = Depends(get_store)):
    try:
        deleted = store.delete_row('monitors', monitor_id)
    except RowNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {'status': 'deleted', 'id': deleted.get('id', monitor_id)}


# ─── REPORTS ──────────────────────────────────────────────────

@app.get('/reports/summary.pdf')
def summary_report(
    marketplace: MarketplaceFilter = 'all',
    search: Optional[str] = None,
    store: RestockStore = Depends(get_store),
):
    overview = build_overview(load_dashboard(store), marketplace, search)
    return Response(
        content=render_summary_pdf(overview),
        media_type='application/pdf',
        headers={'Content-Disposition': 'inline; filename="restock-summary.pdf"'},
    )
