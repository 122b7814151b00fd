"""
Supabase data access for the dashboard tables.
Endpoints and scripts read and write rows through RestockStore.
"""
import logging
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional

from supabase import Client, create_client

from config import Settings, first_env_file, get_settings
from dashboard.state import DashboardData

logger = logging.getLogger(__name__)

TABLE_KEYS = ('restocks', 'links', 'alerts', 'monitors')


class StoreError(RuntimeError):
    def __init__(self, table: str, message: str):
        super().__init__(message)
        self.table = table

    @classmethod
    def failed(cls, table: str, exc: Exception) -> "StoreError":
        return cls(table, f"Supabase request on '{table}' failed: {exc}")


class RowNotFound(StoreError):
    def __init__(self, table: str, row_id: str):
        super().__init__(table, f"No row with id '{row_id}' in '{table}'")
        self.row_id = row_id


class SupabaseNotConfigured(RuntimeError):
    pass


@lru_cache(maxsize=1)
def get_client() -> Client:
    settings = get_settings()
    if not settings.supabase_configured:
        raise SupabaseNotConfigured(
            "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are not configured. "
            f"Add them to the repo root .env or backend/.env (found: {first_env_file() or 'none'})."
        )
    return create_client(settings.supabase_url, settings.supabase_key)


class RestockStore:
    """
    Thin wrapper over the Supabase query builder, one method per dashboard operation.
    Without an explicit client the shared one is built on first use, so a missing
    configuration surfaces as a StoreError from the request that needed it.
    """

    def __init__(self, client: Optional[Client], settings: Settings):
        self._client = client
        self.settings = settings

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_client()
        return self._client

    def table_name(self, key: str) -> str:
        return self.settings.table(key).name

    def fetch_rows(self, key: str) -> List[Dict[str, Any]]:
        table = self.settings.table(key)
        try:
            result = (
                self.client.table(table.name)
                .select('*')
                .order(table.order_by, desc=True)
                .limit(table.limit)
                .execute()
            )
        except Exception as exc:
            raise StoreError.failed(table.name, exc)
        return result.data or []

    def load_all(self, keys: Iterable[str] = TABLE_KEYS) -> DashboardData:
        """
        Loads the dashboard tables named in keys (all of them by default).
        A failing table is logged and comes back empty; the others still load.
        Tables left out of keys come back empty without a query.
        """
        data: Dict[str, Any] = {key: [] for key in TABLE_KEYS}
        errors: Dict[str, str] = {}
        for key in keys:
            try:
                data[key] = self.fetch_rows(key)
            except StoreError as exc:
                logger.warning("Could not load %s: %s", key, exc)
                errors[key] = str(exc)
        data['errors'] = errors
        return data  # type: ignore[return-value]

    def get_row(self, key: str, row_id: str) -> Dict[str, Any]:
        name = self.table_name(key)
        try:
            result = self.client.table(name).select('*').eq('id', row_id).limit(1).execute()
        except Exception as exc:
            raise StoreError.failed(name, exc)
        if not result.data:
            raise RowNotFound(name, row_id)
        return result.data[0]

    def insert_row(self, key: str, row: Dict[str, Any]) -> Dict[str, Any]:
        name = self.table_name(key)
        try:
            result = self.client.table(name).insert(row).execute()
        except Exception as exc:
            raise StoreError.failed(name, exc)
        if not result.data:
            raise StoreError(name, 'insert returned no rows')
        logger.info("Inserted row %s into %s", result.data[0].get('id'), name)
        return result.data[0]

    def update_row(self, key: str, row_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        if not fields:
            return self.get_row(key, row_id)
        name = self.table_name(key)
        try:
            result = self.client.table(name).update(fields).eq('id', row_id).execute()
        except Exception as exc:
            raise StoreError.failed(name, exc)
        if not result.data:
            raise RowNotFound(name, row_id)
        logger.info("Updated row %s in %s: %s", row_id, name, sorted(fields))
        return result.data[0]

    def delete_row(self, key: str, row_id: str) -> Dict[str, Any]:
        name = self.table_name(key)
        try:
            result = self.client.table(name).delete().eq('id', row_id).execute()
        except Exception as exc:
            raise StoreError.failed(name, exc)
        if not result.data:
            raise RowNotFound(name, row_id)
        logger.info("Deleted row %s from %s", row_id, name)
        return result.data[0]

    def count_rows(self, key: str) -> int:
        name = self.table_name(key)
        try:
            result = self.client.table(name).select('*', count='exact').execute()
        except Exception as exc:
            raise StoreError.failed(name, exc)
        return result.count or 0


def get_store() -> RestockStore:
    return RestockStore(None, get_settings())
