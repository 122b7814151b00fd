"""
Realtime restock feed.
- Subscribes to INSERT events on restock_events through Supabase realtime
- Prepends each new row to the in-memory restock list
- Fans rows out to SSE listeners (one asyncio.Queue per client)
"""
import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Set

from supabase import AsyncClient, acreate_client

from config import Settings
from dashboard.state import RestockEvent

logger = logging.getLogger(__name__)

CHANNEL_NAME = 'restocks-realtime'
LISTENER_QUEUE_SIZE = 100
KEEPALIVE_SECONDS = 15.0


def extract_record(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Pulls the inserted row out of a postgres_changes payload."""
    data = payload.get('data')
    if isinstance(data, dict) and isinstance(data.get('record'), dict):
        return data['record']
    for key in ('new', 'record'):
        if isinstance(payload.get(key), dict):
            return payload[key]
    return None


def sse_message(event: str, data: Dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data, default=str)}\n\n"


class RestockFeed:
    def __init__(self, limit: int = 200, table: str = 'restock_events'):
        self.limit = limit
        self.table = table
        self.restocks: List[RestockEvent] = []
        self.listeners: Set[asyncio.Queue] = set()
        self.client: Optional[AsyncClient] = None
        self.channel = None

    @property
    def running(self) -> bool:
        return self.channel is not None

    def seed(self, rows: List[RestockEvent]) -> None:
        self.restocks = list(rows[:self.limit])

    def push(self, row: RestockEvent) -> None:
        self.restocks = [row, *self.restocks][:self.limit]
        for queue in list(self.listeners):
            try:
                queue.put_nowait(row)
            except asyncio.QueueFull:
                logger.warning("Dropping restock %s for a slow listener", row.get('id'))

    def handle_insert(self, payload: Dict[str, Any]) -> None:
        try:
            row = extract_record(payload)
            if row is None:
                logger.warning("Realtime payload without a record: %s", payload)
                return
            logger.info("Realtime restock %s (%s)", row.get('id'), row.get('url'))
            self.push(row)
        except Exception:
            logger.exception("Failed to handle realtime restock payload")

    async def start(self, settings: Settings) -> None:
        self.client = await acreate_client(settings.supabase_url, settings.supabase_key)
        channel = self.client.channel(CHANNEL_NAME)
        channel.on_postgres_changes(
            'INSERT',
            schema='public',
            table=self.table,
            callback=self.handle_insert,
        )
        await channel.subscribe()
        self.channel = channel
        logger.info("Subscribed to %s inserts on channel %s", self.table, CHANNEL_NAME)

    async def stop(self) -> None:
        if self.client is not None and self.channel is not None:
            await self.client.remove_channel(self.channel)
            logger.info("Removed realtime channel %s", CHANNEL_NAME)
        self.channel = None
        self.client = None

    def listen(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=LISTENER_QUEUE_SIZE)
        self.listeners.add(queue)
        return queue

    def unlisten(self, queue: asyncio.Queue) -> None:
        self.listeners.discard(queue)

    async def stream(self, keepalive: float = KEEPALIVE_SECONDS) -> AsyncIterator[str]:
        """
        Yields SSE messages for one client until it goes away. The listener
        queue is registered on the first iteration, so a response that is
        never iterated leaves nothing behind.
        """
        queue = self.listen()
        try:
            while True:
                try:
                    row = await asyncio.wait_for(queue.get(), timeout=keepalive)
                except asyncio.TimeoutError:
                    yield ': keepalive\n\n'
                    continue
                yield sse_message('restock', row)
        finally:
            self.unlisten(queue)
