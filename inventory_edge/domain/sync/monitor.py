# inventory_edge/domain/sync/monitor.py
"""Keeps ConnectivityState current and syncs when the uplink comes back.

Reachability comes from two places: a periodic ping of the remote store,
and explicit updates pushed through the API. Either way, the offline ->
online edge starts one reconciliation pass; staying online does not.
"""
import asyncio
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_edge.core.config import settings
from inventory_edge.core.errors import InventoryEdgeError
from inventory_edge.core.state import ConnectivityState
from inventory_edge.db.base import AsyncSessionLocal
from .schemas import SyncReport
from .service import SyncEngine

logger = logging.getLogger(__name__)


class ConnectivityMonitor:
    def __init__(
        self,
        connectivity: ConnectivityState,
        remote,
        engine: SyncEngine,
        session_factory=AsyncSessionLocal,
        interval: float = settings.CONNECTIVITY_CHECK_SECONDS,
    ):
        self.connectivity = connectivity
        self.remote = remote
        self.engine = engine
        self.session_factory = session_factory
        self.interval = interval

    async def update(self, online: bool, db: Optional[AsyncSession] = None) -> Optional[SyncReport]:
        """Apply a reachability observation; returns the sync report on reconnect."""
        was_online = self.connectivity.online
        if not self.connectivity.mark_online(online):
            if was_online and not online:
                logger.warning("Remote store unreachable, serving from the local store")
            return None

        logger.info("Remote store reachable again, starting sync")
        if db is not None:
            return await self.engine.run(db)
        async with self.session_factory() as session:
            return await self.engine.run(session)

    async def check(self) -> Optional[SyncReport]:
        return await self.update(await self.remote.ping())

    async def run_forever(self):
        while True:
            try:
                await self.check()
            except (InventoryEdgeError, SQLAlchemyError):
                logger.exception("Connectivity check failed")
            await asyncio.sleep(self.interval)
