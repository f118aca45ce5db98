"""
Session Manager - one AppStore per client session
"""

from time import time
from typing import Dict, Optional
import logging

from services.app_store import AppStore
from services.providers import Providers
from services.recording_service import TICK_SECONDS
from utils.security_utils import is_valid_client_id
from utils.state_store import StateStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_STORES = 1000
DEFAULT_IDLE_SECONDS = 3600.0


class SessionManager:
    """
    Owns the AppStore of every client session seen by this process.
    A store is created on first use and loads its persisted snapshot once.

    Stores are kept in least-recently-used order. Stores idle longer than
    idle_seconds are closed, and the oldest ones are closed once there are
    more than max_stores; a store that is recording is only closed when every
    store is recording. A closed client comes back from its snapshot.
    """

    def __init__(
        self,
        providers: Providers,
        state_store: Optional[StateStore] = None,
        tick_interval: float = TICK_SECONDS,
        max_stores: int = DEFAULT_MAX_STORES,
        idle_seconds: float = DEFAULT_IDLE_SECONDS,
    ):
        self.providers = providers
        self.state_store = state_store
        self.tick_interval = tick_interval
        self.max_stores = max(1, max_stores)
        self.idle_seconds = idle_seconds
        self._stores: Dict[str, AppStore] = {}
        self._last_seen: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._stores)

    def __contains__(self, client_id: str) -> bool:
        return client_id in self._stores

    def get_store(self, client_id: str) -> AppStore:
        if not is_valid_client_id(client_id):
            raise ValueError(f"Invalid client id: {client_id!r}")
        now = time()
        self._evict_idle(now)

        # Re-insert so dict order stays least-recently-used first
        store = self._stores.pop(client_id, None)
        self._last_seen.pop(client_id, None)
        if store is None:
            store = AppStore(self.providers, self.state_store, client_id, self.tick_interval)
            store.load()
            logger.debug(f"Loaded client session {client_id}")
        self._stores[client_id] = store
        self._last_seen[client_id] = now

        while len(self._stores) > self.max_stores:
            self._evict(self._oldest_evictable(exclude=client_id))
        return store

    def _evict_idle(self, now: float) -> None:
        for client_id in list(self._stores):
            if now - self._last_seen[client_id] < self.idle_seconds:
                break
            if self._stores[client_id].recording.is_active:
                continue
            self._evict(client_id)

    def _oldest_evictable(self, exclude: str) -> str:
        candidates = [client_id for client_id in self._stores if client_id != exclude]
        for client_id in candidates:
            if not self._stores[client_id].recording.is_active:
                return client_id
        return candidates[0]

    def _evict(self, client_id: str) -> None:
        store = self._stores.pop(client_id)
        self._last_seen.pop(client_id, None)
        store.close()
        logger.debug(f"Evicted client session {client_id}")

    def close(self) -> None:
        for store in self._stores.values():
            store.close()
        self._stores.clear()
        self._last_seen.clear()
