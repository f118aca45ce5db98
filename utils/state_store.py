"""
Persisted client state snapshots.

A snapshot is the small key-value dict an AppStore writes on every session
mutation ({identity, authenticated, subscription_tier, selected_jurisdiction}).
Redis is used when REDIS_URL is reachable; otherwise snapshots are JSON files
under STATE_DIR.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from utils.security_utils import is_valid_client_id

logger = logging.getLogger(__name__)

SNAPSHOT_KEY_PREFIX = "kyr:state:"


class StateStore:
    """Snapshot persistence contract"""

    def load(self, client_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def save(self, client_id: str, snapshot: Dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, client_id: str) -> None:
        raise NotImplementedError


class FileStateStore(StateStore):
    """One JSON file per client, written atomically (temp -> rename)"""

    def __init__(self, state_dir: Path):
        self.state_dir = Path(state_dir)

    def _path(self, client_id: str) -> Path:
        if not is_valid_client_id(client_id):
            raise ValueError(f"Invalid client id: {client_id!r}")
        self.state_dir.mkdir(parents=True, exist_ok=True)
        return self.state_dir / f"{client_id}.json"

    def load(self, client_id: str) -> Optional[Dict[str, Any]]:
        path = self._path(client_id)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read state snapshot for {client_id}: {e}")
            return None

    def save(self, client_id: str, snapshot: Dict[str, Any]) -> None:
        path = self._path(client_id)
        temp_path = path.with_suffix(".json.tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(snapshot, f, indent=2)
        temp_path.replace(path)

    def delete(self, client_id: str) -> None:
        path = self._path(client_id)
        path.unlink(missing_ok=True)


class RedisStateStore(StateStore):

    def __init__(self, client):
        self.client = client

    def load(self, client_id: str) -> Optional[Dict[str, Any]]:
        raw = self.client.get(SNAPSHOT_KEY_PREFIX + client_id)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Discarding unreadable snapshot for {client_id}: {e}")
            return None

    def save(self, client_id: str, snapshot: Dict[str, Any]) -> None:
        self.client.set(SNAPSHOT_KEY_PREFIX + client_id, json.dumps(snapshot))

    def delete(self, client_id: str) -> None:
        self.client.delete(SNAPSHOT_KEY_PREFIX + client_id)


def build_state_store(redis_url: Optional[str], state_dir: Path) -> StateStore:
    """Pick Redis when it answers a ping, otherwise fall back to files"""
    if redis_url:
        import redis

        try:
            client = redis.from_url(redis_url, decode_responses=True)
            client.ping()
            logger.info("✅ Redis connected successfully for client state")
            return RedisStateStore(client)
        except redis.RedisError as e:
            logger.warning(f"⚠️ Redis connection failed: {e}. Falling back to file state store.")
    else:
        logger.info("ℹ️ REDIS_URL not set. Using file state store.")
    return FileStateStore(state_dir)
