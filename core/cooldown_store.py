# core/cooldown_store.py

import json
from pathlib import Path
from typing import Optional, Protocol
from datetime import datetime, timezone

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from .config import settings
from .errors import PersistenceUnavailable

class CooldownStore(Protocol):
    """Persists the time of the last AI attempt. `read` returns None when never attempted."""

    def read(self) -> Optional[datetime]:
        ...

    def write(self, timestamp: datetime) -> None:
        ...

def _as_utc(value: datetime) -> datetime:
    # BSON dates come back naive (UTC).
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

class InMemoryCooldownStore:
    """Process-local store. Does not survive restarts; meant for tests and one-off runs."""

    def __init__(self, last_attempt_at: Optional[datetime] = None):
        self._last_attempt_at = last_attempt_at

    def read(self) -> Optional[datetime]:
        return self._last_attempt_at

    def write(self, timestamp: datetime) -> None:
        self._last_attempt_at = timestamp

class FileCooldownStore:
    """Keeps the last AI attempt in a small JSON file next to the process."""

    def __init__(self, path: str = settings.cooldown_file, key: str = "last_ai_attempt"):
        self.path = Path(path)
        self.key = key

    def read(self) -> Optional[datetime]:
        try:
            if not self.path.exists():
                return None
            data = json.loads(self.path.read_text(encoding="utf-8"))
            stored = data.get(self.key)
            if stored is None:
                return None
            return _as_utc(datetime.fromisoformat(stored))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            raise PersistenceUnavailable(f"Could not read cooldown file {self.path}: {e}") from e

    def write(self, timestamp: datetime) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp_path.write_text(json.dumps({self.key: _as_utc(timestamp).isoformat()}), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            raise PersistenceUnavailable(f"Could not write cooldown file {self.path}: {e}") from e

class MongoCooldownStore:
    """Handles the persisted cooldown scalar in MongoDB (last writer wins)."""

    def __init__(self, db_name: str = settings.mongo_db_name, key: str = "last_ai_attempt", collection=None):
        if collection is None:
            self.client = MongoClient(settings.final_mongo_uri, serverSelectionTimeoutMS=2000)
            collection = self.client[db_name]["cooldown_state"]
        self.collection = collection
        self.key = key

    def read(self) -> Optional[datetime]:
        try:
            doc = self.collection.find_one({"_id": self.key})
        except PyMongoError as e:
            raise PersistenceUnavailable(f"Could not read cooldown state: {e}") from e
        if not doc or doc.get("last_ai_attempt_at") is None:
            return None
        return _as_utc(doc["last_ai_attempt_at"])

    def write(self, timestamp: datetime) -> None:
        try:
            self.collection.replace_one(
                {"_id": self.key},
                {"_id": self.key, "last_ai_attempt_at": _as_utc(timestamp)},
                upsert=True,
            )
        except PyMongoError as e:
            raise PersistenceUnavailable(f"Could not write cooldown state: {e}") from e
