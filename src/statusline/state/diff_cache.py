"""Per-session diff cache with atomic writes."""

import json
import logging
import os
import tempfile
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import filelock

from ..core import CacheEntry
from ..core.exceptions import CacheError

logger = logging.getLogger(__name__)

CACHE_FORMAT_VERSION = 1
SECONDS_PER_DAY = 86400


class CacheStorage(ABC):
    """
    Abstract record store behind the diff cache.

    A record set is a mapping of session id to serialized CacheEntry.
    """

    @abstractmethod
    def load(self) -> Dict[str, Dict[str, Any]]:
        """
        Read every stored record.

        Raises:
            CacheError: If the backing store is unreadable or corrupt
        """
        pass

    @abstractmethod
    def update(
        self,
        session_id: str,
        record: Dict[str, Any],
        max_age: Optional[float] = None,
        expected: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Insert or replace one record, pruning records older than ``max_age`` seconds.

        ``expected`` is the record the caller started from. If another
        writer has since stored a record further along, it is kept.

        Raises:
            CacheError: If the record set cannot be written
        """
        pass


class InMemoryStorage(CacheStorage):
    """Dictionary-backed storage for tests and cache-less runs."""

    def __init__(self, records: Optional[Dict[str, Dict[str, Any]]] = None):
        self.records: Dict[str, Dict[str, Any]] = dict(records or {})
        self.writes = 0

    def load(self) -> Dict[str, Dict[str, Any]]:
        return {key: dict(value) for key, value in self.records.items()}

    def update(
        self,
        session_id: str,
        record: Dict[str, Any],
        max_age: Optional[float] = None,
        expected: Optional[Dict[str, Any]] = None
    ) -> None:
        self.records = _prune(self.records, max_age)
        if _superseded(self.records.get(session_id), record, expected):
            return
        self.records[session_id] = dict(record)
        self.writes += 1


class JsonFileStorage(CacheStorage):
    """
    JSON file storage with locked read-modify-write and atomic replace.

    Readers never take the lock. Writers serialize on a sibling lock
    file so concurrent sessions do not drop each other's records.
    """

    def __init__(self, cache_file: Path, lock_timeout: float = 1.0):
        self.cache_file = Path(cache_file)
        self.lock_file = self.cache_file.with_suffix(".lock")
        self.lock_timeout = lock_timeout

    def load(self) -> Dict[str, Dict[str, Any]]:
        if not self.cache_file.exists():
            return {}

        try:
            with open(self.cache_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise CacheError("load", str(self.cache_file), str(e))

        if not isinstance(data, dict) or not isinstance(data.get("sessions"), dict):
            raise CacheError("load", str(self.cache_file), "unexpected cache layout")

        if data.get("version") != CACHE_FORMAT_VERSION:
            logger.info(
                f"Cache format {data.get('version')!r} differs from {CACHE_FORMAT_VERSION}, "
                "starting with an empty cache"
            )
            return {}

        return data["sessions"]

    def update(
        self,
        session_id: str,
        record: Dict[str, Any],
        max_age: Optional[float] = None,
        expected: Optional[Dict[str, Any]] = None
    ) -> None:
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            with filelock.FileLock(str(self.lock_file), timeout=self.lock_timeout):
                try:
                    sessions = self.load()
                except CacheError as e:
                    logger.warning(f"Discarding unreadable cache: {e}")
                    sessions = {}
                if _superseded(sessions.get(session_id), record, expected):
                    logger.debug(f"Newer cache entry for {session_id} already stored")
                    return
                sessions = _prune(sessions, max_age)
                sessions[session_id] = record
                self._write_atomic({"version": CACHE_FORMAT_VERSION, "sessions": sessions})
        except filelock.Timeout:
            raise CacheError("update", str(self.cache_file), "lock held by another writer")
        except OSError as e:
            raise CacheError("update", str(self.cache_file), str(e))

    def _write_atomic(self, data: Dict[str, Any]) -> None:
        """Write to a temp file in the cache directory, then rename over the cache."""
        temp_fd, temp_path = tempfile.mkstemp(
            dir=str(self.cache_file.parent),
            prefix=".tmp_diff_cache_",
            suffix=".json"
        )
        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.cache_file)
        except BaseException:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise


def _superseded(
    current: Optional[Dict[str, Any]],
    record: Dict[str, Any],
    expected: Optional[Dict[str, Any]]
) -> bool:
    """True when another writer replaced ``expected`` with a record past ``record``."""
    if not isinstance(current, dict):
        return False
    offset = current.get("offset")
    if expected is not None and offset == expected.get("offset"):
        return False
    return isinstance(offset, int) and offset > record["offset"]


def _prune(sessions: Dict[str, Dict[str, Any]], max_age: Optional[float]) -> Dict[str, Dict[str, Any]]:
    """Drop records not updated within ``max_age`` seconds."""
    if not max_age:
        return dict(sessions)
    cutoff = time.time() - max_age
    kept = {}
    for session_id, record in sessions.items():
        try:
            updated_at = float(record.get("updated_at", 0))
        except (AttributeError, TypeError, ValueError):
            continue
        if updated_at >= cutoff:
            kept[session_id] = record
    dropped = len(sessions) - len(kept)
    if dropped:
        logger.debug(f"Pruned {dropped} stale cache entries")
    return kept


class DiffCache:
    """
    Map session ids to their last scan position and diff totals.

    Storage failures degrade to a cache miss on read and a skipped
    write on store; they are logged, never raised.
    """

    def __init__(self, storage: CacheStorage, ttl_days: int = 7):
        self.storage = storage
        self.ttl_seconds = ttl_days * SECONDS_PER_DAY

    def lookup(self, session_id: str) -> Optional[CacheEntry]:
        """Get the cached entry for a session, or None."""
        try:
            sessions = self.storage.load()
        except CacheError as e:
            logger.warning(f"Treating diff cache as empty: {e}")
            return None

        record = sessions.get(session_id)
        if record is None:
            return None

        try:
            return CacheEntry.from_dict(record)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring malformed cache entry for {session_id}: {e}")
            return None

    def store(self, session_id: str, entry: CacheEntry, previous: Optional[CacheEntry] = None) -> bool:
        """
        Persist an entry for a session.

        ``previous`` is the entry the scan started from; a concurrent
        render that already stored a later entry wins over this one.

        Returns:
            True unless the storage failed
        """
        try:
            self.storage.update(
                session_id,
                entry.to_dict(),
                max_age=self.ttl_seconds,
                expected=previous.to_dict() if previous else None
            )
            return True
        except CacheError as e:
            logger.warning(f"Skipping diff cache write: {e}")
            return False
