"""
Key-value persistence used by the registry, timeline and day-meta stores.

Every store keeps one whole snapshot per key and rewrites it on each
mutation. Backends only need to load and save opaque bytes.

Typical usage:
    store = InMemoryKeyValueStore()
    timeline = TimelineStore(store, registry)
    timeline.append("water", now)
"""
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from aws_lambda_powertools import Logger

from healthkey.services.exceptions import StorageError

logger = Logger()


class KeyValueStore(Protocol):
    """Minimal persistence interface."""

    def load(self, key: str) -> Optional[bytes]:
        ...

    def save(self, key: str, data: bytes) -> None:
        ...


class InMemoryKeyValueStore:
    """Dictionary-backed store, used in tests and for throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})

    def load(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def save(self, key: str, data: bytes) -> None:
        self._data[key] = bytes(data)

    def keys(self):
        return list(self._data)


class FileKeyValueStore:
    """
    Store each key as a JSON file under a data directory.

    Writes go to a temporary file that replaces the target, so a crash
    never leaves a half-written snapshot behind.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def load(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def save(self, key: str, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path(key))
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def dump_snapshot(payload: Any) -> bytes:
    """Serialize a JSON-compatible snapshot deterministically."""
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":")).encode("utf-8")


def read_snapshot(store: KeyValueStore, key: str) -> Optional[Any]:
    """
    Load and decode a snapshot.

    Returns:
        Decoded JSON value, or None when the key is absent

    Raises:
        StorageError: If the stored bytes are not valid JSON
    """
    raw = store.load(key)
    if raw is None:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Unreadable snapshot", extra={
            "key": key,
            "error": str(e),
            "error_type": e.__class__.__name__
        })
        raise StorageError(f"Snapshot {key} is not valid JSON: {str(e)}") from e


def write_snapshot(store: KeyValueStore, key: str, payload: Any) -> None:
    """
    Serialize and save a snapshot.

    Raises:
        StorageError: If the backend fails to save
    """
    data = dump_snapshot(payload)
    try:
        store.save(key, data)
    except Exception as e:
        logger.error("Error saving snapshot", extra={
            "key": key,
            "size": len(data),
            "error": str(e),
            "error_type": e.__class__.__name__
        })
        raise StorageError(f"Failed to save {key}: {str(e)}") from e
