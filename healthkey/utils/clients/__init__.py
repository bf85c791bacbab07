"""
Centralized configuration and engine initialization.

Settings come from environment variables and are read on first use:

    HEALTHKEY_TABLE_NAME      DynamoDB table; file storage is used when unset
    HEALTHKEY_DATA_DIR        Directory of the file store (default ~/.healthkey)
    HEALTHKEY_OWNER_ID        Partition owner in DynamoDB (default "local")
    HEALTHKEY_TIMEZONE        IANA timezone of calendar days (default: system)
    HEALTHKEY_DOUBLE_TAP_MS   Double-tap threshold; 0 disables expiry (default 400)
"""
import os
from datetime import timedelta, tzinfo
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from aws_lambda_powertools import Logger

from healthkey.services.constants import DOUBLE_TAP_THRESHOLD
from healthkey.services.engine import HealthKeyEngine
from healthkey.services.storage import FileKeyValueStore, KeyValueStore
from healthkey.services.utils import local_timezone
from healthkey.utils.dynamo import DynamoKeyValueStore, get_dynamo

logger = Logger()

DEFAULT_DATA_DIR = "~/.healthkey"
DEFAULT_OWNER_ID = "local"

# Initialize shared clients (lazy loading)
_store = None
_engine = None

def get_timezone() -> tzinfo:
    """
    Timezone that defines calendar days.

    Raises:
        EnvironmentError: If HEALTHKEY_TIMEZONE names an unknown zone
    """
    name = os.environ.get('HEALTHKEY_TIMEZONE')
    if not name:
        return local_timezone()
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise EnvironmentError(f"HEALTHKEY_TIMEZONE is not a known timezone: {name}")

def get_double_tap_threshold() -> Optional[timedelta]:
    """
    Double-tap threshold from HEALTHKEY_DOUBLE_TAP_MS; None when set to 0.

    Raises:
        EnvironmentError: If the value is not a non-negative integer
    """
    raw = os.environ.get('HEALTHKEY_DOUBLE_TAP_MS')
    if raw is None or raw.strip() == "":
        return DOUBLE_TAP_THRESHOLD
    try:
        millis = int(raw)
    except ValueError:
        raise EnvironmentError(f"HEALTHKEY_DOUBLE_TAP_MS must be an integer: {raw}")
    if millis < 0:
        raise EnvironmentError(f"HEALTHKEY_DOUBLE_TAP_MS must not be negative: {raw}")
    return timedelta(milliseconds=millis) if millis else None

def get_store() -> KeyValueStore:
    """Get or create the key-value store selected by the environment."""
    global _store
    if _store is None:
        if os.environ.get('HEALTHKEY_TABLE_NAME'):
            _store = DynamoKeyValueStore(
                get_dynamo(),
                owner_id=os.environ.get('HEALTHKEY_OWNER_ID', DEFAULT_OWNER_ID)
            )
        else:
            directory = Path(os.environ.get('HEALTHKEY_DATA_DIR', DEFAULT_DATA_DIR)).expanduser()
            _store = FileKeyValueStore(directory)
        logger.info("Initialized store", extra={"store_type": type(_store).__name__})
    return _store

def get_engine() -> HealthKeyEngine:
    """Get or create the loaded engine."""
    global _engine
    if _engine is None:
        _engine = HealthKeyEngine(
            get_store(),
            tz=get_timezone(),
            double_tap_threshold=get_double_tap_threshold()
        ).load()
    return _engine

def reset_clients() -> None:
    """Drop the cached store and engine so the next call re-reads the environment."""
    global _store, _engine
    _store = None
    _engine = None
