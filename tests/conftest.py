"""
Pytest configuration and shared fixtures.
"""
import pytest
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from healthkey.services.engine import HealthKeyEngine
from healthkey.services.registry import CategoryRegistry
from healthkey.services.storage import InMemoryKeyValueStore
from healthkey.services.timeline import TimelineStore

SHANGHAI = timezone(timedelta(hours=8))

class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

@dataclass
class FakeLambdaContext:
    """Minimal Lambda context for handler tests."""
    function_name: str = "healthkey-test"
    memory_limit_in_mb: int = 128
    invoked_function_arn: str = "arn:aws:lambda:eu-west-1:123456789012:function:healthkey-test"
    aws_request_id: str = "52fdfc07-2182-154f-163f-5f0f9a621d72"
    tenant_id: Optional[str] = None

@pytest.fixture
def tz():
    """Fixed UTC+8 timezone used for local days."""
    return SHANGHAI

@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at 2024-05-01 08:00 local time."""
    return FakeClock(datetime(2024, 5, 1, 8, 0, tzinfo=SHANGHAI))

@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()

@pytest.fixture
def registry(store) -> CategoryRegistry:
    """Registry with the built-in catalog."""
    return CategoryRegistry(store)

@pytest.fixture
def timeline(store, registry, tz) -> TimelineStore:
    return TimelineStore(store, registry, tz=tz)

@pytest.fixture
def engine(store, tz, clock) -> HealthKeyEngine:
    """Engine without double-tap expiry so pairing is bounded by the window only."""
    return HealthKeyEngine(store, tz=tz, clock=clock, double_tap_threshold=None).load()

@pytest.fixture
def lambda_context() -> FakeLambdaContext:
    return FakeLambdaContext()
