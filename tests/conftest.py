"""
Shared fixtures for Haseela tests.

No test talks to Google or touches the real home directory: the remote
store is replaced by in-memory fakes and the local cache lives under
pytest's tmp_path.
"""

from datetime import datetime, timezone
from typing import Optional

import pytest

from haseela.config import get_settings
from haseela.models.ledger import AppState, Client, MonthlyGoal, Task
from haseela.orchestrator import SyncCoordinator
from haseela.services.identity import InMemoryIdentityProvider
from haseela.services.storage import (
    ConnectionError,
    LocalStateCache,
    RemoteStoreError,
    StateStorageInterface,
    StoredState,
)


def local_dt(year: int, month: int, day: int = 15, hour: int = 12) -> datetime:
    """Aware local datetime; mid-month noon keeps tests clear of tz edges."""
    return datetime(year, month, day, hour, 0).astimezone()


class InMemoryRemoteStorage(StateStorageInterface):
    """Remote store fake that keeps records in a dict and counts calls."""

    def __init__(self, records: Optional[dict[str, AppState]] = None):
        self.records: dict[str, AppState] = dict(records or {})
        self.load_calls: list[str] = []
        self.save_calls: list[tuple[str, AppState]] = []

    async def load_state(self, user_id: str) -> Optional[StoredState]:
        self.load_calls.append(user_id)
        state = self.records.get(user_id)
        if state is None:
            return None
        return StoredState(
            user_id=user_id,
            state=state,
            updated_at=datetime.now(timezone.utc),
        )

    async def save_state(self, user_id: str, state: AppState) -> bool:
        self.save_calls.append((user_id, state))
        self.records[user_id] = state
        return True


class FailingRemoteStorage(InMemoryRemoteStorage):
    """Remote store fake whose reads and/or writes raise."""

    def __init__(self, fail_load: bool = True, fail_save: bool = True, **kwargs):
        super().__init__(**kwargs)
        self.fail_load = fail_load
        self.fail_save = fail_save

    async def load_state(self, user_id: str) -> Optional[StoredState]:
        self.load_calls.append(user_id)
        if self.fail_load:
            raise ConnectionError("network unreachable")
        return await super().load_state(user_id)

    async def save_state(self, user_id: str, state: AppState) -> bool:
        self.save_calls.append((user_id, state))
        if self.fail_save:
            raise RemoteStoreError("write rejected")
        self.records[user_id] = state
        return True


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Point settings at a temp cache and clear the settings cache."""
    monkeypatch.setenv("LOCAL_CACHE_PATH", str(tmp_path / "settings-cache.json"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def now() -> datetime:
    return local_dt(2024, 3)


@pytest.fixture
def cache(tmp_path) -> LocalStateCache:
    return LocalStateCache(path=tmp_path / "cache.json", storage_key="test_slot")


@pytest.fixture
def remote() -> InMemoryRemoteStorage:
    return InMemoryRemoteStorage()


@pytest.fixture
def identity() -> InMemoryIdentityProvider:
    return InMemoryIdentityProvider()


@pytest.fixture
def coordinator(cache, remote, identity) -> SyncCoordinator:
    return SyncCoordinator(
        local_cache=cache,
        remote_storage=remote,
        identity=identity,
        default_currency="$",
    )


@pytest.fixture
def sample_state() -> AppState:
    """Two clients, a mix of open and completed tasks, two goals."""
    return AppState(
        clients=[
            Client(
                id="c1",
                name="Acme",
                color="indigo",
                tasks=[
                    Task(
                        id="t1",
                        title="Logo",
                        price=300,
                        is_completed=True,
                        created_at=local_dt(2024, 2),
                        completed_at=local_dt(2024, 3, 5),
                    ),
                    Task(
                        id="t2",
                        title="Website",
                        price=1200,
                        created_at=local_dt(2024, 3),
                    ),
                ],
            ),
            Client(
                id="c2",
                name="Globex",
                color="emerald",
                tasks=[
                    Task(
                        id="t3",
                        title="Audit",
                        price=100,
                        is_completed=True,
                        created_at=local_dt(2024, 1),
                        completed_at=local_dt(2024, 2, 10),
                    ),
                ],
            ),
        ],
        goals=[
            MonthlyGoal(month=2, year=2024, target_amount=100),
            MonthlyGoal(month=3, year=2024, target_amount=1000),
        ],
        currency="$",
    )
