"""Shared fixtures: an in-memory store and a ledger wired with fixed ids."""

import itertools
from datetime import datetime, timezone

import pytest

from finance_ledger.activity import ActivityLogger
from finance_ledger.config import LedgerSettings
from finance_ledger.ledger import LedgerState
from finance_ledger.orchestrator import FinanceLedger
from finance_ledger.services.storage import InMemoryEntityStore
from finance_ledger.sync import ReloadSignal


FIXED_NOW = datetime(2024, 12, 15, 9, 30, tzinfo=timezone.utc)


class RecordingStore(InMemoryEntityStore):
    """In-memory store that remembers every write call."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.save_calls: list[str] = []
        self.save_many_calls: list[list[str]] = []

    async def save(self, key, value):
        self.save_calls.append(key)
        await super().save(key, value)

    async def save_many(self, items):
        self.save_many_calls.append(list(items))
        await super().save_many(items)


def make_id_factory(prefix: str = "id"):
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


@pytest.fixture
def ledger_settings():
    return LedgerSettings(
        default_currency="USD",
        default_account_name="Cash Wallet",
        reverse_transfer_destination=False,
        auto_snapshot_limit=7,
    )


@pytest.fixture
def events():
    """Every activity event logged during the test, in order."""
    return []


@pytest.fixture
def activity_logger(events):
    return ActivityLogger(listeners=[events.append])


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def reload_signal():
    return ReloadSignal()


@pytest.fixture
def state(store, ledger_settings, activity_logger):
    return LedgerState(
        store,
        settings=ledger_settings,
        activity_logger=activity_logger,
    )


@pytest.fixture
async def ledger(store, reload_signal, ledger_settings, activity_logger):
    ledger = FinanceLedger(
        store,
        reload_signal=reload_signal,
        ledger_settings=ledger_settings,
        activity_logger=activity_logger,
        id_factory=make_id_factory(),
        clock=lambda: FIXED_NOW,
    )
    await ledger.load()
    yield ledger
    ledger.close()
