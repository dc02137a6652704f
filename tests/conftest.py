import itertools
import threading
from datetime import datetime, timedelta

import pytest

from giftledger.adapter.repositories import (
    InMemoryGiftCardStore,
    InMemoryLoyaltyStore,
    InMemoryPromotionStore,
)
from giftledger.app.services.clock import Clock
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from giftledger.app.services.id_generator import IdGenerator
from giftledger.app.services.lock_registry import LockRegistry
from giftledger.app.services.promotion_registry import PromotionRegistry
from giftledger.app.services.settings import LedgerSettings

NOW = datetime(2024, 3, 1, 10, 0, 0)


class FixedClock(Clock):
    """Clock frozen at a given instant; advance() moves it forward"""

    def __init__(self, now: datetime = NOW):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


class SequentialIdGenerator(IdGenerator):
    """Deterministic ids: id-1, id-2, ..."""

    def __init__(self, prefix: str = "id"):
        self.prefix = prefix
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def new_id(self) -> str:
        with self._lock:
            return f"{self.prefix}-{next(self._counter)}"


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def id_generator():
    return SequentialIdGenerator()


@pytest.fixture
def settings():
    return LedgerSettings(default_currency="USD", gift_card_expiration_months=12)


@pytest.fixture
def locks():
    return LockRegistry()


@pytest.fixture
def gift_card_store():
    return InMemoryGiftCardStore()


@pytest.fixture
def promotion_store():
    return InMemoryPromotionStore()


@pytest.fixture
def loyalty_store():
    return InMemoryLoyaltyStore()


@pytest.fixture
def gift_card_registry(gift_card_store, locks):
    return GiftCardRegistry(gift_card_store, locks)


@pytest.fixture
def promotion_registry(promotion_store, locks):
    return PromotionRegistry(promotion_store, locks)
