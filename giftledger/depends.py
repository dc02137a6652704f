"""Wiring of stores, registries and settings from ApplicationConfig"""

from typing import Optional
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine
from config import ApplicationConfig
from giftledger.adapter.repositories import (
    SqlModelGiftCardStore,
    SqlModelLoyaltyStore,
    SqlModelPromotionStore,
)
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from giftledger.app.services.lock_registry import LockRegistry
from giftledger.app.services.promotion_registry import PromotionRegistry
from giftledger.app.services.settings import LedgerSettings


def create_db_engine(db_uri: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Engine for db_uri (defaults to ApplicationConfig.DB_URI)

    SQLite connections are shared across threads; an in-memory SQLite
    database uses a single static connection so every session sees it.
    """
    db_uri = db_uri or ApplicationConfig.DB_URI
    kwargs = {}
    if db_uri.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if db_uri in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(db_uri, echo=echo, **kwargs)


def init_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)


class Container:
    """
    Shared per-process objects

    Usage:
        container = Container()
        card = PurchaseGiftCard(
            container.gift_cards, SystemClock(), UuidGenerator(), container.settings
        )
    """

    def __init__(self, db_uri: Optional[str] = None, engine: Optional[Engine] = None):
        self.engine = engine or create_db_engine(db_uri)
        init_db(self.engine)

        self.settings = LedgerSettings.from_config(ApplicationConfig)
        self.locks = LockRegistry()

        self.gift_card_store = SqlModelGiftCardStore(self.engine)
        self.promotion_store = SqlModelPromotionStore(self.engine)
        self.loyalty_store = SqlModelLoyaltyStore(self.engine)

        self.gift_cards = GiftCardRegistry(self.gift_card_store, self.locks)
        self.promotions = PromotionRegistry(self.promotion_store, self.locks)

    def shutdown(self) -> None:
        self.engine.dispose()
