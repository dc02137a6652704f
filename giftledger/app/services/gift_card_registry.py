"""Gift Card Registry

In-memory working set of gift cards in front of a GiftCardStore. Every
mutation of a card runs under that card's lock as one critical section:

    validate -> append -> verify -> persist -> (rollback on failure)

so callers observe either the committed result or no change at all.
"""

import logging
import threading
from typing import Callable, Optional, TypeVar
from libs.result import Error, Result, Return
from giftledger.app.repositories.gift_card_store import GiftCardStore
from giftledger.app.services.lock_registry import LockRegistry
from giftledger.domain.errors import ErrorCode, ErrorKind, error_kind, make_error
from giftledger.domain.gift_card import GiftCard
from giftledger.domain.money import Money

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GiftCardRegistry:
    """
    Working set of gift cards keyed by id, with a code index

    Domain Rules:
    - Codes are unique (case-insensitive) across the registry and the store
    - A card whose ledger fails verification is halted: every later mutation
      returns LEDGER_VIOLATION until clear_halt() reloads it cleanly
    - A failed save restores the card to its pre-operation state
    """

    def __init__(self, store: GiftCardStore, locks: Optional[LockRegistry] = None):
        self._store = store
        self._locks = locks or LockRegistry()
        self._cards: dict[str, GiftCard] = {}
        self._codes: dict[str, str] = {}
        self._halted: dict[str, Error] = {}
        self._index_lock = threading.Lock()
        self._loaded_all = False

    # Loading

    def load_all(self) -> Result[int]:
        """
        Load every stored card into the working set

        Cards whose ledger does not replay are halted rather than failing
        the whole load.

        Returns:
            Result[int]: Number of cards in the working set, or the store error
        """
        listed = self._call_store(self._store.list_ids)
        if listed.is_err():
            return Return.err(listed.error)

        for card_id in listed.value:
            with self._locks.locked(card_id):
                loaded = self._load(card_id)
            if loaded.is_err() and loaded.error.code != ErrorCode.LEDGER_VIOLATION:
                return Return.err(loaded.error)

        self._loaded_all = True
        return Return.ok(len(self._cards))

    def _ensure_loaded(self) -> Result[int]:
        if self._loaded_all:
            return Return.ok(len(self._cards))
        return self.load_all()

    def _load(self, card_id: str) -> Result[GiftCard]:
        """Load one card into the working set (caller holds the card's lock)"""
        cached = self._cards.get(card_id)
        if cached is not None:
            return Return.ok(cached)
        if card_id in self._halted:
            return Return.err(self._halted[card_id])

        loaded = self._call_store(lambda: self._store.load(card_id))
        if loaded.is_err():
            return Return.err(loaded.error)

        restored = GiftCard.from_snapshot(loaded.value)
        if restored.is_err():
            if error_kind(restored.error.code) == ErrorKind.LEDGER_VIOLATION:
                self._halt(card_id, restored.error)
            return Return.err(restored.error)

        card = restored.value
        self._cards[card_id] = card
        with self._index_lock:
            self._codes[card.code] = card_id
        return Return.ok(card)

    # Registration

    def add(self, card: GiftCard) -> Result[GiftCard]:
        """
        Register and persist a newly issued card

        Returns:
            Result[GiftCard]: The card, DUPLICATE_CODE or PERSISTENCE_FAILED
        """
        ready = self._ensure_loaded()
        if ready.is_err():
            return Return.err(ready.error)

        with self._index_lock:
            if card.code in self._codes or card.id in self._cards:
                return Return.err(
                    make_error(
                        ErrorCode.DUPLICATE_CODE,
                        f"Gift card code {card.code} is already in use",
                        reason=f"card_id={card.id}",
                    )
                )
            self._codes[card.code] = card.id

        with self._locks.locked(card.id):
            saved = self._save(card)
            if saved.is_err():
                with self._index_lock:
                    self._codes.pop(card.code, None)
                return Return.err(saved.error)
            self._cards[card.id] = card

        logger.info(f"Registered gift card {card.id} ({card.code}) worth {card.initial_value}")
        return Return.ok(card)

    # Mutation

    def mutate(self, card_id: str, operation: Callable[[GiftCard], Result[T]]) -> Result[T]:
        """
        Run one operation on a card as an all-or-nothing step

        Args:
            card_id: Gift card identifier
            operation: Function applying the change to the live card

        Returns:
            Result[T]: The operation's result once persisted, the operation's
            own error, LEDGER_VIOLATION (card halted) or PERSISTENCE_FAILED
            (card rolled back)
        """
        with self._locks.locked(card_id):
            if card_id in self._halted:
                return Return.err(self._halted[card_id])

            loaded = self._load(card_id)
            if loaded.is_err():
                return Return.err(loaded.error)
            card = loaded.value

            checkpoint = card.checkpoint()
            outcome = operation(card)
            if outcome.is_err():
                card.restore(checkpoint)
                if error_kind(outcome.error.code) == ErrorKind.LEDGER_VIOLATION:
                    self._halt(card_id, outcome.error)
                return outcome

            verified = card.verify()
            if verified.is_err():
                card.restore(checkpoint)
                self._halt(card_id, verified.error)
                return Return.err(verified.error)

            saved = self._save(card)
            if saved.is_err():
                card.restore(checkpoint)
                logger.warning(
                    f"Rolled back gift card {card_id} after persistence failure: {saved.error}"
                )
                return Return.err(saved.error)

            return outcome

    # Reads

    def view(self, card_id: str) -> Result[GiftCard]:
        """
        Detached copy of a card's committed state

        Returns:
            Result[GiftCard]: Copy safe to read without the card's lock, or
            GIFT_CARD_NOT_FOUND / LEDGER_VIOLATION / PERSISTENCE_FAILED
        """
        with self._locks.locked(card_id):
            loaded = self._load(card_id)
            if loaded.is_err():
                return Return.err(loaded.error)
            return GiftCard.from_snapshot(loaded.value.to_snapshot())

    def find_id_by_code(self, code: str) -> Result[str]:
        ready = self._ensure_loaded()
        if ready.is_err():
            return Return.err(ready.error)
        normalized = code.strip().upper()
        with self._index_lock:
            card_id = self._codes.get(normalized)
        if card_id is None:
            return Return.err(
                make_error(
                    ErrorCode.GIFT_CARD_NOT_FOUND,
                    f"Gift card with code {normalized} not found",
                )
            )
        return Return.ok(card_id)

    def all_cards(self) -> Result[list[GiftCard]]:
        """Detached copies of every card that is not halted"""
        ready = self._ensure_loaded()
        if ready.is_err():
            return Return.err(ready.error)

        with self._index_lock:
            card_ids = list(self._codes.values())

        cards = []
        for card_id in card_ids:
            if card_id in self._halted:
                continue
            viewed = self.view(card_id)
            if viewed.is_err():
                # Halted, or still being registered by a concurrent add()
                if viewed.error.code in (ErrorCode.LEDGER_VIOLATION, ErrorCode.GIFT_CARD_NOT_FOUND):
                    continue
                return Return.err(viewed.error)
            cards.append(viewed.value)
        return Return.ok(cards)

    # Verification and halting

    def verify(self, card_id: str) -> Result[Money]:
        """Replay a card's ledger against its cached balance, halting it on mismatch"""
        with self._locks.locked(card_id):
            if card_id in self._halted:
                return Return.err(self._halted[card_id])
            loaded = self._load(card_id)
            if loaded.is_err():
                return Return.err(loaded.error)
            verified = loaded.value.verify()
            if verified.is_err():
                self._halt(card_id, verified.error)
            return verified

    def halted_ids(self) -> list[str]:
        return sorted(self._halted)

    def clear_halt(self, card_id: str) -> Result[GiftCard]:
        """
        Reload a halted card from the store after manual reconciliation

        The card stays halted when the stored ledger still does not replay.
        """
        with self._locks.locked(card_id):
            self._halted.pop(card_id, None)
            self._cards.pop(card_id, None)
            reloaded = self._load(card_id)
        if reloaded.is_ok():
            logger.info(f"Cleared halt on gift card {card_id}")
        return reloaded

    def _halt(self, card_id: str, error: Error) -> None:
        self._halted[card_id] = make_error(
            ErrorCode.LEDGER_VIOLATION,
            f"Gift card {card_id} is halted pending reconciliation",
            reason=error.reason or error.message,
        )
        logger.critical(f"Halted gift card {card_id}: {error}")

    # Store access

    def _save(self, card: GiftCard) -> Result[None]:
        return self._call_store(lambda: self._store.save(card.to_snapshot()))

    def _call_store(self, call: Callable[[], Result[T]]) -> Result[T]:
        try:
            return call()
        except Exception as e:
            logger.error(f"Gift card store raised: {e}")
            return Return.err(
                make_error(
                    ErrorCode.PERSISTENCE_FAILED,
                    "Gift card store failed",
                    reason=str(e),
                )
            )
