"""In-memory store implementations

Records are held as pydantic JSON, so every load goes through the same
serialization round trip as a durable store.
"""

import threading
from typing import Optional
from libs.result import Result, Return
from giftledger.app.repositories.gift_card_store import GiftCardStore
from giftledger.app.repositories.loyalty_store import LoyaltyStore
from giftledger.app.repositories.promotion_store import PromotionStore
from giftledger.domain.errors import ErrorCode, make_error
from giftledger.domain.gift_card import GiftCardSnapshot
from giftledger.domain.loyalty import ClientLoyaltyAccount, LoyaltyProgram
from giftledger.domain.promotion import Promotion
from giftledger.domain.promotion_usage import PromotionUsage


class InMemoryGiftCardStore(GiftCardStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._snapshots: dict[str, str] = {}

    def save(self, snapshot: GiftCardSnapshot) -> Result[None]:
        with self._lock:
            previous = self._snapshots.get(snapshot.id)
            if previous is not None:
                stored = GiftCardSnapshot.model_validate_json(previous).transactions
                if [entry.id for entry in stored] != [entry.id for entry in snapshot.transactions[:len(stored)]]:
                    return Return.err(
                        make_error(
                            ErrorCode.PERSISTENCE_FAILED,
                            f"Snapshot of {snapshot.id} rewrites stored ledger entries",
                            reason=f"stored={len(stored)}, snapshot={len(snapshot.transactions)}",
                        )
                    )
            self._snapshots[snapshot.id] = snapshot.model_dump_json()
        return Return.ok(None)

    def load(self, card_id: str) -> Result[GiftCardSnapshot]:
        with self._lock:
            raw = self._snapshots.get(card_id)
        if raw is None:
            return Return.err(make_error(ErrorCode.GIFT_CARD_NOT_FOUND, f"Gift card {card_id} not found"))
        return Return.ok(GiftCardSnapshot.model_validate_json(raw))

    def list_ids(self) -> Result[list[str]]:
        with self._lock:
            return Return.ok(list(self._snapshots))


class InMemoryPromotionStore(PromotionStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._promotions: dict[str, str] = {}
        self._usages: dict[str, list[str]] = {}

    def save_promotion(self, promotion: Promotion) -> Result[None]:
        with self._lock:
            self._promotions[promotion.id] = promotion.model_dump_json()
        return Return.ok(None)

    def load_promotion(self, promotion_id: str) -> Result[Promotion]:
        with self._lock:
            raw = self._promotions.get(promotion_id)
        if raw is None:
            return Return.err(make_error(ErrorCode.PROMOTION_NOT_FOUND, f"Promotion {promotion_id} not found"))
        return Return.ok(Promotion.model_validate_json(raw))

    def list_usages(self, promotion_id: str) -> Result[list[PromotionUsage]]:
        with self._lock:
            raw = list(self._usages.get(promotion_id, []))
        return Return.ok([PromotionUsage.model_validate_json(item) for item in raw])

    def append_usage(self, usage: PromotionUsage) -> Result[None]:
        with self._lock:
            self._usages.setdefault(usage.promotion_id, []).append(usage.model_dump_json())
        return Return.ok(None)

    def list_ids(self) -> Result[list[str]]:
        with self._lock:
            return Return.ok(list(self._promotions))


class InMemoryLoyaltyStore(LoyaltyStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._programs: dict[str, str] = {}
        self._accounts: dict[tuple[str, str], str] = {}

    def save_program(self, program: LoyaltyProgram) -> Result[None]:
        with self._lock:
            self._programs[program.id] = program.model_dump_json()
        return Return.ok(None)

    def load_program(self, program_id: str) -> Result[LoyaltyProgram]:
        with self._lock:
            raw = self._programs.get(program_id)
        if raw is None:
            return Return.err(
                make_error(ErrorCode.LOYALTY_PROGRAM_NOT_FOUND, f"Loyalty program {program_id} not found")
            )
        return Return.ok(LoyaltyProgram.model_validate_json(raw))

    def save_account(self, account: ClientLoyaltyAccount) -> Result[None]:
        with self._lock:
            self._accounts[(account.program_id, account.client_id)] = account.model_dump_json()
        return Return.ok(None)

    def load_account(self, program_id: str, client_id: str) -> Result[Optional[ClientLoyaltyAccount]]:
        with self._lock:
            raw = self._accounts.get((program_id, client_id))
        if raw is None:
            return Return.ok(None)
        return Return.ok(ClientLoyaltyAccount.model_validate_json(raw))
