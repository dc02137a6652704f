"""Gift Card Ledger

Ordered, append-only history of balance-affecting entries for one gift card.
The running balance is a cache of the last entry's balance_after and can be
checked at any time against a full replay (reconstruct).
"""

import logging
import threading
from datetime import datetime
from typing import Iterable, Optional
from libs.result import Result, Return
from giftledger.domain.errors import ErrorCode, make_error
from giftledger.domain.ledger_entry import EntryKind, LedgerEntry, signed_amount
from giftledger.domain.money import Money

logger = logging.getLogger(__name__)


class Ledger:
    """
    Append-only ledger for a single instrument

    Domain Rules:
    - Entries are never edited or removed (truncate() exists only to undo an
      append whose persistence failed)
    - Sequence numbers start at 1 and have no gaps
    - The balance never drops below the floor (zero for gift cards)
    - Appends to one ledger are serialized on the ledger's own lock
    """

    def __init__(
        self,
        instrument_id: str,
        currency: str = "USD",
        floor: Optional[Money] = None,
    ):
        self.instrument_id = instrument_id
        self.currency = currency
        self.floor = floor if floor is not None else Money.zero(currency)
        self._entries: list[LedgerEntry] = []
        self._balance = Money.zero(currency)
        self._lock = threading.Lock()

    @classmethod
    def restore(
        cls,
        instrument_id: str,
        currency: str,
        entries: Iterable[LedgerEntry],
        floor: Optional[Money] = None,
    ) -> Result["Ledger"]:
        """
        Rebuild a ledger from stored entries

        The entries are replayed before the ledger is handed out; a broken
        history is reported as LEDGER_VIOLATION instead of being trusted.
        """
        ledger = cls(instrument_id, currency, floor=floor)
        ledger._entries = sorted(entries, key=lambda entry: entry.sequence)
        replayed = ledger.reconstruct()
        if replayed.is_err():
            return Return.err(replayed.error)
        ledger._balance = replayed.value
        return Return.ok(ledger)

    @property
    def balance(self) -> Money:
        return self._balance

    @property
    def entries(self) -> tuple[LedgerEntry, ...]:
        return tuple(self._entries)

    @property
    def last_entry(self) -> Optional[LedgerEntry]:
        return self._entries[-1] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)

    def append(
        self,
        kind: EntryKind,
        amount: Money,
        *,
        entry_id: str,
        created_at: datetime,
        related_transaction_id: Optional[str] = None,
        appointment_id: Optional[str] = None,
        notes: str = "",
    ) -> Result[LedgerEntry]:
        """
        Append one entry

        Args:
            kind: Entry kind
            amount: Entry amount (non-negative except for ADJUSTMENT)
            entry_id: Identifier for the new entry
            created_at: Entry timestamp

        Returns:
            Result[LedgerEntry]: The committed entry, or an error with no entry
            appended (CURRENCY_MISMATCH, INVALID_AMOUNT, LEDGER_VIOLATION)
        """
        if amount.currency != self.currency:
            return Return.err(
                make_error(
                    ErrorCode.CURRENCY_MISMATCH,
                    f"Ledger is in {self.currency}, entry is in {amount.currency}",
                )
            )
        if kind != EntryKind.ADJUSTMENT and amount.is_negative():
            return Return.err(
                make_error(
                    ErrorCode.INVALID_AMOUNT,
                    f"{kind.value} amount must not be negative",
                    reason=f"amount={amount.amount}",
                )
            )

        with self._lock:
            balance_before = self._balance
            balance_after = balance_before.add(signed_amount(kind, amount))

            if balance_after < self.floor:
                logger.error(
                    f"Rejected {kind.value} on instrument {self.instrument_id}: "
                    f"balance would be {balance_after}, floor is {self.floor}"
                )
                return Return.err(
                    make_error(
                        ErrorCode.LEDGER_VIOLATION,
                        f"Entry would take the balance below {self.floor}",
                        reason=f"balance_before={balance_before.amount}, "
                               f"amount={amount.amount}, kind={kind.value}",
                    )
                )

            entry = LedgerEntry(
                id=entry_id,
                instrument_id=self.instrument_id,
                sequence=len(self._entries) + 1,
                kind=kind,
                amount=amount,
                balance_before=balance_before,
                balance_after=balance_after,
                created_at=created_at,
                related_transaction_id=related_transaction_id,
                appointment_id=appointment_id,
                notes=notes,
            )
            self._entries.append(entry)
            self._balance = balance_after
            return Return.ok(entry)

    def reconstruct(self) -> Result[Money]:
        """
        Replay every entry in sequence order and return the final balance

        Returns:
            Result[Money]: Replayed balance, or LEDGER_VIOLATION on a sequence
            gap, a balance discontinuity, a foreign entry or a balance below
            the floor
        """
        running = Money.zero(self.currency)
        for position, entry in enumerate(list(self._entries), start=1):
            if entry.instrument_id != self.instrument_id:
                return self._violation(f"entry {entry.id} belongs to {entry.instrument_id}")
            if entry.sequence != position:
                return self._violation(
                    f"sequence gap: expected {position}, found {entry.sequence}"
                )
            if entry.balance_before != running:
                return self._violation(
                    f"entry {entry.sequence} starts at {entry.balance_before}, "
                    f"replay is at {running}"
                )
            running = running.add(entry.signed)
            if running < self.floor:
                return self._violation(
                    f"entry {entry.sequence} takes balance to {running}"
                )
        return Return.ok(running)

    def verify(self) -> Result[Money]:
        """Check the cached balance against a full replay"""
        replayed = self.reconstruct()
        if replayed.is_err():
            return replayed
        if replayed.value != self._balance:
            return self._violation(
                f"cached balance {self._balance} differs from replay {replayed.value}"
            )
        return replayed

    def truncate(self, length: int) -> None:
        """Drop entries after position length (rollback of uncommitted appends)"""
        with self._lock:
            del self._entries[length:]
            last = self._entries[-1] if self._entries else None
            self._balance = last.balance_after if last else Money.zero(self.currency)

    def _violation(self, detail: str) -> Result[Money]:
        logger.error(f"Ledger violation on instrument {self.instrument_id}: {detail}")
        return Return.err(
            make_error(
                ErrorCode.LEDGER_VIOLATION,
                f"Ledger for {self.instrument_id} failed reconstruction",
                reason=detail,
            )
        )
