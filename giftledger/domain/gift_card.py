"""Gift Card Domain Entity

A balance-bearing redeemable instrument. The balance is never stored: it is
derived from the card's ledger, which starts with a PURCHASE entry for the
initial value.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import NamedTuple, Optional
from pydantic import BaseModel, Field, PrivateAttr, field_validator
from libs.result import Result, Return
from giftledger.domain.errors import ErrorCode, make_error
from giftledger.domain.ledger import Ledger
from giftledger.domain.ledger_entry import EntryKind, LedgerEntry
from giftledger.domain.money import Money
from giftledger.domain.timestamps import to_naive_utc


class GiftCardStatus(str, Enum):
    """Gift card lifecycle status"""
    PENDING = "pending"
    ACTIVE = "active"
    REDEEMED = "redeemed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    SUSPENDED = "suspended"


TERMINAL_STATUSES = frozenset({GiftCardStatus.REDEEMED, GiftCardStatus.CANCELLED})


class DeliveryMethod(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    PHYSICAL = "physical"
    IN_PERSON = "in_person"


class GiftCardCheckpoint(NamedTuple):
    """Mutable state captured before an operation, for rollback"""
    status: GiftCardStatus
    activation_date: Optional[datetime]
    ledger_length: int


class GiftCardBase(BaseModel):
    """Descriptive gift card fields shared by the live entity and its snapshot"""

    id: str = Field(
        ...,
        description="Unique gift card identifier"
    )

    code: str = Field(
        ...,
        min_length=1,
        description="Unique redemption code (stored upper-case)"
    )

    initial_value: Money = Field(
        ...,
        description="Value loaded at purchase"
    )

    status: GiftCardStatus = Field(
        default=GiftCardStatus.PENDING,
        description="Stored lifecycle status (expiry is evaluated lazily)"
    )

    purchaser_id: Optional[str] = Field(
        default=None,
        description="Client who bought the card"
    )

    recipient_name: str = Field(
        default="",
        description="Recipient name"
    )

    recipient_email: str = Field(
        default="",
        description="Recipient email"
    )

    recipient_phone: str = Field(
        default="",
        description="Recipient phone"
    )

    message: str = Field(
        default="",
        description="Personal message printed on the card"
    )

    delivery_method: DeliveryMethod = Field(
        default=DeliveryMethod.EMAIL,
        description="How the card reaches the recipient"
    )

    delivery_date: Optional[datetime] = Field(
        default=None,
        description="Scheduled delivery (None = immediate)"
    )

    purchase_date: datetime = Field(
        ...,
        description="Purchase timestamp"
    )

    activation_date: Optional[datetime] = Field(
        default=None,
        description="When the card became (or becomes) active"
    )

    expiration_date: Optional[datetime] = Field(
        default=None,
        description="Expiry timestamp (None = never expires)"
    )

    is_reloadable: bool = Field(
        default=False,
        description="Whether value can be added after purchase"
    )

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("delivery_date", "purchase_date", "activation_date", "expiration_date")
    @classmethod
    def _normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class GiftCardSnapshot(GiftCardBase):
    """
    Persistable state of a gift card: descriptive fields plus the full ledger

    Serializes with model_dump_json() and restores with GiftCard.from_snapshot().
    """

    transactions: list[LedgerEntry] = Field(
        default_factory=list,
        description="Ledger entries in sequence order"
    )


class GiftCard(GiftCardBase):
    """
    Gift Card - Redeemable instrument backed by an append-only ledger

    Domain Rules:
    - balance = replay of the ledger; never assigned directly
    - balance >= 0 at all times
    - REDEEMED iff balance is zero and at least one redemption occurred
      (cancelled cards excepted)
    - REDEEMED and CANCELLED are terminal for redemption; only a refund or
      reload can lift a REDEEMED card back to ACTIVE
    - ACTIVE <-> SUSPENDED is the only other reversible transition
    - Expiry and scheduled activation are evaluated lazily from `now`
    """

    _ledger: Optional[Ledger] = PrivateAttr(default=None)

    # Construction

    @classmethod
    def issue(
        cls,
        *,
        card_id: str,
        code: str,
        initial_value: Money,
        now: datetime,
        entry_id: str,
        purchaser_id: Optional[str] = None,
        recipient_name: str = "",
        recipient_email: str = "",
        recipient_phone: str = "",
        message: str = "",
        delivery_method: DeliveryMethod = DeliveryMethod.EMAIL,
        delivery_date: Optional[datetime] = None,
        expiration_date: Optional[datetime] = None,
        is_reloadable: bool = False,
    ) -> Result["GiftCard"]:
        """
        Create a PENDING card and record its PURCHASE entry

        Returns:
            Result[GiftCard]: The new card, or INVALID_AMOUNT for a negative value
        """
        if initial_value.is_negative():
            return Return.err(
                make_error(
                    ErrorCode.INVALID_AMOUNT,
                    "Gift card value must not be negative",
                    reason=f"initial_value={initial_value.amount}",
                )
            )

        card = cls(
            id=card_id,
            code=code,
            initial_value=initial_value,
            status=GiftCardStatus.PENDING,
            purchaser_id=purchaser_id,
            recipient_name=recipient_name,
            recipient_email=recipient_email,
            recipient_phone=recipient_phone,
            message=message,
            delivery_method=delivery_method,
            delivery_date=delivery_date,
            purchase_date=now,
            expiration_date=expiration_date,
            is_reloadable=is_reloadable,
        )
        card._ledger = Ledger(card_id, initial_value.currency)

        purchased = card._ledger.append(
            EntryKind.PURCHASE,
            initial_value,
            entry_id=entry_id,
            created_at=now,
            notes="Gift card purchase",
        )
        if purchased.is_err():
            return Return.err(purchased.error)
        return Return.ok(card)

    @classmethod
    def from_snapshot(cls, snapshot: GiftCardSnapshot) -> Result["GiftCard"]:
        """
        Restore a card and replay its ledger

        Returns:
            Result[GiftCard]: The card, or LEDGER_VIOLATION when the stored
            history does not replay cleanly
        """
        ledger_result = Ledger.restore(
            snapshot.id, snapshot.initial_value.currency, snapshot.transactions
        )
        if ledger_result.is_err():
            return Return.err(ledger_result.error)
        ledger = ledger_result.value

        first = ledger.entries[0] if len(ledger) else None
        if first is None or first.kind != EntryKind.PURCHASE or first.amount != snapshot.initial_value:
            return Return.err(
                make_error(
                    ErrorCode.LEDGER_VIOLATION,
                    f"Ledger for {snapshot.id} does not start with its purchase entry",
                    reason=f"first_entry={first.kind.value if first else None}",
                )
            )

        card = cls(**snapshot.model_dump(exclude={"transactions"}))
        card._ledger = ledger
        return Return.ok(card)

    def to_snapshot(self) -> GiftCardSnapshot:
        return GiftCardSnapshot(
            **self.model_dump(),
            transactions=list(self._ledger.entries),
        )

    # Derived reads

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def currency(self) -> str:
        return self.initial_value.currency

    @property
    def balance(self) -> Money:
        return self._ledger.balance

    @property
    def transactions(self) -> tuple[LedgerEntry, ...]:
        return self._ledger.entries

    @property
    def has_redemption(self) -> bool:
        return any(entry.kind == EntryKind.REDEMPTION for entry in self._ledger.entries)

    @property
    def first_redemption_at(self) -> Optional[datetime]:
        for entry in self._ledger.entries:
            if entry.kind == EntryKind.REDEMPTION:
                return entry.created_at
        return None

    @property
    def total_spent(self) -> Money:
        """Redeemed value net of refunds"""
        spent = 0
        for entry in self._ledger.entries:
            if entry.kind == EntryKind.REDEMPTION:
                spent += entry.amount.amount
            elif entry.kind == EntryKind.REFUND:
                spent -= entry.amount.amount
        return Money(amount=spent, currency=self.currency)

    @property
    def redemption_percentage(self) -> Decimal:
        """Share of the initial value spent, in percent (0 when the initial value is 0)"""
        if self.initial_value.is_zero():
            return Decimal("0")
        percentage = Decimal(self.total_spent.amount) * 100 / Decimal(self.initial_value.amount)
        return percentage.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    def status_at(self, now: datetime) -> GiftCardStatus:
        """Effective status at `now`, applying scheduled activation and expiry"""
        status = self.status
        if (
            status == GiftCardStatus.PENDING
            and self.activation_date is not None
            and now >= self.activation_date
        ):
            status = GiftCardStatus.ACTIVE
        if (
            status not in TERMINAL_STATUSES
            and self.expiration_date is not None
            and now > self.expiration_date
        ):
            return GiftCardStatus.EXPIRED
        return status

    def is_expired(self, now: datetime) -> bool:
        return self.status_at(now) == GiftCardStatus.EXPIRED

    def is_active(self, now: datetime) -> bool:
        return self.status_at(now) == GiftCardStatus.ACTIVE and self.balance.is_positive()

    def verify(self) -> Result[Money]:
        return self._ledger.verify()

    # Rollback support

    def checkpoint(self) -> GiftCardCheckpoint:
        return GiftCardCheckpoint(self.status, self.activation_date, len(self._ledger))

    def restore(self, checkpoint: GiftCardCheckpoint) -> None:
        self._ledger.truncate(checkpoint.ledger_length)
        self.status = checkpoint.status
        self.activation_date = checkpoint.activation_date

    # Lifecycle

    def activate(self, now: datetime, activation_date: Optional[datetime] = None) -> Result[GiftCardStatus]:
        """
        PENDING -> ACTIVE

        A future activation_date schedules the activation; the card reads as
        ACTIVE once `now` reaches it.
        """
        current = self.status_at(now)
        if current != GiftCardStatus.PENDING:
            return self._invalid_transition(current, GiftCardStatus.ACTIVE)

        effective = to_naive_utc(activation_date) or now
        self.activation_date = effective
        if effective <= now:
            self.status = GiftCardStatus.ACTIVE
        return Return.ok(self.status_at(now))

    def suspend(self, now: datetime) -> Result[GiftCardStatus]:
        current = self.status_at(now)
        if current != GiftCardStatus.ACTIVE:
            return self._invalid_transition(current, GiftCardStatus.SUSPENDED)
        self.status = GiftCardStatus.SUSPENDED
        return Return.ok(self.status)

    def resume(self, now: datetime) -> Result[GiftCardStatus]:
        current = self.status_at(now)
        if current != GiftCardStatus.SUSPENDED:
            return self._invalid_transition(current, GiftCardStatus.ACTIVE)
        self.status = GiftCardStatus.ACTIVE
        return Return.ok(self.status)

    def cancel(self, now: datetime, entry_id: str, notes: str = "") -> Result[Optional[LedgerEntry]]:
        """
        Any non-terminal status -> CANCELLED

        A positive remaining balance is forfeited with a CANCELLATION entry.
        No further entries are accepted afterwards.
        """
        current = self.status_at(now)
        if current in TERMINAL_STATUSES:
            return self._invalid_transition(current, GiftCardStatus.CANCELLED)

        entry = None
        if self.balance.is_positive():
            appended = self._ledger.append(
                EntryKind.CANCELLATION,
                self.balance,
                entry_id=entry_id,
                created_at=now,
                notes=notes or "Remaining balance forfeited on cancellation",
            )
            if appended.is_err():
                return appended
            entry = appended.value

        self.status = GiftCardStatus.CANCELLED
        return Return.ok(entry)

    # Balance operations

    def redeem(
        self,
        amount: Money,
        now: datetime,
        entry_id: str,
        appointment_id: Optional[str] = None,
        notes: str = "",
    ) -> Result[LedgerEntry]:
        """
        Spend value from the card

        Errors (checked in order):
            INVALID_AMOUNT / CURRENCY_MISMATCH: malformed amount
            INSTRUMENT_EXPIRED: expiry date has passed
            INSTRUMENT_INACTIVE: card is not ACTIVE
            INSUFFICIENT_FUNDS: amount exceeds the balance
        """
        invalid = self._check_amount(amount)
        if invalid is not None:
            return invalid

        current = self.status_at(now)
        if current == GiftCardStatus.EXPIRED:
            return self._expired()
        if current != GiftCardStatus.ACTIVE:
            return self._inactive(current, "redeem")

        funds = self.balance.subtract(amount)
        if funds.is_err():
            return Return.err(funds.error)

        appended = self._ledger.append(
            EntryKind.REDEMPTION,
            amount,
            entry_id=entry_id,
            created_at=now,
            appointment_id=appointment_id,
            notes=notes,
        )
        if appended.is_err():
            return appended

        self.status = current
        self._sync_redeemed_status()
        return appended

    def reload(self, amount: Money, now: datetime, entry_id: str, notes: str = "") -> Result[LedgerEntry]:
        """
        Add value to a reloadable card

        Errors:
            NOT_RELOADABLE: card was sold as single-load
            INSTRUMENT_EXPIRED: expiry date has passed
            INSTRUMENT_INACTIVE: card is PENDING, SUSPENDED or CANCELLED
        """
        if not self.is_reloadable:
            return Return.err(
                make_error(
                    ErrorCode.NOT_RELOADABLE,
                    f"Gift card {self.code} is not reloadable",
                )
            )
        invalid = self._check_amount(amount)
        if invalid is not None:
            return invalid

        current = self.status_at(now)
        if current == GiftCardStatus.EXPIRED:
            return self._expired()
        if current not in (GiftCardStatus.ACTIVE, GiftCardStatus.REDEEMED):
            return self._inactive(current, "reload")

        appended = self._ledger.append(
            EntryKind.RELOAD,
            amount,
            entry_id=entry_id,
            created_at=now,
            notes=notes,
        )
        if appended.is_err():
            return appended

        self.status = current
        self._sync_redeemed_status()
        return appended

    def refund(
        self,
        amount: Money,
        related_transaction_id: str,
        now: datetime,
        entry_id: str,
        appointment_id: Optional[str] = None,
        notes: str = "",
    ) -> Result[LedgerEntry]:
        """
        Return value from an earlier redemption

        The refund may not exceed what is left of the referenced redemption
        after earlier refunds against it. A cancelled card is never
        re-activated by a refund; the refund is rejected instead.
        """
        invalid = self._check_amount(amount)
        if invalid is not None:
            return invalid

        current = self.status_at(now)
        if current == GiftCardStatus.EXPIRED:
            return self._expired()
        if current in (GiftCardStatus.CANCELLED, GiftCardStatus.PENDING):
            return self._inactive(current, "refund")

        redemption = next(
            (entry for entry in self._ledger.entries if entry.id == related_transaction_id),
            None,
        )
        if redemption is None or redemption.kind != EntryKind.REDEMPTION:
            return Return.err(
                make_error(
                    ErrorCode.TRANSACTION_NOT_FOUND,
                    f"Refund must reference a redemption on gift card {self.code}",
                    reason=f"related_transaction_id={related_transaction_id}",
                )
            )

        already_refunded = sum(
            entry.amount.amount
            for entry in self._ledger.entries
            if entry.kind == EntryKind.REFUND and entry.related_transaction_id == related_transaction_id
        )
        refundable = redemption.amount.amount - already_refunded
        if amount.amount > refundable:
            return Return.err(
                make_error(
                    ErrorCode.REFUND_EXCEEDS_REDEMPTION,
                    f"Refund exceeds the refundable remainder of redemption {related_transaction_id}",
                    reason=f"refundable={refundable}, requested={amount.amount}",
                )
            )

        appended = self._ledger.append(
            EntryKind.REFUND,
            amount,
            entry_id=entry_id,
            created_at=now,
            related_transaction_id=related_transaction_id,
            appointment_id=appointment_id,
            notes=notes,
        )
        if appended.is_err():
            return appended

        self.status = current
        self._sync_redeemed_status()
        return appended

    def adjust(self, amount: Money, now: datetime, entry_id: str, notes: str) -> Result[LedgerEntry]:
        """Signed manual correction (positive credits, negative debits)"""
        if amount.currency != self.currency:
            return self._currency_mismatch(amount)
        if amount.is_zero():
            return Return.err(make_error(ErrorCode.INVALID_AMOUNT, "Adjustment amount must not be zero"))

        current = self.status_at(now)
        if current == GiftCardStatus.CANCELLED:
            return self._inactive(current, "adjust")

        if amount.is_negative():
            funds = self.balance.subtract(amount.negate())
            if funds.is_err():
                return Return.err(funds.error)

        appended = self._ledger.append(
            EntryKind.ADJUSTMENT,
            amount,
            entry_id=entry_id,
            created_at=now,
            notes=notes,
        )
        if appended.is_err():
            return appended

        self._sync_redeemed_status()
        return appended

    # Helpers

    def _sync_redeemed_status(self) -> None:
        if self.status == GiftCardStatus.ACTIVE and self.balance.is_zero() and self.has_redemption:
            self.status = GiftCardStatus.REDEEMED
        elif self.status == GiftCardStatus.REDEEMED and self.balance.is_positive():
            self.status = GiftCardStatus.ACTIVE

    def _check_amount(self, amount: Money) -> Optional[Result]:
        if amount.currency != self.currency:
            return self._currency_mismatch(amount)
        if not amount.is_positive():
            return Return.err(
                make_error(
                    ErrorCode.INVALID_AMOUNT,
                    "Amount must be greater than zero",
                    reason=f"amount={amount.amount}",
                )
            )
        return None

    def _currency_mismatch(self, amount: Money) -> Result:
        return Return.err(
            make_error(
                ErrorCode.CURRENCY_MISMATCH,
                f"Gift card {self.code} is in {self.currency}, amount is in {amount.currency}",
            )
        )

    def _expired(self) -> Result:
        return Return.err(
            make_error(
                ErrorCode.INSTRUMENT_EXPIRED,
                f"Gift card {self.code} has expired",
                reason=f"expiration_date={self.expiration_date}",
            )
        )

    def _inactive(self, current: GiftCardStatus, operation: str) -> Result:
        return Return.err(
            make_error(
                ErrorCode.INSTRUMENT_INACTIVE,
                f"Gift card {self.code} is not active",
                reason=f"status={current.value}, operation={operation}",
            )
        )

    def _invalid_transition(self, current: GiftCardStatus, target: GiftCardStatus) -> Result:
        return Return.err(
            make_error(
                ErrorCode.INVALID_TRANSITION,
                f"Cannot move gift card {self.code} from {current.value} to {target.value}",
            )
        )
