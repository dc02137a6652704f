"""SQLModel implementation of GiftCardStore

Each save writes the card row and inserts only the ledger entries the
database does not have yet; stored entries are never updated.
"""

import logging
from sqlalchemy import desc
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select
from libs.result import Result, Return
from giftledger.app.repositories.gift_card_store import GiftCardStore
from giftledger.domain.errors import ErrorCode, make_error
from giftledger.domain.gift_card import GiftCardBase, GiftCardSnapshot
from giftledger.domain.ledger_entry import EntryKind, LedgerEntry
from giftledger.domain.money import Money
from .tables import GiftCardRecord, GiftCardTransactionRecord

logger = logging.getLogger(__name__)


def entry_to_record(entry: LedgerEntry) -> GiftCardTransactionRecord:
    return GiftCardTransactionRecord(
        id=entry.id,
        gift_card_id=entry.instrument_id,
        sequence=entry.sequence,
        kind=entry.kind.value,
        amount_minor=entry.amount.amount,
        balance_before_minor=entry.balance_before.amount,
        balance_after_minor=entry.balance_after.amount,
        currency=entry.amount.currency,
        created_at=entry.created_at,
        related_transaction_id=entry.related_transaction_id,
        appointment_id=entry.appointment_id,
        notes=entry.notes,
    )


def record_to_entry(record: GiftCardTransactionRecord) -> LedgerEntry:
    return LedgerEntry(
        id=record.id,
        instrument_id=record.gift_card_id,
        sequence=record.sequence,
        kind=EntryKind(record.kind),
        amount=Money(amount=record.amount_minor, currency=record.currency),
        balance_before=Money(amount=record.balance_before_minor, currency=record.currency),
        balance_after=Money(amount=record.balance_after_minor, currency=record.currency),
        created_at=record.created_at,
        related_transaction_id=record.related_transaction_id,
        appointment_id=record.appointment_id,
        notes=record.notes,
    )


def persistence_error(message: str, e: Exception):
    logger.warning(f"{message}: {e}")
    return Return.err(make_error(ErrorCode.PERSISTENCE_FAILED, message, reason=str(e)))


class SqlModelGiftCardStore(GiftCardStore):
    """
    SQLModel implementation of GiftCardStore

    Features:
    - One short-lived session per call (safe to share across threads)
    - Append-only ledger rows; the unique (gift_card_id, sequence)
      constraint rejects conflicting histories
    - Any SQLAlchemy failure is rolled back and reported as PERSISTENCE_FAILED
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def save(self, snapshot: GiftCardSnapshot) -> Result[None]:
        with Session(self.engine) as session:
            try:
                last_stored = session.exec(
                    select(GiftCardTransactionRecord)
                    .where(GiftCardTransactionRecord.gift_card_id == snapshot.id)
                    .order_by(desc(GiftCardTransactionRecord.sequence))
                    .limit(1)
                ).first()
                stored_sequence = last_stored.sequence if last_stored else 0
                if stored_sequence > len(snapshot.transactions) or (
                    last_stored and snapshot.transactions[stored_sequence - 1].id != last_stored.id
                ):
                    return Return.err(
                        make_error(
                            ErrorCode.PERSISTENCE_FAILED,
                            f"Stored ledger of {snapshot.id} conflicts with the snapshot",
                            reason=f"stored={stored_sequence}, snapshot={len(snapshot.transactions)}",
                        )
                    )

                record = session.get(GiftCardRecord, snapshot.id) or GiftCardRecord(id=snapshot.id)
                record.code = snapshot.code
                record.status = snapshot.status.value
                record.currency = snapshot.initial_value.currency
                record.purchaser_id = snapshot.purchaser_id
                record.data = snapshot.model_dump_json(exclude={"transactions"})
                record.updated_at = snapshot.transactions[-1].created_at if snapshot.transactions else snapshot.purchase_date
                session.add(record)

                for entry in snapshot.transactions[stored_sequence:]:
                    session.add(entry_to_record(entry))

                session.commit()
                return Return.ok(None)
            except SQLAlchemyError as e:
                session.rollback()
                return persistence_error(f"Failed to save gift card {snapshot.id}", e)

    def load(self, card_id: str) -> Result[GiftCardSnapshot]:
        with Session(self.engine) as session:
            try:
                record = session.get(GiftCardRecord, card_id)
                if record is None:
                    return Return.err(
                        make_error(ErrorCode.GIFT_CARD_NOT_FOUND, f"Gift card {card_id} not found")
                    )
                rows = session.exec(
                    select(GiftCardTransactionRecord)
                    .where(GiftCardTransactionRecord.gift_card_id == card_id)
                    .order_by(GiftCardTransactionRecord.sequence)
                ).all()
                base = GiftCardBase.model_validate_json(record.data)
                return Return.ok(
                    GiftCardSnapshot(
                        **base.model_dump(),
                        transactions=[record_to_entry(row) for row in rows],
                    )
                )
            except SQLAlchemyError as e:
                return persistence_error(f"Failed to load gift card {card_id}", e)

    def list_ids(self) -> Result[list[str]]:
        with Session(self.engine) as session:
            try:
                return Return.ok(list(session.exec(select(GiftCardRecord.id)).all()))
            except SQLAlchemyError as e:
                return persistence_error("Failed to list gift cards", e)
