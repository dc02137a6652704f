"""SQLModel implementation of PromotionStore"""

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select
from libs.result import Result, Return
from giftledger.app.repositories.promotion_store import PromotionStore
from giftledger.domain.errors import ErrorCode, make_error
from giftledger.domain.promotion import Promotion
from giftledger.domain.promotion_usage import PromotionUsage
from .gift_card_repository import persistence_error
from .tables import PromotionRecord, PromotionUsageRecord


class SqlModelPromotionStore(PromotionStore):
    def __init__(self, engine: Engine):
        self.engine = engine

    def save_promotion(self, promotion: Promotion) -> Result[None]:
        with Session(self.engine) as session:
            try:
                session.merge(
                    PromotionRecord(id=promotion.id, code=promotion.code, data=promotion.model_dump_json())
                )
                session.commit()
                return Return.ok(None)
            except SQLAlchemyError as e:
                session.rollback()
                return persistence_error(f"Failed to save promotion {promotion.id}", e)

    def load_promotion(self, promotion_id: str) -> Result[Promotion]:
        with Session(self.engine) as session:
            try:
                record = session.get(PromotionRecord, promotion_id)
            except SQLAlchemyError as e:
                return persistence_error(f"Failed to load promotion {promotion_id}", e)
            if record is None:
                return Return.err(
                    make_error(ErrorCode.PROMOTION_NOT_FOUND, f"Promotion {promotion_id} not found")
                )
            return Return.ok(Promotion.model_validate_json(record.data))

    def list_usages(self, promotion_id: str) -> Result[list[PromotionUsage]]:
        with Session(self.engine) as session:
            try:
                rows = session.exec(
                    select(PromotionUsageRecord)
                    .where(PromotionUsageRecord.promotion_id == promotion_id)
                    .order_by(PromotionUsageRecord.created_at, PromotionUsageRecord.id)
                ).all()
            except SQLAlchemyError as e:
                return persistence_error(f"Failed to load usages of promotion {promotion_id}", e)
            return Return.ok([PromotionUsage.model_validate_json(row.data) for row in rows])

    def append_usage(self, usage: PromotionUsage) -> Result[None]:
        with Session(self.engine) as session:
            try:
                session.add(
                    PromotionUsageRecord(
                        id=usage.id,
                        promotion_id=usage.promotion_id,
                        client_id=usage.client_id,
                        created_at=usage.created_at,
                        data=usage.model_dump_json(),
                    )
                )
                session.commit()
                return Return.ok(None)
            except SQLAlchemyError as e:
                session.rollback()
                return persistence_error(f"Failed to record usage of promotion {usage.promotion_id}", e)

    def list_ids(self) -> Result[list[str]]:
        with Session(self.engine) as session:
            try:
                return Return.ok(list(session.exec(select(PromotionRecord.id)).all()))
            except SQLAlchemyError as e:
                return persistence_error("Failed to list promotions", e)
