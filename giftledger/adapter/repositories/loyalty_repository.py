"""SQLModel implementation of LoyaltyStore"""

from typing import Optional
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select
from libs.result import Result, Return
from giftledger.app.repositories.loyalty_store import LoyaltyStore
from giftledger.domain.errors import ErrorCode, make_error
from giftledger.domain.loyalty import ClientLoyaltyAccount, LoyaltyProgram
from .gift_card_repository import persistence_error
from .tables import LoyaltyAccountRecord, LoyaltyProgramRecord


class SqlModelLoyaltyStore(LoyaltyStore):
    def __init__(self, engine: Engine):
        self.engine = engine

    def save_program(self, program: LoyaltyProgram) -> Result[None]:
        with Session(self.engine) as session:
            try:
                session.merge(LoyaltyProgramRecord(id=program.id, data=program.model_dump_json()))
                session.commit()
                return Return.ok(None)
            except SQLAlchemyError as e:
                session.rollback()
                return persistence_error(f"Failed to save loyalty program {program.id}", e)

    def load_program(self, program_id: str) -> Result[LoyaltyProgram]:
        with Session(self.engine) as session:
            try:
                record = session.get(LoyaltyProgramRecord, program_id)
            except SQLAlchemyError as e:
                return persistence_error(f"Failed to load loyalty program {program_id}", e)
            if record is None:
                return Return.err(
                    make_error(ErrorCode.LOYALTY_PROGRAM_NOT_FOUND, f"Loyalty program {program_id} not found")
                )
            return Return.ok(LoyaltyProgram.model_validate_json(record.data))

    def save_account(self, account: ClientLoyaltyAccount) -> Result[None]:
        with Session(self.engine) as session:
            try:
                session.merge(
                    LoyaltyAccountRecord(
                        id=account.id,
                        program_id=account.program_id,
                        client_id=account.client_id,
                        data=account.model_dump_json(),
                    )
                )
                session.commit()
                return Return.ok(None)
            except SQLAlchemyError as e:
                session.rollback()
                return persistence_error(f"Failed to save loyalty account {account.id}", e)

    def load_account(self, program_id: str, client_id: str) -> Result[Optional[ClientLoyaltyAccount]]:
        with Session(self.engine) as session:
            try:
                record = session.exec(
                    select(LoyaltyAccountRecord).where(
                        LoyaltyAccountRecord.program_id == program_id,
                        LoyaltyAccountRecord.client_id == client_id,
                    )
                ).first()
            except SQLAlchemyError as e:
                return persistence_error(f"Failed to load loyalty account of {client_id}", e)
            if record is None:
                return Return.ok(None)
            return Return.ok(ClientLoyaltyAccount.model_validate_json(record.data))
