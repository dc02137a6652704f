"""CreatePromotion Use Case"""

import logging
from libs.result import Result, Return, Error
from giftledger.app.services.clock import Clock
from giftledger.app.services.id_generator import IdGenerator
from giftledger.app.services.promotion_registry import PromotionRegistry
from giftledger.app.services.settings import LedgerSettings
from giftledger.domain.errors import ErrorCode, make_error
from giftledger.domain.promotion import Promotion
from .dtos import CreatePromotionCommandDTO, PromotionResponseDTO
from .mappers import optional_money, to_promotion_dto

logger = logging.getLogger(__name__)


class CreatePromotion:
    """
    Use Case: Define a promotion

    Business Rules:
    1. Codes are unique, case-insensitive (DUPLICATE_CODE)
    2. end_date must not precede start_date and a percentage must not exceed
       100 (INVALID_DEFINITION)
    3. Minimum purchase and discount cap are in the promotion's currency
    """

    def __init__(
        self,
        registry: PromotionRegistry,
        clock: Clock,
        id_generator: IdGenerator,
        settings: LedgerSettings,
    ):
        self.registry = registry
        self.clock = clock
        self.id_generator = id_generator
        self.settings = settings

    def execute(self, command: CreatePromotionCommandDTO) -> Result[PromotionResponseDTO]:
        try:
            currency = (command.currency or self.settings.default_currency).upper()

            # Step 1: Parse money fields
            minimum = optional_money(command.minimum_purchase, currency)
            if minimum.is_err():
                return Return.err(minimum.error)
            maximum = optional_money(command.maximum_discount, currency)
            if maximum.is_err():
                return Return.err(maximum.error)

            # Step 2: Build the definition
            fields = command.model_dump(exclude={"currency", "minimum_purchase", "maximum_discount"})
            try:
                promotion = Promotion(
                    id=self.id_generator.new_id(),
                    currency=currency,
                    minimum_purchase=minimum.value,
                    maximum_discount=maximum.value,
                    **fields,
                )
            except ValueError as e:
                return Return.err(
                    make_error(ErrorCode.INVALID_DEFINITION, "Invalid promotion definition", reason=str(e))
                )

            # Step 3: Build the response before the code is taken
            response = to_promotion_dto(promotion, 0, self.clock.now())

            # Step 4: Register and persist
            registered = self.registry.add(promotion)
            if registered.is_err():
                return Return.err(registered.error)

            logger.info(f"Created promotion {promotion.code} ({promotion.discount_type.value} {promotion.discount_value})")
            return Return.ok(response)

        except Exception as e:
            logger.error(f"Promotion creation failed: {e}")
            return Return.err(
                Error(
                    code="CREATE_PROMOTION_FAILED",
                    message="Failed to create promotion",
                    reason=str(e),
                )
            )
