"""List Promotion Usages Use Case

Usage history of one promotion, optionally narrowed to a client, most
recent first.
"""
from typing import Optional
from libs.result import Result, Return
from giftledger.app.services.promotion_registry import PromotionRegistry
from .dtos import PromotionUsageResponseDTO
from .mappers import to_usage_dto


class ListPromotionUsages:
    def __init__(self, registry: PromotionRegistry):
        self.registry = registry

    def execute(
        self, promotion_id: str, client_id: Optional[str] = None, limit: int = 20
    ) -> Result[list[PromotionUsageResponseDTO]]:
        usages = self.registry.usages(promotion_id)
        if usages.is_err():
            return Return.err(usages.error)

        selected = [usage for usage in usages.value if client_id is None or usage.client_id == client_id]
        selected.sort(key=lambda usage: usage.created_at, reverse=True)
        return Return.ok([to_usage_dto(usage) for usage in selected[:limit]])
