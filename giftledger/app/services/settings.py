"""Ledger settings

Explicit configuration object handed to use cases and workers. Built from
ApplicationConfig at the composition root; components never read the
global configuration themselves.
"""

import calendar
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class LedgerSettings(BaseModel):
    """Tunable gift card, promotion and reconciliation settings"""

    default_currency: str = Field(
        default="USD",
        pattern=r"^[A-Z]{3}$",
        description="Currency used when a command does not name one"
    )

    gift_card_expiration_months: int = Field(
        default=12,
        ge=0,
        description="Months from purchase until a new gift card expires (0 = never)"
    )

    gift_card_code_length: int = Field(
        default=12,
        gt=0,
        description="Characters in a generated gift card code, excluding dashes"
    )

    expiring_gift_cards_days_ahead: int = Field(
        default=30,
        ge=0,
        description="Window for the expiring gift cards lookup"
    )

    expiring_promotions_days_ahead: int = Field(
        default=7,
        ge=0,
        description="Window for the expiring promotions lookup"
    )

    reconciliation_enabled: bool = Field(
        default=True,
        description="Whether the reconciliation worker runs"
    )

    reconciliation_interval_seconds: int = Field(
        default=86400,
        gt=0,
        description="Seconds between reconciliation runs"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "default_currency": "USD",
                "gift_card_expiration_months": 12,
                "gift_card_code_length": 12,
                "expiring_gift_cards_days_ahead": 30,
                "expiring_promotions_days_ahead": 7,
                "reconciliation_enabled": True,
                "reconciliation_interval_seconds": 86400,
            }
        }

    @classmethod
    def from_config(cls, config) -> "LedgerSettings":
        """Build settings from an ApplicationConfig-like object"""
        return cls(
            default_currency=config.DEFAULT_CURRENCY,
            gift_card_expiration_months=config.GIFT_CARD_EXPIRATION_MONTHS,
            gift_card_code_length=config.GIFT_CARD_CODE_LENGTH,
            expiring_gift_cards_days_ahead=config.EXPIRING_GIFT_CARDS_DAYS_AHEAD,
            expiring_promotions_days_ahead=config.EXPIRING_PROMOTIONS_DAYS_AHEAD,
            reconciliation_enabled=config.RECONCILIATION_ENABLED,
            reconciliation_interval_seconds=config.RECONCILIATION_INTERVAL_SECONDS,
        )

    def expiration_for(self, purchase_date: datetime) -> Optional[datetime]:
        if self.gift_card_expiration_months == 0:
            return None
        return add_months(purchase_date, self.gift_card_expiration_months)


def add_months(value: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping the day to the target month's length"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)
