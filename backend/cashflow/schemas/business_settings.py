from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models import (
    DEFAULT_FREE_SHIPPING_METHODS,
    DEFAULT_VALID_ORDER_STATUSES,
    ExpensesSpreadMode,
)


class BusinessSettingsBase(BaseModel):
    store_url: Optional[str] = Field(None, max_length=255, description="Base URL of the store")
    consumer_key: Optional[str] = Field(None, max_length=255)
    consumer_secret: Optional[str] = Field(None, max_length=255)
    webhook_secret: Optional[str] = Field(
        None, description="Secret used to verify webhook signatures"
    )
    vat_rate: Decimal = Field(Decimal("0"), ge=0, description="Fraction (< 1) or percentage")
    credit_card_rate: Decimal = Field(Decimal("0"), ge=0)
    materials_rate: Decimal = Field(Decimal("0"), ge=0)
    shipping_cost: Decimal = Field(
        Decimal("0"), ge=0, description="Fixed shipping cost per order; 0 uses platform shipping"
    )
    expenses_spread_mode: ExpensesSpreadMode = ExpensesSpreadMode.EXACT
    valid_order_statuses: List[str] = Field(
        default_factory=lambda: list(DEFAULT_VALID_ORDER_STATUSES)
    )
    manual_shipping_per_item: bool = False
    free_shipping_methods: List[str] = Field(
        default_factory=lambda: list(DEFAULT_FREE_SHIPPING_METHODS)
    )
    charge_shipping_on_free_orders: bool = True

    @field_validator("store_url", "consumer_key", "consumer_secret", "webhook_secret")
    @classmethod
    def _strip(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @field_validator("valid_order_statuses", "free_shipping_methods")
    @classmethod
    def _normalize_list(cls, values: List[str]) -> List[str]:
        cleaned: List[str] = []
        for item in values:
            text = item.strip().lower()
            if text and text not in cleaned:
                cleaned.append(text)
        return cleaned


class BusinessSettingsUpdate(BusinessSettingsBase):
    """Full replacement of a business's settings."""

    @field_validator("valid_order_statuses")
    @classmethod
    def _require_status(cls, values: List[str]) -> List[str]:
        return values or list(DEFAULT_VALID_ORDER_STATUSES)


class BusinessSettingsRead(BusinessSettingsBase):
    """Stored settings; secrets are never echoed back."""

    business_id: str
    has_credentials: bool = False
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_model(cls, settings) -> "BusinessSettingsRead":
        data = cls.model_validate(settings)
        data.consumer_secret = None
        data.webhook_secret = None
        data.has_credentials = bool(
            settings.store_url and settings.consumer_key and settings.consumer_secret
        )
        return data
