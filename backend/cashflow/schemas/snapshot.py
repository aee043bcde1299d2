from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DailySnapshotRead(BaseModel):
    id: str
    business_id: Optional[str] = None
    date: date
    revenue: Decimal
    orders_count: int
    items_count: int
    google_ads_cost: Decimal
    facebook_ads_cost: Decimal
    tiktok_ads_cost: Decimal
    shipping_cost: Decimal
    materials_cost: Decimal
    credit_card_fees: Decimal
    vat: Decimal
    total_expenses: Decimal
    profit: Decimal
    roi: Decimal
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CashflowResponse(BaseModel):
    business_id: str
    start_date: date
    end_date: date
    items: List[DailySnapshotRead]


class ManualCostUpdate(BaseModel):
    """Manual advertising spend of one day; omitted fields keep their value."""

    google_ads_cost: Optional[Decimal] = Field(None, ge=0)
    facebook_ads_cost: Optional[Decimal] = Field(None, ge=0)
    tiktok_ads_cost: Optional[Decimal] = Field(None, ge=0)

    @model_validator(mode="after")
    def _require_change(self) -> "ManualCostUpdate":
        if not self.model_dump(exclude_none=True):
            raise ValueError("at least one cost field is required")
        return self


class SyncRequest(BaseModel):
    business_id: str = Field(..., min_length=1, max_length=64)
    date: date
    store_url: Optional[str] = Field(None, description="Overrides the stored store URL")
    consumer_key: Optional[str] = None
    consumer_secret: Optional[str] = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.store_url or self.consumer_key or self.consumer_secret)


class SyncResponse(BaseModel):
    orders_count: int
    snapshot: DailySnapshotRead
    message: str


class SyncRangeRequest(BaseModel):
    business_id: str = Field(..., min_length=1, max_length=64)
    start_date: date
    end_date: date


class SyncFailureRead(BaseModel):
    date: date
    reason: str


class SyncRangeResponse(BaseModel):
    synced: int
    total: int
    failures: List[SyncFailureRead]
    message: str
