from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class PriceType(str, Enum):
    REGULAR = "regular"
    SALE = "sale"


class VariationPriceItem(BaseModel):
    variation_id: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, description="Label used in error messages")
    price: Decimal = Field(..., ge=0)

    @property
    def label(self) -> str:
        return self.name or self.variation_id


class VariationPriceBatch(BaseModel):
    business_id: str = Field(..., min_length=1, max_length=64)
    price_type: PriceType = PriceType.REGULAR
    items: List[VariationPriceItem] = Field(default_factory=list)


class VariationStockItem(BaseModel):
    variation_id: str = Field(..., min_length=1)
    name: Optional[str] = None
    quantity: int = Field(..., ge=0)

    @property
    def label(self) -> str:
        return self.name or self.variation_id


class VariationStockBatch(BaseModel):
    business_id: str = Field(..., min_length=1, max_length=64)
    items: List[VariationStockItem] = Field(default_factory=list)


class BatchWriteResponse(BaseModel):
    success: bool
    updated: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    errors: List[str] = Field(default_factory=list)
    message: str
