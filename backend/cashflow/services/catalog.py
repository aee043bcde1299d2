"""Bulk catalog writes against the commerce platform."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from .. import schemas
from .batch import BatchResult, run_batch
from .business_settings import BusinessSettingsService
from .commerce import CommerceClientFactory, build_commerce_client
from .errors import ValidationError

LOGGER = logging.getLogger(__name__)


class CatalogService:
    """Variation price and stock updates, each item attempted on its own."""

    def __init__(
        self, db: Session, client_factory: CommerceClientFactory = build_commerce_client
    ) -> None:
        self.db = db
        self.client_factory = client_factory

    def _client(self, business_id: str):
        settings = BusinessSettingsService.require(self.db, business_id)
        return self.client_factory(BusinessSettingsService.credentials(settings))

    def update_variation_prices(
        self, product_id: str, batch: schemas.VariationPriceBatch
    ) -> BatchResult:
        if not batch.items:
            raise ValidationError("items", "at least one variation is required")
        client = self._client(batch.business_id)
        result = run_batch(
            batch.items,
            lambda item: client.update_variation_price(
                product_id, item.variation_id, item.price, batch.price_type.value
            ),
            name_of=lambda item: item.label,
            noun="variations",
        )
        LOGGER.info("Product %s price update: %s", product_id, result.message)
        return result

    def update_variation_stock(
        self, product_id: str, batch: schemas.VariationStockBatch
    ) -> BatchResult:
        if not batch.items:
            raise ValidationError("items", "at least one variation is required")
        client = self._client(batch.business_id)
        result = run_batch(
            batch.items,
            lambda item: client.update_variation_stock(product_id, item.variation_id, item.quantity),
            name_of=lambda item: item.label,
            noun="variations",
        )
        LOGGER.info("Product %s stock update: %s", product_id, result.message)
        return result
