"""Business settings persistence."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from .. import models, schemas
from .commerce import PlatformCredentials
from .errors import ConfigurationError
from .snapshot_builder import RateCard

LOGGER = logging.getLogger(__name__)


class BusinessSettingsService:
    """Load and store the single settings row of each business."""

    @staticmethod
    def get(db: Session, business_id: str) -> Optional[models.BusinessSettings]:
        return (
            db.query(models.BusinessSettings)
            .filter(models.BusinessSettings.business_id == business_id)
            .first()
        )

    @classmethod
    def require(cls, db: Session, business_id: str) -> models.BusinessSettings:
        settings = cls.get(db, business_id)
        if settings is None:
            raise ConfigurationError(
                "Business settings are not configured", f"business {business_id}"
            )
        return settings

    @classmethod
    def rate_card(cls, db: Session, business_id: str) -> RateCard:
        return RateCard.from_settings(cls.require(db, business_id))

    @staticmethod
    def credentials(settings: models.BusinessSettings) -> PlatformCredentials:
        return PlatformCredentials.from_values(
            settings.store_url, settings.consumer_key, settings.consumer_secret
        )

    @classmethod
    def save(
        cls, db: Session, business_id: str, data: schemas.BusinessSettingsUpdate
    ) -> models.BusinessSettings:
        settings = cls.get(db, business_id)
        if settings is None:
            settings = models.BusinessSettings(business_id=business_id)
            db.add(settings)
            LOGGER.info("Creating settings for business %s", business_id)

        payload = data.model_dump()
        # An omitted secret keeps the stored one so clients can save other fields.
        if payload.get("consumer_secret") is None and settings.consumer_secret:
            payload.pop("consumer_secret")
        for key, value in payload.items():
            setattr(settings, key, value)

        db.commit()
        db.refresh(settings)
        return settings
