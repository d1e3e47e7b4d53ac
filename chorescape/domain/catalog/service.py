"""Catalog service - Business logic for services and their options"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import ConflictError, NotFoundError, ValidationError
from ...models import Service, ServiceOption, ServiceType
from .repository import CatalogRepository
from .schemas import (
    ServiceCreate,
    ServiceOptionCreate,
    ServiceOptionUpdate,
    ServiceUpdate,
)

logger = logging.getLogger(__name__)

# Request field -> column, for partial updates
SERVICE_FIELDS = {
    "name": "name",
    "slug": "slug",
    "description": "description",
    "type": "type",
    "basePrice": "base_price",
    "imageUrl": "image_url",
    "isTrending": "is_trending",
    "isActive": "is_active",
}
OPTION_FIELDS = {
    "name": "name",
    "description": "description",
    "price": "price",
    "priceModifier": "price_modifier",
    "duration": "duration",
    "isActive": "is_active",
}
NOT_NULL_FIELDS = {"name", "slug", "type", "is_trending", "is_active"}


class CatalogService:
    """Service layer for the service catalog"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    # ------------------------------------------------------------------
    # Public catalog
    # ------------------------------------------------------------------

    def list_public_services(self, service_type: Optional[str] = None) -> list[Service]:
        parsed_type = None
        if service_type:
            try:
                parsed_type = ServiceType(service_type.strip().upper())
            except ValueError:
                raise ValidationError(
                    "Invalid service type. Must be one of: RESIDENTIAL, CORPORATE"
                ) from None
        return self.repo.list_active_services(self.db, parsed_type)

    def get_public_service(self, id_or_slug: str) -> Service:
        service = self.repo.get_active_service(self.db, id_or_slug)
        if not service:
            raise NotFoundError("Service not found")
        return service

    def find_by_slug(self, slug: Optional[str]) -> Optional[Service]:
        """Catalog lookup used when a booking is created, unknown slugs are not an error"""
        if not slug:
            return None
        return self.repo.get_service_by_slug(self.db, slug.strip())

    # ------------------------------------------------------------------
    # Admin: services
    # ------------------------------------------------------------------

    def list_services(self, is_active: Optional[bool] = None) -> list[tuple[Service, int]]:
        services = self.repo.list_services(self.db, is_active)
        counts = self.repo.booking_counts(self.db, [s.id for s in services])
        return [(s, counts.get(s.id, 0)) for s in services]

    def get_service(self, service_id: str) -> Service:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise NotFoundError("Service not found")
        return service

    def booking_count(self, service_id: str) -> int:
        return self.repo.booking_counts(self.db, [service_id]).get(service_id, 0)

    def _ensure_slug_free(self, slug: str, exclude_id: Optional[str] = None):
        existing = self.repo.get_service_by_slug(self.db, slug)
        if existing and existing.id != exclude_id:
            raise ConflictError("Service with this slug already exists")

    def create_service(self, data: ServiceCreate) -> Service:
        slug = data.slug.lower()
        self._ensure_slug_free(slug)

        try:
            service = self.repo.create_service(
                self.db,
                name=data.name,
                slug=slug,
                description=data.description.strip() if data.description else None,
                type=data.type,
                base_price=data.basePrice,
                image_url=data.imageUrl,
                is_trending=data.isTrending,
                is_active=data.isActive,
            )
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Service slug already exists") from e

        logger.info(f"✅ Service created: {service.slug} ({service.id})")
        return service

    def update_service(self, service_id: str, data: ServiceUpdate) -> Service:
        service = self.get_service(service_id)

        updates = {}
        for field, value in data.model_dump(exclude_unset=True).items():
            column = SERVICE_FIELDS[field]
            if value is None and column in NOT_NULL_FIELDS:
                continue
            updates[column] = value

        if "slug" in updates:
            updates["slug"] = updates["slug"].lower()
            self._ensure_slug_free(updates["slug"], exclude_id=service.id)

        try:
            service = self.repo.update_service(self.db, service, **updates)
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Service slug already exists") from e

        logger.info(f"✅ Service updated: {service.slug} ({service.id})")
        return service

    def delete_service(self, service_id: str) -> dict:
        """Hard delete, or deactivate when bookings still reference the service"""
        service = self.get_service(service_id)

        if self.booking_count(service.id) > 0:
            service = self.repo.update_service(self.db, service, is_active=False)
            logger.info(f"⚠️ Service {service.slug} has bookings, deactivated instead of deleted")
            return {"message": "Service deactivated (has existing bookings)", "service": service}

        self.repo.delete_service(self.db, service)
        logger.info(f"🗑️ Service deleted: {service_id}")
        return {"message": "Service deleted successfully", "service": None}

    # ------------------------------------------------------------------
    # Admin: service options
    # ------------------------------------------------------------------

    def list_options(
        self, service_id: Optional[str] = None, is_active: Optional[bool] = None
    ) -> list[ServiceOption]:
        return self.repo.list_options(self.db, service_id, is_active)

    def get_option(self, option_id: str) -> ServiceOption:
        option = self.repo.get_option(self.db, option_id)
        if not option:
            raise NotFoundError("Service option not found")
        return option

    def create_option(self, data: ServiceOptionCreate) -> ServiceOption:
        if not self.repo.get_service(self.db, data.serviceId):
            raise NotFoundError("Service not found")

        option = self.repo.create_option(
            self.db,
            service_id=data.serviceId,
            name=data.name,
            description=data.description.strip() if data.description else None,
            price=data.price,
            price_modifier=data.priceModifier,
            duration=data.duration,
            is_active=data.isActive,
        )
        logger.info(f"✅ Service option created: {option.name} ({option.id})")
        return option

    def update_option(self, option_id: str, data: ServiceOptionUpdate) -> ServiceOption:
        option = self.get_option(option_id)
        changes = data.model_dump(exclude_unset=True)

        updates = {}
        for field, value in changes.items():
            column = OPTION_FIELDS[field]
            if value is None and column in NOT_NULL_FIELDS:
                continue
            updates[column] = value

        # Setting one pricing mode clears the other
        if changes.get("price") is not None:
            updates["price_modifier"] = None
        elif changes.get("priceModifier") is not None:
            updates["price"] = None

        option = self.repo.update_option(self.db, option, **updates)
        logger.info(f"✅ Service option updated: {option.id}")
        return option

    def delete_option(self, option_id: str) -> None:
        option = self.get_option(option_id)
        self.repo.delete_option(self.db, option)
        logger.info(f"🗑️ Service option deleted: {option_id}")
