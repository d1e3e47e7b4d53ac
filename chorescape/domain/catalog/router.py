"""Catalog router - public service listing and admin catalog management"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import Profile, Service, ServiceOption
from .schemas import (
    AdminServiceResponse,
    PublicServiceResponse,
    ServiceCreate,
    ServiceOptionCreate,
    ServiceOptionResponse,
    ServiceOptionUpdate,
    ServiceUpdate,
)
from .service import CatalogService

logger = logging.getLogger(__name__)

public_router = APIRouter(prefix="/api/public/services", tags=["Services"])
admin_router = APIRouter(prefix="/api/admin/services", tags=["Admin Services"])
options_router = APIRouter(prefix="/api/admin/service-options", tags=["Admin Services"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


def option_response(option: ServiceOption) -> ServiceOptionResponse:
    return ServiceOptionResponse(
        id=option.id,
        serviceId=option.service_id,
        name=option.name,
        description=option.description,
        price=option.price,
        priceModifier=option.price_modifier,
        duration=option.duration,
        isActive=option.is_active,
    )


def public_service_response(service: Service) -> PublicServiceResponse:
    options = [o for o in service.options if o.is_active]
    return PublicServiceResponse(
        id=service.id,
        slug=service.slug,
        title=service.name,
        name=service.name,
        description=service.description,
        image=service.image_url,
        imageUrl=service.image_url,
        isTrending=service.is_trending,
        type=service.type.value,
        basePrice=service.base_price,
        bullets=[o.name for o in options],
        options=[option_response(o) for o in options],
    )


def admin_service_response(service: Service, booking_count: int = 0) -> AdminServiceResponse:
    return AdminServiceResponse(
        id=service.id,
        name=service.name,
        slug=service.slug,
        description=service.description,
        type=service.type.value,
        basePrice=service.base_price,
        imageUrl=service.image_url,
        isTrending=service.is_trending,
        isActive=service.is_active,
        bookingCount=booking_count,
        optionCount=len(service.options),
        options=[option_response(o) for o in service.options if o.is_active],
        createdAt=service.created_at,
        updatedAt=service.updated_at,
    )


# ============================================================================
# PUBLIC CATALOG
# ============================================================================


@public_router.get("", response_model=list[PublicServiceResponse])
async def list_public_services(
    type: Optional[str] = Query(None, description="RESIDENTIAL or CORPORATE"),
    service: CatalogService = Depends(get_catalog_service),
):
    """Active services with their active options, trending first"""
    return [public_service_response(s) for s in service.list_public_services(type)]


@public_router.get("/{id_or_slug}", response_model=PublicServiceResponse)
async def get_public_service(
    id_or_slug: str,
    service: CatalogService = Depends(get_catalog_service),
):
    return public_service_response(service.get_public_service(id_or_slug))


# ============================================================================
# ADMIN: SERVICES
# ============================================================================


@admin_router.get("", response_model=list[AdminServiceResponse])
async def list_services(
    isActive: Optional[bool] = Query(None),
    _admin: Profile = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return [admin_service_response(s, count) for s, count in service.list_services(isActive)]


@admin_router.get("/{service_id}", response_model=AdminServiceResponse)
async def get_service(
    service_id: str,
    _admin: Profile = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    catalog_service = service.get_service(service_id)
    return admin_service_response(catalog_service, service.booking_count(service_id))


@admin_router.post("", response_model=AdminServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    _admin: Profile = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return admin_service_response(service.create_service(data))


@admin_router.patch("/{service_id}")
async def update_service(
    service_id: str,
    data: ServiceUpdate,
    _admin: Profile = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    updated = service.update_service(service_id, data)
    return {
        "message": "Service updated successfully",
        "service": admin_service_response(updated, service.booking_count(service_id)),
    }


@admin_router.delete("/{service_id}")
async def delete_service(
    service_id: str,
    _admin: Profile = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    """Hard delete, or deactivate when bookings reference the service"""
    result = service.delete_service(service_id)
    if result["service"] is not None:
        result["service"] = admin_service_response(
            result["service"], service.booking_count(service_id)
        )
    return result


# ============================================================================
# ADMIN: SERVICE OPTIONS
# ============================================================================


@options_router.get("", response_model=list[ServiceOptionResponse])
async def list_options(
    serviceId: Optional[str] = Query(None),
    isActive: Optional[bool] = Query(None),
    _admin: Profile = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return [option_response(o) for o in service.list_options(serviceId, isActive)]


@options_router.get("/{option_id}", response_model=ServiceOptionResponse)
async def get_option(
    option_id: str,
    _admin: Profile = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return option_response(service.get_option(option_id))


@options_router.post("", response_model=ServiceOptionResponse, status_code=201)
async def create_option(
    data: ServiceOptionCreate,
    _admin: Profile = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return option_response(service.create_option(data))


@options_router.patch("/{option_id}")
async def update_option(
    option_id: str,
    data: ServiceOptionUpdate,
    _admin: Profile = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    option = service.update_option(option_id, data)
    return {"message": "Service option updated successfully", "option": option_response(option)}


@options_router.delete("/{option_id}")
async def delete_option(
    option_id: str,
    _admin: Profile = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    service.delete_option(option_id)
    return {"message": "Service option deleted successfully"}


__all__ = ["public_router", "admin_router", "options_router"]
