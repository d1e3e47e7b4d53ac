"""Catalog repository - Database operations for services and service options"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from ...models import Booking, Service, ServiceOption


class CatalogRepository:
    """Repository for catalog database operations"""

    @staticmethod
    def list_active_services(db: Session, service_type: Optional[str] = None) -> list[Service]:
        """Active services, trending first"""
        query = (
            db.query(Service)
            .options(selectinload(Service.options))
            .filter(Service.is_active.is_(True))
        )
        if service_type:
            query = query.filter(Service.type == service_type)
        return query.order_by(Service.is_trending.desc(), Service.name.asc()).all()

    @staticmethod
    def get_active_service(db: Session, id_or_slug: str) -> Optional[Service]:
        return (
            db.query(Service)
            .options(selectinload(Service.options))
            .filter(
                or_(Service.id == id_or_slug, Service.slug == id_or_slug),
                Service.is_active.is_(True),
            )
            .first()
        )

    @staticmethod
    def get_service_by_slug(db: Session, slug: str) -> Optional[Service]:
        return db.query(Service).filter(Service.slug == slug).first()

    @staticmethod
    def get_service(db: Session, service_id: str) -> Optional[Service]:
        return (
            db.query(Service)
            .options(selectinload(Service.options))
            .filter(Service.id == service_id)
            .first()
        )

    @staticmethod
    def list_services(db: Session, is_active: Optional[bool] = None) -> list[Service]:
        query = db.query(Service).options(selectinload(Service.options))
        if is_active is not None:
            query = query.filter(Service.is_active.is_(is_active))
        return query.order_by(Service.name.asc()).all()

    @staticmethod
    def booking_counts(db: Session, service_ids: list[str]) -> dict[str, int]:
        """Number of bookings referencing each service"""
        if not service_ids:
            return {}
        rows = (
            db.query(Booking.service_id, func.count(Booking.id))
            .filter(Booking.service_id.in_(service_ids))
            .group_by(Booking.service_id)
            .all()
        )
        return {service_id: count for service_id, count in rows}

    @staticmethod
    def create_service(db: Session, **service_data) -> Service:
        service = Service(**service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: Service, **updates) -> Service:
        for key, value in updates.items():
            setattr(service, key, value)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def delete_service(db: Session, service: Service) -> None:
        db.delete(service)
        db.commit()

    @staticmethod
    def list_options(
        db: Session, service_id: Optional[str] = None, is_active: Optional[bool] = None
    ) -> list[ServiceOption]:
        query = db.query(ServiceOption)
        if service_id:
            query = query.filter(ServiceOption.service_id == service_id)
        if is_active is not None:
            query = query.filter(ServiceOption.is_active.is_(is_active))
        return query.order_by(ServiceOption.name.asc()).all()

    @staticmethod
    def get_option(db: Session, option_id: str) -> Optional[ServiceOption]:
        return db.query(ServiceOption).filter(ServiceOption.id == option_id).first()

    @staticmethod
    def create_option(db: Session, **option_data) -> ServiceOption:
        option = ServiceOption(**option_data)
        db.add(option)
        db.commit()
        db.refresh(option)
        return option

    @staticmethod
    def update_option(db: Session, option: ServiceOption, **updates) -> ServiceOption:
        for key, value in updates.items():
            setattr(option, key, value)
        db.commit()
        db.refresh(option)
        return option

    @staticmethod
    def delete_option(db: Session, option: ServiceOption) -> None:
        db.delete(option)
        db.commit()
