"""Profile service - the caller's profile and admin worker management"""

import logging

from sqlalchemy.orm import Session

from ...errors import NotFoundError
from ...models import Booking, Profile
from .repository import ProfileRepository
from .schemas import ProfileUpdate

logger = logging.getLogger(__name__)

PROFILE_FIELDS = {
    "fullName": "full_name",
    "phone": "phone",
    "city": "city",
    "province": "province",
}


class ProfileService:
    """Service layer for profiles"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProfileRepository()

    def update_profile(self, profile: Profile, data: ProfileUpdate) -> Profile:
        updates = {
            PROFILE_FIELDS[field]: value
            for field, value in data.model_dump(exclude_unset=True).items()
        }
        profile = self.repo.update_profile(self.db, profile, **updates)
        logger.info(f"✅ Profile {profile.id} updated: {sorted(updates)}")
        return profile

    def list_workers(self) -> list[tuple[Profile, int, int]]:
        """Workers with (active, completed) booking counts"""
        workers = self.repo.list_workers(self.db)
        counts = self.repo.worker_booking_counts(self.db, [w.id for w in workers])
        return [(w, *counts.get(w.id, (0, 0))) for w in workers]

    def get_worker(self, worker_id: str) -> tuple[Profile, list[Booking]]:
        worker = self.repo.get_worker(self.db, worker_id)
        if not worker:
            raise NotFoundError("Worker not found")
        return worker, self.repo.worker_bookings(self.db, worker.id)

    def set_worker_active(self, worker_id: str, is_active: bool, admin: Profile) -> Profile:
        worker = self.repo.get_worker(self.db, worker_id)
        if not worker:
            raise NotFoundError("Worker not found")
        worker = self.repo.update_profile(self.db, worker, is_active=is_active)
        logger.info(f"✅ Admin {admin.id} set worker {worker.id} active={is_active}")
        return worker
