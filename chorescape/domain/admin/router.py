"""Admin dashboard router"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin_or_degraded
from ...database import get_db
from ...fallback import degrade_on_error
from ...models import Profile
from .service import StatsService, empty_stats

router = APIRouter(prefix="/api/admin", tags=["Admin"])


def get_stats_service(db: Session = Depends(get_db)) -> StatsService:
    """Dependency injection for StatsService"""
    return StatsService(db)


@router.get("/stats")
@degrade_on_error(empty_stats)
async def get_stats(
    _admin: Profile = Depends(require_admin_or_degraded),
    service: StatsService = Depends(get_stats_service),
):
    """Dashboard counters. Zeroed when the datastore fails."""
    return service.get_stats()


__all__ = ["router"]
