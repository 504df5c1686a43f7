from fastapi import APIRouter, Depends, status

from app.core.dependencies import get_current_user, get_dashboard_service
from app.db.schema import User
from app.services.dashboard import DashboardService
from app.models.dashboard import DashboardStats

router = APIRouter()


@router.get(
    "/stats",
    response_model=DashboardStats,
    status_code=status.HTTP_200_OK,
    summary="Get Dashboard KPIs",
    description="Material counts, active materials per division and the 12 latest materials."
)
def get_dashboard_stats(
    current_user: User = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard_service)
):
    return service.get_dashboard_stats(current_user)
