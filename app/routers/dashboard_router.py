# /note-polish-backend/app/routers/dashboard_router.py

# --- Core FastAPI Imports ---
from typing import Optional

from fastapi import APIRouter, Depends, Query

# --- Service and Model Imports ---
# Import the business logic service that this router will use.
from ..services import dashboard_service
# Import the database service dependency provider.
from ..services.database_service import DatabaseService, get_db_service
from ..core.deps import get_current_owner_id
# Import the Pydantic model to define the response shape (the API contract).
from ..models.dashboard_model import DashboardSummary

# --- APIRouter Instance ---
router = APIRouter()


# --- Endpoint Definition ---
@router.get(
    "",
    response_model=DashboardSummary,
    summary="Get Dashboard Summary",
    description="Metric cards, recent generations and shortcuts for the dashboard home view.",
)
def get_dashboard_summary(
    days: Optional[int] = Query(dashboard_service.DEFAULT_PERIOD_DAYS, description="Period length, clamped to 1..90."),
    owner_id: str = Depends(get_current_owner_id),
    db: DatabaseService = Depends(get_db_service),
):
    """
    Thin router layer: resolve the caller, then delegate to the service.
    """
    return dashboard_service.get_summary_data(db=db, owner_id=owner_id, days=days)
