# /note-polish-backend/app/services/dashboard_service.py

from datetime import datetime, timedelta, timezone
from typing import Optional

# --- Core Imports ---
# Import the Pydantic models to ensure our output matches the data contract.
from ..models.dashboard_model import DashboardMetrics, DashboardSummary, QuickAction, RecentGeneration
# Import the DatabaseService to interact with our data layer.
from .database_service import DatabaseService
from .generation_service import preview_title_from_text, style_label

DEFAULT_PERIOD_DAYS = 7
RECENT_LIMIT = 4

QUICK_ACTIONS = [
    QuickAction(key="open_playground", title="Open playground", href="/dashboard/playground"),
    QuickAction(key="view_history", title="View history", href="/dashboard/history"),
]


def clamp_days(days: Optional[int]) -> int:
    if days is None:
        return DEFAULT_PERIOD_DAYS
    return max(1, min(90, int(days)))


# --- Core Public Function ---

def get_summary_data(db: DatabaseService, owner_id: str, days: Optional[int] = DEFAULT_PERIOD_DAYS) -> DashboardSummary:
    """
    Calculates the dashboard summary for one owner over the last `days` days
    (clamped to 1..90).

    Args:
        db: An instance of the DatabaseService, provided by dependency injection.
        owner_id: The resolved identity of the caller.
        days: Length of the reporting period.

    Returns:
        A DashboardSummary Pydantic object with the metric cards, the four most
        recent generations and the fixed quick actions.
    """
    period_days = clamp_days(days)
    since = datetime.now(timezone.utc) - timedelta(days=period_days)
    repo = db.generation_repo

    metrics = DashboardMetrics(
        generations_last_period=repo.count_created_since(owner_id, since),
        downloads_last_period=repo.count_downloaded_since(owner_id, since),
        favourites_total=repo.count_favourites(owner_id),
        active_styles=db.count_active_presets(),
    )

    recent = [
        RecentGeneration(
            id=record.id,
            title=preview_title_from_text(record.input_text),
            style_label=style_label(record.style),
            status=record.status,
            created_at=record.created_at,
        )
        for record in repo.list_recent(owner_id, limit=RECENT_LIMIT)
    ]

    return DashboardSummary(
        period_days=period_days,
        metrics=metrics,
        recent_generations=recent,
        quick_actions=list(QUICK_ACTIONS),
    )
