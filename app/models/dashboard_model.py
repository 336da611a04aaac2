# /app/models/dashboard_model.py

# --- Core Imports ---
from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, Field

from .generation_model import GenerationStatus


# --- Model Definitions ---

class DashboardMetrics(BaseModel):
    generations_last_period: int = Field(..., description="Generations created within the period.", examples=[6])
    downloads_last_period: int = Field(
        ...,
        description="Generations marked downloaded and touched within the period.",
        examples=[2],
    )
    favourites_total: int = Field(..., description="All-time favourite generations.", examples=[3])
    active_styles: int = Field(..., description="Active presets in the style catalog.", examples=[5])


class RecentGeneration(BaseModel):
    id: str
    title: str
    style_label: str
    status: GenerationStatus
    created_at: datetime


class QuickAction(BaseModel):
    key: Literal["open_playground", "view_history"]
    title: str
    href: str


class DashboardSummary(BaseModel):
    """
    Defines the data contract for the response of the dashboard endpoint.
    This is the exact shape used to populate the dashboard's metric cards,
    recent activity list and shortcuts.
    """
    period_days: int
    metrics: DashboardMetrics
    recent_generations: List[RecentGeneration]
    quick_actions: List[QuickAction]
