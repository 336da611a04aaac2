# /note-polish-backend/app/models/history_model.py

from typing import List

from pydantic import BaseModel, ConfigDict

from .generation_model import PublicGeneration


class HistoryResponse(BaseModel):
    """
    Defines the data contract for the GET /api/generations response.
    """
    model_config = ConfigDict(from_attributes=True)

    items: List[PublicGeneration]
    total: int
    page: int
    page_size: int
    hasNextPage: bool
