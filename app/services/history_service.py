# /note-polish-backend/app/services/history_service.py

from typing import Optional

from ..models.history_model import HistoryResponse
from .generation_service import GenerationLifecycle, preview_title_from_text

DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 50


def _clamp(value: Optional[int], low: int, high: int, default: int) -> int:
    if value is None:
        return default
    return max(low, min(high, int(value)))


def get_history(
    lifecycle: GenerationLifecycle,
    owner_id: str,
    search: Optional[str] = None,
    status: Optional[str] = None,
    page: Optional[int] = 1,
    page_size: Optional[int] = DEFAULT_PAGE_SIZE,
) -> HistoryResponse:
    """
    Retrieves one page of the owner's generations, newest first. `search`
    matches the title or notes case-insensitively, or an exact generation id.
    """
    page = max(1, page or 1)
    page_size = _clamp(page_size, 1, MAX_PAGE_SIZE, DEFAULT_PAGE_SIZE)
    search = (search or "").strip() or None
    status = (status or "").strip() or None

    records, total = lifecycle.repo.list_owned(
        owner_id,
        search=search,
        status=status,
        offset=(page - 1) * page_size,
        limit=page_size,
    )

    items = []
    for record in records:
        public = lifecycle.to_public(record)
        if not public.title:
            public.title = preview_title_from_text(record.input_text)
        items.append(public)

    return HistoryResponse(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        hasNextPage=page * page_size < total,
    )
