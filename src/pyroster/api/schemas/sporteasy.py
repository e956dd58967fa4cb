from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class ImportReportResponse(BaseModel):
    total: int
    imported: int
    updated: int
    skipped: int
    errors: List[str] = Field(default_factory=list)


class ReminderResultResponse(BaseModel):
    practice_id: int
    success: bool
    player_count: int | None = None
    squad_sizes: List[int] | None = None
    error: str | None = None


class ReminderRunResponse(BaseModel):
    success: bool
    message: str
    practices_found: int
    results: List[ReminderResultResponse]
