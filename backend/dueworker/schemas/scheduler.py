"""Pydantic schemas for the scheduler tick API endpoint."""

from typing import List, Optional

from pydantic import BaseModel


class TenantErrorResponse(BaseModel):
    """One tenant's non-fatal failure within a tick."""

    tenant_id: str
    stage: str  # fetch | deliver | transition
    item_id: Optional[str] = None
    error_type: str
    error: str


class TickResponse(BaseModel):
    """Response model for a completed tick."""

    message: str
    processed_count: int
    errors: List[TenantErrorResponse] = []
    tenants_seen: int = 0
    conflicts: int = 0
    skipped_tenants: List[str] = []
    cancelled: bool = False
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    correlation_id: Optional[str] = None
