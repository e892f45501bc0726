"""Schemas for scheduled maintenance endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import field_validator

from ..core.time_utils import ensure_aware_utc
from ._strict_base import StrictRequestModel
from .base import StandardizedModel


class AutoCompleteRequest(StrictRequestModel):
    now: Optional[datetime] = None

    @field_validator("now")
    @classmethod
    def _normalize_now(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware_utc(value) if value is not None else None


class AutoCompleteResponse(StandardizedModel):
    checked: int
    completed: int
    failed_batches: int
    cutoff: datetime
