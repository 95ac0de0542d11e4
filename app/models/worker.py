"""
Worker location models.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class WorkerLocationUpdate(BaseModel):
    """Location ping sent by a field worker."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class WorkerLocation(BaseModel):
    """Latest known position of a field worker (one row per worker)."""
    worker_id: str
    latitude: float
    longitude: float
    updated_at: datetime
    worker_name: Optional[str] = None
