"""
Pydantic models for civic reports.
These models handle validation for report submission and responses.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from enum import Enum


class ReportType(str, Enum):
    """
    Kinds of civic issue a citizen can report.

    The last two are infrastructure requests: they are never dispatched to a
    field worker and go through the admin "working" path instead.
    """
    ILLEGAL_DUMPING = "illegal_dumping"
    OPEN_TOILET = "open_toilet"
    DIRTY_TOILET = "dirty_toilet"
    OVERFLOW_DUSTBIN = "overflow_dustbin"
    DEAD_ANIMAL = "dead_animal"
    FOWL = "fowl"
    PUBLIC_BIN_REQUEST = "public_bin_request"
    PUBLIC_TOILET_REQUEST = "public_toilet_request"


class ReportStatus(str, Enum):
    """
    Report lifecycle states.

    Field-dispatch:  pending -> escalated -> assigned -> pending_confirmation -> resolved
    Infrastructure:  pending/escalated -> working -> resolved
    Withdrawal:      pending -> withdrawn (creator only)
    """
    PENDING = "pending"
    ESCALATED = "escalated"
    ASSIGNED = "assigned"
    WORKING = "working"
    PENDING_CONFIRMATION = "pending_confirmation"
    RESOLVED = "resolved"
    WITHDRAWN = "withdrawn"


class ReportCreate(BaseModel):
    """
    Model for creating a new report (incoming POST request).
    The image is uploaded elsewhere; only its reference URL arrives here.
    """
    title: str = Field(..., min_length=1, max_length=200, description="Short title of the issue")
    description: str = Field("", max_length=2000, description="What the citizen observed")
    type: ReportType = Field(..., description="Kind of issue")
    latitude: float = Field(..., ge=-90, le=90, description="Latitude of the issue")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude of the issue")
    image_url: Optional[str] = Field(None, max_length=1000, description="Reference to an uploaded photo")

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Illegal dumping in my neighborhood",
                "description": "A large pile of trash at the corner of Green St and Elm Ave.",
                "type": "illegal_dumping",
                "latitude": 12.9716,
                "longitude": 77.5946,
                "image_url": "https://media.example.com/uploads/1700000000-123.jpg",
            }
        }
        extra = "ignore"


class EvidenceUploadRequest(BaseModel):
    """Worker-submitted proof of remediation."""
    image_url: str = Field(..., min_length=1, max_length=1000, description="Reference to the uploaded evidence photo")
    notes: Optional[str] = Field(None, max_length=1000, description="Optional worker notes")


class StatusHistoryEntry(BaseModel):
    """Status transition history entry."""
    from_status: str
    to_status: str
    event: str
    changed_by: str
    timestamp: datetime
    note: Optional[str] = None


class ReportResponse(BaseModel):
    """
    Report projection returned by every lifecycle operation.
    Viewer fields (is_own_report, user_vote, has_voted, can_vote) are
    computed for the requesting actor.
    """
    id: str = Field(..., description="Store document ID")
    title: str
    description: str = ""
    type: ReportType
    latitude: float
    longitude: float
    image_url: Optional[str] = None
    status: ReportStatus = ReportStatus.PENDING
    support_count: int = 0
    opposition_count: int = 0
    created_by_id: str
    assigned_worker_id: Optional[str] = None
    resolution_image_url: Optional[str] = None
    resolution_notes: Optional[str] = None
    resolved_by_id: Optional[str] = None
    resolved_at: Optional[datetime] = None
    status_history: List[StatusHistoryEntry] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None

    is_own_report: bool = False
    user_vote: Optional[str] = Field(None, description="'support', 'oppose' or null")
    has_voted: bool = False
    can_vote: bool = False


class ReportListView(str, Enum):
    """Named slices of the report list."""
    ALL = "all"
    MINE = "mine"
    OTHERS = "others"
    ADMIN = "admin"
    ASSIGNED = "assigned"
