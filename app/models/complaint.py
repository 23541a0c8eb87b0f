"""
Pydantic models for citizen complaints.
These models handle validation for complaint submission, storage and responses.
"""

from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Category(str, Enum):
    """
    Complaint category chosen by the citizen.
    waste/road/electric are the vocabulary of the three-party portal.
    """
    GARBAGE = "garbage"
    POTHOLE = "pothole"
    STREETLIGHT = "streetlight"
    OTHER = "other"
    WASTE = "waste"
    ROAD = "road"
    ELECTRIC = "electric"


class ComplaintStatus(str, Enum):
    """
    Union of the statuses used by every workflow profile.

    four_party: pending → verified → assigned → received_by_dept → inprogress ⇄ incomplete → completed
    three_party: pending → assigned → in_progress → resolved
    """
    PENDING = "pending"
    VERIFIED = "verified"
    ASSIGNED = "assigned"
    RECEIVED_BY_DEPT = "received_by_dept"
    INPROGRESS = "inprogress"
    INCOMPLETE = "incomplete"
    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class ComplaintCreate(BaseModel):
    """
    Model for creating a new complaint (incoming POST request).
    These are the fields citizens provide when filing a complaint.
    """
    category: Category = Field(..., description="Issue category")
    title: str = Field(..., min_length=1, max_length=200, description="Short title")
    description: Optional[str] = Field(None, max_length=2000, description="What the citizen observed")
    location: Optional[str] = Field(None, max_length=300, description="Free-text location label")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    photo_ref: Optional[str] = Field(None, description="Reference returned by the photo upload endpoint")
    reporter_id: str = Field(..., min_length=1, description="Owning user")

    class Config:
        json_schema_extra = {
            "example": {
                "category": "pothole",
                "title": "Deep pothole near bus stop",
                "description": "Two-wheelers are skidding here after rain.",
                "location": "MG Road, opposite City Bank",
                "latitude": 19.9975,
                "longitude": 73.7898,
                "photo_ref": "complaints/4f7c1e.jpg",
                "reporter_id": "user-42",
            }
        }
        extra = "ignore"


class StatusHistoryEntry(BaseModel):
    """Status transition history entry."""
    from_status: str = Field(..., alias="from")
    to_status: str = Field(..., alias="to")
    changed_by: str
    role: Optional[str] = None
    timestamp: datetime
    note: Optional[str] = None

    class Config:
        populate_by_name = True


class Complaint(BaseModel):
    """
    Stored complaint record (what the store and API return).
    id, category, reporter_id and created_at never change after creation.
    """
    id: str
    category: Category
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    photo_ref: Optional[str] = None
    reporter_id: str
    status: ComplaintStatus = ComplaintStatus.PENDING
    workflow_profile: str = "four_party"
    assigned_department: Optional[str] = None
    staff_note: Optional[str] = None
    proof_photo_ref: Optional[str] = None
    status_history: List[Dict[str, Any]] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def with_changes(self, changes: Dict[str, Any]) -> "Complaint":
        """Copy with a partial update applied and re-validated."""
        data = self.model_dump()
        data.update(changes)
        return Complaint.model_validate(data)

    def to_document(self) -> Dict[str, Any]:
        """Plain dict suitable for a Firestore document (enums as strings)."""
        return self.model_dump(mode="python", exclude={"id"}) | {
            "category": self.category.value,
            "status": self.status.value,
        }


class ComplaintFilter(BaseModel):
    """Equality filters for listing complaints. Unset fields do not filter."""
    status: Optional[ComplaintStatus] = None
    assigned_department: Optional[str] = None
    reporter_id: Optional[str] = None

    def matches(self, complaint: Complaint) -> bool:
        if self.status is not None and complaint.status != self.status:
            return False
        if self.assigned_department is not None and complaint.assigned_department != self.assigned_department:
            return False
        if self.reporter_id is not None and complaint.reporter_id != self.reporter_id:
            return False
        return True


class TransitionExtra(BaseModel):
    """Optional fields an action supplies alongside the target status."""
    note: Optional[str] = Field(None, max_length=1000)
    department: Optional[str] = Field(None, min_length=1, max_length=100)
    proof_photo_ref: Optional[str] = None

    def is_empty(self) -> bool:
        return self.note is None and self.department is None and self.proof_photo_ref is None


class TransitionRequest(BaseModel):
    """Body of the status endpoints."""
    status: ComplaintStatus = Field(..., description="Target status")
    note: Optional[str] = Field(None, max_length=1000)
    department: Optional[str] = Field(None, min_length=1, max_length=100)
    proof_photo_ref: Optional[str] = None

    def extra(self) -> TransitionExtra:
        return TransitionExtra(
            note=self.note,
            department=self.department,
            proof_photo_ref=self.proof_photo_ref,
        )


class NoteRequest(BaseModel):
    note: str = Field(..., max_length=1000)


class WorkflowEvent(BaseModel):
    """
    Notification record emitted by the core.
    event is "statusChanged" or "rewardCredited"; delivery is the caller's concern.
    """
    event: str
    complaint_id: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    sequence: int = 0
    created_at: datetime = Field(default_factory=utcnow)


class RewardResult(BaseModel):
    """Outcome of a credit call. credited is False when the complaint was already rewarded."""
    user_id: str
    complaint_id: str
    amount: int
    credited: bool
    balance: int


class DashboardSummary(BaseModel):
    """Status counts for the dashboard stat cards."""
    total: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    department: Optional[str] = None
    poll_interval_seconds: int = 10
