"""
Admin endpoints - verification and department assignment.

SCOPE OF ADMIN:
✅ Verify pending complaints
✅ Assign (and re-assign) a department, defaulting to the category suggestion
✅ Add staff notes
❌ NOT move complaints through department work states
❌ NOT delete complaints
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.models.complaint import (
    Complaint,
    ComplaintStatus,
    DashboardSummary,
    NoteRequest,
    TransitionRequest,
)
from app.models.staff import StaffAccount
from app.routes.deps import require_admin
from app.services.complaint_service import ComplaintService, get_complaint_service


router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/complaints", response_model=List[Complaint])
async def get_complaints(
    status: Optional[ComplaintStatus] = Query(None, description="Filter by status"),
    admin: StaffAccount = Depends(require_admin),
    service: ComplaintService = Depends(get_complaint_service),
):
    """All complaints, newest first, optionally filtered by status."""
    return service.list_for_actor(admin, status)


@router.get("/summary", response_model=DashboardSummary)
async def get_summary(
    admin: StaffAccount = Depends(require_admin),
    service: ComplaintService = Depends(get_complaint_service),
):
    """Status counts for the admin dashboard cards."""
    return service.dashboard_summary(admin)


@router.get("/departments")
async def get_departments(
    admin: StaffAccount = Depends(require_admin),
    service: ComplaintService = Depends(get_complaint_service),
):
    return {
        "profile": service.profile.name,
        "departments": service.resolver.departments(service.profile),
    }


@router.get("/complaints/{complaint_id}/suggestion")
async def get_suggestion(
    complaint_id: str,
    admin: StaffAccount = Depends(require_admin),
    service: ComplaintService = Depends(get_complaint_service),
):
    """Suggested department for the assignment control."""
    return service.suggest_department(complaint_id)


@router.patch("/complaints/{complaint_id}/status")
async def change_status(
    complaint_id: str,
    request: TransitionRequest,
    admin: StaffAccount = Depends(require_admin),
    service: ComplaintService = Depends(get_complaint_service),
):
    """
    Change complaint status as admin.

    **Admin transitions (four_party):**
    - pending → verified
    - verified → assigned (department from the body, or the category suggestion)

    Re-sending the current status with a department re-assigns an assigned complaint.

    Raises:
        404: Complaint not found
        409: Transition not allowed from the current status
    """
    updated = service.transition(complaint_id, admin, request.status, request.extra())
    return {
        "success": True,
        "message": f"Status is {updated.status.value}",
        "complaint": updated,
    }


@router.patch("/complaints/{complaint_id}/note")
async def update_note(
    complaint_id: str,
    request: NoteRequest,
    admin: StaffAccount = Depends(require_admin),
    service: ComplaintService = Depends(get_complaint_service),
):
    updated = service.update_note(complaint_id, admin, request.note)
    return {"success": True, "message": "Note saved", "complaint": updated}
