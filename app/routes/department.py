"""
Department endpoints - work on complaints assigned to the caller's department.
"""

from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from app.models.complaint import (
    Complaint,
    ComplaintStatus,
    DashboardSummary,
    NoteRequest,
    TransitionRequest,
)
from app.models.staff import StaffAccount
from app.routes.deps import require_department
from app.services.complaint_service import ComplaintService, get_complaint_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/department", tags=["Department"])


@router.get("/complaints", response_model=List[Complaint])
async def get_assigned_complaints(
    status: Optional[ComplaintStatus] = Query(None, description="Filter by status"),
    staff: StaffAccount = Depends(require_department),
    service: ComplaintService = Depends(get_complaint_service),
):
    """Complaints assigned to the caller's department, newest first."""
    return service.list_for_actor(staff, status)


@router.get("/summary", response_model=DashboardSummary)
async def get_summary(
    staff: StaffAccount = Depends(require_department),
    service: ComplaintService = Depends(get_complaint_service),
):
    return service.dashboard_summary(staff)


@router.patch("/complaints/{complaint_id}/status")
async def change_status(
    complaint_id: str,
    request: TransitionRequest,
    staff: StaffAccount = Depends(require_department),
    service: ComplaintService = Depends(get_complaint_service),
):
    """
    Update progress on an assigned complaint.

    **Department transitions (four_party):**
    - assigned → received_by_dept | inprogress
    - received_by_dept → inprogress
    - inprogress ⇄ incomplete
    - inprogress → completed (credits the reporter)

    Raises:
        403: Complaint belongs to another department
        409: Transition not allowed from the current status
    """
    updated = service.transition(complaint_id, staff, request.status, request.extra())
    return {
        "success": True,
        "message": f"Status is {updated.status.value}",
        "complaint": updated,
    }


@router.patch("/complaints/{complaint_id}/note")
async def update_note(
    complaint_id: str,
    request: NoteRequest,
    staff: StaffAccount = Depends(require_department),
    service: ComplaintService = Depends(get_complaint_service),
):
    updated = service.update_note(complaint_id, staff, request.note)
    return {"success": True, "message": "Note saved", "complaint": updated}


@router.post("/complaints/{complaint_id}/proof")
async def upload_proof(
    complaint_id: str,
    file: UploadFile = File(...),
    note: Optional[str] = Form(None),
    complete: bool = Form(True),
    staff: StaffAccount = Depends(require_department),
    service: ComplaintService = Depends(get_complaint_service),
):
    """Upload a resolution photo and mark the complaint completed (unless complete=false)."""
    data = await file.read()
    updated = service.attach_proof(
        complaint_id,
        staff,
        data,
        content_type=file.content_type,
        note=note,
        complete=complete,
    )
    logger.info(f"Proof uploaded for complaint {complaint_id} by {staff.id}")
    return {
        "success": True,
        "message": "Proof uploaded" + (f", status is {updated.status.value}" if complete else ""),
        "complaint": updated,
    }
