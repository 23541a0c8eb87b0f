"""
Complaint endpoints - citizen submission, photo upload, retrieval and reward balance.
"""

from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.models.complaint import Complaint, ComplaintCreate, ComplaintFilter, ComplaintStatus
from app.services.complaint_service import ComplaintService, get_complaint_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/complaints", tags=["Complaints"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=Complaint)
async def submit_complaint(
    complaint: ComplaintCreate,
    service: ComplaintService = Depends(get_complaint_service),
):
    """
    File a new complaint.

    The complaint starts in the active profile's initial status (pending)
    with no assigned department.
    """
    logger.info(f"📝 POST /complaints - category={complaint.category.value}, reporter={complaint.reporter_id}")
    return service.create_complaint(complaint)


@router.get("", response_model=List[Complaint])
async def list_complaints(
    status: Optional[ComplaintStatus] = Query(None, description="Filter by status"),
    assigned_department: Optional[str] = Query(None, description="Filter by assigned department"),
    reporter_id: Optional[str] = Query(None, description="Filter by reporter"),
    service: ComplaintService = Depends(get_complaint_service),
):
    """List complaints, newest first."""
    filters = ComplaintFilter(
        status=status,
        assigned_department=assigned_department,
        reporter_id=reporter_id,
    )
    return service.list_complaints(filters)


@router.post("/photos", status_code=status.HTTP_201_CREATED)
async def upload_photo(
    file: UploadFile = File(...),
    service: ComplaintService = Depends(get_complaint_service),
):
    """Upload a complaint photo and return its reference for ComplaintCreate.photo_ref."""
    data = await file.read()
    return service.upload_photo(data, file.content_type)


@router.get("/photos/url")
async def photo_url(
    ref: str = Query(..., min_length=1, description="Photo reference"),
    service: ComplaintService = Depends(get_complaint_service),
):
    return {"photo_ref": ref, "url": service.photo_url(ref)}


@router.get("/rewards/{user_id}")
async def reward_balance(
    user_id: str,
    service: ComplaintService = Depends(get_complaint_service),
):
    """Reward points earned by a reporter."""
    return {"user_id": user_id, "points": service.get_balance(user_id)}


@router.get("/{complaint_id}", response_model=Complaint)
async def get_complaint(
    complaint_id: str,
    service: ComplaintService = Depends(get_complaint_service),
):
    return service.get_complaint(complaint_id)
