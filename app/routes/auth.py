"""
Authentication endpoints - resolve a staff account for the selected login type.

Password checks happen in the external identity provider; this endpoint only
confirms the authenticated account matches the chosen role (admin/department).
"""

from fastapi import APIRouter, Depends
import logging

from app.models.staff import StaffAccount, StaffLoginRequest
from app.routes.deps import get_current_staff
from app.services.staff_service import StaffDirectory, get_staff_directory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/staff-login", response_model=StaffAccount)
async def staff_login(
    request: StaffLoginRequest,
    directory: StaffDirectory = Depends(get_staff_directory),
):
    """
    Confirm a staff account for the chosen dashboard.

    Returns:
        StaffAccount: role and department used by the dashboard

    Raises:
        404: Unknown staff account
        403: Account role differs from the selected login type
    """
    return directory.authenticate(request.staff_id, request.role)


@router.get("/me", response_model=StaffAccount)
async def get_me(staff: StaffAccount = Depends(get_current_staff)):
    return staff
