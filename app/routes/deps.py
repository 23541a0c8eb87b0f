"""
Request dependencies: resolve the acting staff member from the X-Staff-Id header.

Session handling lives outside this service; callers pass the authenticated
staff id on every request.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from app.core.exceptions import NotFound
from app.models.staff import StaffAccount, StaffRole
from app.services.staff_service import StaffDirectory, get_staff_directory


def get_current_staff(
    x_staff_id: Optional[str] = Header(None, description="Authenticated staff account id"),
    directory: StaffDirectory = Depends(get_staff_directory),
) -> StaffAccount:
    if not x_staff_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Staff-Id header",
        )
    try:
        return directory.get_staff(x_staff_id)
    except NotFound:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown staff account: {x_staff_id}",
        )


def require_admin(staff: StaffAccount = Depends(get_current_staff)) -> StaffAccount:
    if staff.role != StaffRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return staff


def require_department(staff: StaffAccount = Depends(get_current_staff)) -> StaffAccount:
    if staff.role != StaffRole.DEPARTMENT:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Department access required")
    return staff
