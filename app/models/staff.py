"""
Staff account models. Used to resolve the acting role and display name.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional
from enum import Enum


class StaffRole(str, Enum):
    ADMIN = "admin"
    DEPARTMENT = "department"


class StaffAccount(BaseModel):
    """
    Provisioned staff member. department_name is present only for department staff.
    """
    id: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1, max_length=100)
    role: StaffRole
    department_name: Optional[str] = None

    class Config:
        frozen = True

    @model_validator(mode="after")
    def check_department(self):
        if self.role == StaffRole.DEPARTMENT and not self.department_name:
            raise ValueError("department staff must have a department_name")
        if self.role == StaffRole.ADMIN and self.department_name:
            raise ValueError("admin accounts do not belong to a department")
        return self


class StaffLoginRequest(BaseModel):
    """Login type selected on the login page plus the authenticated staff id."""
    staff_id: str = Field(..., min_length=1)
    role: StaffRole
