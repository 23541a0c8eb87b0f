"""
Assignment Resolver - suggests the responsible department for a complaint.

The suggestion only pre-selects the admin's assignment control. The admin's
actual choice may differ and is written through the workflow engine.
"""

from typing import List, Optional, Union
import logging

from app.models.complaint import Category
from app.services.workflow_profiles import WorkflowProfile, get_active_profile

logger = logging.getLogger(__name__)


class AssignmentResolver:
    """Category → department lookup with a default fallback."""

    def __init__(self, profile: Optional[WorkflowProfile] = None):
        self.profile = profile

    def _profile(self, profile: Optional[WorkflowProfile]) -> WorkflowProfile:
        return profile or self.profile or get_active_profile()

    def suggest(
        self,
        category: Union[Category, str, None],
        profile: Optional[WorkflowProfile] = None,
    ) -> str:
        """
        Suggest a department for the given category.

        Total: unknown or missing categories resolve to the profile's default department.
        """
        active = self._profile(profile)
        try:
            key = Category(category) if category is not None else None
        except ValueError:
            logger.debug(f"Unknown category '{category}', using default department")
            key = None

        if key is None:
            return active.default_department
        return active.category_departments.get(key, active.default_department)

    def departments(self, profile: Optional[WorkflowProfile] = None) -> List[str]:
        """Assignment choices shown to admins."""
        return self._profile(profile).departments


_resolver: Optional[AssignmentResolver] = None


def get_assignment_resolver() -> AssignmentResolver:
    """Get or create AssignmentResolver singleton."""
    global _resolver
    if _resolver is None:
        _resolver = AssignmentResolver()
    return _resolver
