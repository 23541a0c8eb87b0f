"""
Domain exceptions for the complaint workflow.

IllegalTransition and Forbidden are UI-state errors: surfaced to the caller,
never retried. StoreUnavailable is transient; the caller may re-issue the
same operation. DuplicateReward is an internal guard and is only logged.
"""

from typing import Any, Dict, Optional


class PortalError(Exception):
    """Base class for all portal exceptions"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detail": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class IllegalTransition(PortalError):
    """Requested status is not reachable from the current status under the active profile"""


class Forbidden(PortalError):
    """Actor role or department does not match the complaint"""


class NotFound(PortalError):
    """Record does not exist"""


class StoreUnavailable(PortalError):
    """Transient backend failure"""


class DuplicateReward(PortalError):
    """Complaint was already credited"""
