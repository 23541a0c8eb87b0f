"""
Firestore query and error helpers shared by the Firestore-backed services.
"""

from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict
import logging

from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter

from app.core.exceptions import NotFound, StoreUnavailable

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
    google_exceptions.TooManyRequests,
    google_exceptions.Aborted,
    google_exceptions.RetryError,
)


def where_filter(query, field_path: str, op_string: str, value):
    """
    Add a field filter using the keyword filter API.

    Usage:
        query = where_filter(collection, "status", "==", "pending")
        query = where_filter(query, "assigned_department", "==", "Engineering")
    """
    return query.where(filter=FieldFilter(field_path, op_string, value))


def to_firestore(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Convert enum values to plain strings before writing."""
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in fields.items()
    }


@contextmanager
def firestore_errors(operation: str, record_id: str = None):
    """
    Translate google-api-core errors into portal exceptions.

    Transient failures become StoreUnavailable so callers may re-issue the
    same operation; a missing document becomes NotFound. Domain errors
    raised inside the block pass through unchanged.
    """
    try:
        yield
    except google_exceptions.NotFound:
        raise NotFound(f"{operation}: record {record_id} not found")
    except TRANSIENT_ERRORS as e:
        logger.warning(f"Firestore {operation} failed transiently: {e}")
        raise StoreUnavailable(f"{operation} failed: backend unavailable", details={"error": str(e)})
    except ValueError as e:
        # Transactions that stay contended past max_attempts surface as ValueError from Aborted
        if not isinstance(e.__cause__, TRANSIENT_ERRORS):
            raise
        logger.warning(f"Firestore {operation} gave up after retries: {e.__cause__}")
        raise StoreUnavailable(f"{operation} failed: transaction contended", details={"error": str(e.__cause__)})
