"""
Complaint Store - persistence for complaints.

Two implementations behind one interface:
- FirestoreComplaintStore: "complaints" collection, transactional updates
- InMemoryComplaintStore: process-local dict used with USE_MOCK_DB and in tests

Listing is always newest created first. Every read-modify-write goes through
transactional_update so status and its dependent fields change together.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional
import logging
import threading
import uuid

from firebase_admin import firestore

from app.core.exceptions import NotFound
from app.models.complaint import Complaint, ComplaintFilter, utcnow
from app.utils.firestore_helpers import firestore_errors, to_firestore, where_filter

logger = logging.getLogger(__name__)

Mutation = Callable[[Complaint], Optional[Dict[str, Any]]]


class ComplaintStore(ABC):
    """
    Core-facing store contract.

    Contract:
    - list_complaints: newest created first, unset filter fields match everything
    - get_complaint / update_complaint: raise NotFound for unknown ids
    - transactional_update: mutate(current) returns the partial update or None;
      the update is written atomically against the record it was computed from
    """

    @abstractmethod
    def list_complaints(self, filters: Optional[ComplaintFilter] = None) -> List[Complaint]:
        raise NotImplementedError

    @abstractmethod
    def get_complaint(self, complaint_id: str) -> Complaint:
        raise NotImplementedError

    @abstractmethod
    def update_complaint(self, complaint_id: str, fields: Dict[str, Any]) -> Complaint:
        raise NotImplementedError

    @abstractmethod
    def create_complaint(self, fields: Dict[str, Any]) -> Complaint:
        raise NotImplementedError

    @abstractmethod
    def transactional_update(self, complaint_id: str, mutate: Mutation) -> Complaint:
        raise NotImplementedError

    def ping(self) -> Dict[str, Any]:
        return {"backend": self.__class__.__name__, "connected": True}


class InMemoryComplaintStore(ComplaintStore):
    """Thread-safe in-process store."""

    def __init__(self):
        self._lock = threading.RLock()
        self._records: Dict[str, Complaint] = {}
        self._order: Dict[str, int] = {}
        self._sequence = 0

    def _sort_key(self, complaint: Complaint):
        return (complaint.created_at, self._order.get(complaint.id, 0))

    def list_complaints(self, filters: Optional[ComplaintFilter] = None) -> List[Complaint]:
        filters = filters or ComplaintFilter()
        with self._lock:
            matching = [c for c in self._records.values() if filters.matches(c)]
            matching.sort(key=self._sort_key, reverse=True)
        return matching

    def get_complaint(self, complaint_id: str) -> Complaint:
        with self._lock:
            complaint = self._records.get(complaint_id)
        if complaint is None:
            raise NotFound(f"Complaint {complaint_id} not found")
        return complaint

    def update_complaint(self, complaint_id: str, fields: Dict[str, Any]) -> Complaint:
        return self.transactional_update(complaint_id, lambda current: fields)

    def create_complaint(self, fields: Dict[str, Any]) -> Complaint:
        now = utcnow()
        data = dict(fields)
        data.setdefault("created_at", now)
        data.setdefault("updated_at", data["created_at"])
        with self._lock:
            data["id"] = uuid.uuid4().hex
            complaint = Complaint.model_validate(data)
            self._sequence += 1
            self._records[complaint.id] = complaint
            self._order[complaint.id] = self._sequence
        return complaint

    def transactional_update(self, complaint_id: str, mutate: Mutation) -> Complaint:
        with self._lock:
            current = self.get_complaint(complaint_id)
            changes = mutate(current)
            if not changes:
                return current
            updated = current.with_changes(changes)
            self._records[complaint_id] = updated
        return updated


class FirestoreComplaintStore(ComplaintStore):
    """Firestore-backed store (collection "complaints")."""

    COLLECTION = "complaints"

    def __init__(self, db=None):
        if db is None:
            from app.config.firebase import get_db
            db = get_db()
        self.db = db

    @property
    def collection(self):
        return self.db.collection(self.COLLECTION)

    @staticmethod
    def _to_complaint(snapshot) -> Complaint:
        data = snapshot.to_dict() or {}
        data["id"] = snapshot.id
        return Complaint.model_validate(data)

    def list_complaints(self, filters: Optional[ComplaintFilter] = None) -> List[Complaint]:
        filters = filters or ComplaintFilter()
        query = self.collection

        # Equality filters only; ordering (created_at, then document id) is done here to avoid composite indexes
        if filters.status is not None:
            query = where_filter(query, "status", "==", filters.status.value)
        if filters.assigned_department is not None:
            query = where_filter(query, "assigned_department", "==", filters.assigned_department)
        if filters.reporter_id is not None:
            query = where_filter(query, "reporter_id", "==", filters.reporter_id)

        with firestore_errors("list_complaints"):
            complaints = [self._to_complaint(doc) for doc in query.stream()]

        complaints.sort(key=lambda c: (c.created_at, c.id), reverse=True)
        logger.debug(f"Listed {len(complaints)} complaints with filters {filters.model_dump(exclude_none=True)}")
        return complaints

    def get_complaint(self, complaint_id: str) -> Complaint:
        with firestore_errors("get_complaint", complaint_id):
            snapshot = self.collection.document(complaint_id).get()
        if not snapshot.exists:
            raise NotFound(f"Complaint {complaint_id} not found")
        return self._to_complaint(snapshot)

    def update_complaint(self, complaint_id: str, fields: Dict[str, Any]) -> Complaint:
        return self.transactional_update(complaint_id, lambda current: fields)

    def create_complaint(self, fields: Dict[str, Any]) -> Complaint:
        now = utcnow()
        doc_ref = self.collection.document()
        data = dict(fields)
        data.setdefault("created_at", now)
        data.setdefault("updated_at", data["created_at"])
        data["id"] = doc_ref.id
        complaint = Complaint.model_validate(data)

        with firestore_errors("create_complaint", doc_ref.id):
            doc_ref.set(complaint.to_document())
        logger.info(f"Complaint saved to Firestore: {doc_ref.id}")
        return complaint

    def transactional_update(self, complaint_id: str, mutate: Mutation) -> Complaint:
        doc_ref = self.collection.document(complaint_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def run(transaction):
            snapshot = doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFound(f"Complaint {complaint_id} not found")
            current = self._to_complaint(snapshot)
            changes = mutate(current)
            if not changes:
                return current
            transaction.update(doc_ref, to_firestore(changes))
            return current.with_changes(changes)

        with firestore_errors("update_complaint", complaint_id):
            return run(transaction)

    def ping(self) -> Dict[str, Any]:
        with firestore_errors("ping"):
            list(self.collection.limit(1).stream())
        return {"backend": "firestore", "connected": True}


_store: Optional[ComplaintStore] = None


def get_complaint_store() -> ComplaintStore:
    """Get or create the configured ComplaintStore singleton."""
    global _store
    if _store is None:
        from app.core.settings import settings
        if settings.USE_MOCK_DB:
            logger.info("[STORE] Using in-memory complaint store")
            _store = InMemoryComplaintStore()
        else:
            _store = FirestoreComplaintStore()
    return _store
