"""
Staff Service - resolve staff accounts to an acting role.

Identity arrives as an explicit staff id on every call; nothing here keeps
a "current admin" or "current department" between requests.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Union
import json
import logging
import threading

from app.core.exceptions import Forbidden, NotFound
from app.models.staff import StaffAccount, StaffRole
from app.utils.firestore_helpers import firestore_errors

logger = logging.getLogger(__name__)


class StaffDirectory(ABC):

    @abstractmethod
    def get_staff(self, staff_id: str) -> StaffAccount:
        raise NotImplementedError

    @abstractmethod
    def add_staff(self, account: StaffAccount) -> StaffAccount:
        raise NotImplementedError

    @abstractmethod
    def list_staff(self) -> List[StaffAccount]:
        raise NotImplementedError

    def authenticate(self, staff_id: str, expected_role: Union[StaffRole, str]) -> StaffAccount:
        """
        Resolve a staff id for the login type the user picked.

        Raises:
            NotFound: No staff account with this id
            Forbidden: The account has a different role than the selected login type
        """
        account = self.get_staff(staff_id)
        expected = StaffRole(expected_role)
        if account.role != expected:
            logger.warning(f"Staff {staff_id} tried to log in as {expected.value} but is {account.role.value}")
            raise Forbidden(
                f"This account is registered as {account.role.value}, not {expected.value}",
                details={"staff_id": staff_id, "role": account.role.value},
            )
        logger.info(f"Staff authenticated: {account.id} ({account.role.value})")
        return account


class InMemoryStaffDirectory(StaffDirectory):

    def __init__(self, accounts: Optional[List[StaffAccount]] = None):
        self._lock = threading.Lock()
        self._accounts: Dict[str, StaffAccount] = {}
        for account in accounts or []:
            self.add_staff(account)

    def get_staff(self, staff_id: str) -> StaffAccount:
        with self._lock:
            account = self._accounts.get(staff_id)
        if account is None:
            raise NotFound(f"Staff account {staff_id} not found")
        return account

    def add_staff(self, account: StaffAccount) -> StaffAccount:
        with self._lock:
            self._accounts[account.id] = account
        return account

    def list_staff(self) -> List[StaffAccount]:
        with self._lock:
            return list(self._accounts.values())


class FirestoreStaffDirectory(StaffDirectory):
    """Accounts live in the "staff_accounts" collection keyed by auth user id."""

    COLLECTION = "staff_accounts"

    def __init__(self, db=None):
        if db is None:
            from app.config.firebase import get_db
            db = get_db()
        self.db = db

    @staticmethod
    def _to_account(snapshot) -> StaffAccount:
        data = snapshot.to_dict() or {}
        data["id"] = snapshot.id
        return StaffAccount.model_validate(data)

    def get_staff(self, staff_id: str) -> StaffAccount:
        with firestore_errors("get_staff", staff_id):
            snapshot = self.db.collection(self.COLLECTION).document(staff_id).get()
        if not snapshot.exists:
            raise NotFound(f"Staff account {staff_id} not found")
        return self._to_account(snapshot)

    def add_staff(self, account: StaffAccount) -> StaffAccount:
        data = account.model_dump(exclude={"id"})
        data["role"] = account.role.value
        with firestore_errors("add_staff", account.id):
            self.db.collection(self.COLLECTION).document(account.id).set(data)
        return account

    def list_staff(self) -> List[StaffAccount]:
        with firestore_errors("list_staff"):
            return [self._to_account(doc) for doc in self.db.collection(self.COLLECTION).stream()]


def load_staff_seed(path: str) -> List[StaffAccount]:
    """Read and validate a JSON list of staff accounts."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError("Staff seed must be a JSON list")
    return [StaffAccount.model_validate(entry) for entry in raw]


_directory: Optional[StaffDirectory] = None


def get_staff_directory() -> StaffDirectory:
    """Get or create the configured StaffDirectory singleton."""
    global _directory
    if _directory is None:
        from app.core.settings import settings
        if settings.USE_MOCK_DB:
            accounts = load_staff_seed(settings.STAFF_SEED_PATH) if settings.STAFF_SEED_PATH else []
            _directory = InMemoryStaffDirectory(accounts)
            logger.info(f"[STAFF] In-memory directory with {len(accounts)} account(s)")
        else:
            _directory = FirestoreStaffDirectory()
    return _directory
