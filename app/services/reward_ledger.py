"""
Reward Ledger - at-most-once point crediting per complaint.

A ledger row keyed by complaint id is the marker. It is written in the same
atomic unit as the balance increment, so a retried or duplicated credit for
the same complaint can never award points twice.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional
import logging
import threading

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from app.core.exceptions import DuplicateReward
from app.models.complaint import RewardResult, utcnow
from app.utils.firestore_helpers import firestore_errors

logger = logging.getLogger(__name__)


class RewardLedger(ABC):
    """Idempotent crediting keyed by complaint id."""

    def credit(self, user_id: str, complaint_id: str, amount: int) -> RewardResult:
        """
        Credit amount points to user_id for complaint_id.

        Reapplying for an already-credited complaint is a no-op returning
        credited=False. DuplicateReward is raised internally and only logged.
        """
        if amount <= 0:
            raise ValueError("Reward amount must be positive")

        try:
            balance = self._credit_once(user_id, complaint_id, amount)
        except DuplicateReward as e:
            logger.info(f"Reward already credited, skipping: {e.message}")
            return RewardResult(
                user_id=user_id,
                complaint_id=complaint_id,
                amount=amount,
                credited=False,
                balance=self.get_balance(user_id),
            )

        logger.info(f"🏆 Credited {amount} points to {user_id} for complaint {complaint_id}")
        return RewardResult(
            user_id=user_id,
            complaint_id=complaint_id,
            amount=amount,
            credited=True,
            balance=balance,
        )

    @abstractmethod
    def _credit_once(self, user_id: str, complaint_id: str, amount: int) -> int:
        """Write marker and increment atomically; raise DuplicateReward if the marker exists."""
        raise NotImplementedError

    @abstractmethod
    def get_balance(self, user_id: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def get_entry(self, complaint_id: str) -> Optional[Dict]:
        raise NotImplementedError


class InMemoryRewardLedger(RewardLedger):

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[str, Dict] = {}
        self._balances: Dict[str, int] = {}

    def _credit_once(self, user_id: str, complaint_id: str, amount: int) -> int:
        with self._lock:
            if complaint_id in self._entries:
                raise DuplicateReward(f"Complaint {complaint_id} already credited")
            self._entries[complaint_id] = {
                "complaint_id": complaint_id,
                "user_id": user_id,
                "amount": amount,
                "created_at": utcnow(),
            }
            self._balances[user_id] = self._balances.get(user_id, 0) + amount
            return self._balances[user_id]

    def get_balance(self, user_id: str) -> int:
        with self._lock:
            return self._balances.get(user_id, 0)

    def get_entry(self, complaint_id: str) -> Optional[Dict]:
        with self._lock:
            entry = self._entries.get(complaint_id)
            return dict(entry) if entry else None


class FirestoreRewardLedger(RewardLedger):
    """
    Marker: reward_ledger/{complaint_id}. Balance: user_profiles/{user_id}.points.

    batch.create fails with AlreadyExists when the marker is present, which
    rejects the whole batch including the increment.
    """

    LEDGER_COLLECTION = "reward_ledger"
    PROFILE_COLLECTION = "user_profiles"

    def __init__(self, db=None):
        if db is None:
            from app.config.firebase import get_db
            db = get_db()
        self.db = db

    def _credit_once(self, user_id: str, complaint_id: str, amount: int) -> int:
        ledger_ref = self.db.collection(self.LEDGER_COLLECTION).document(complaint_id)
        profile_ref = self.db.collection(self.PROFILE_COLLECTION).document(user_id)

        batch = self.db.batch()
        batch.create(ledger_ref, {
            "complaint_id": complaint_id,
            "user_id": user_id,
            "amount": amount,
            "created_at": firestore.SERVER_TIMESTAMP,
        })
        batch.set(profile_ref, {"points": firestore.Increment(amount)}, merge=True)

        try:
            with firestore_errors("credit_reward", complaint_id):
                batch.commit()
        except google_exceptions.AlreadyExists:
            raise DuplicateReward(f"Complaint {complaint_id} already credited")

        return self.get_balance(user_id)

    def get_balance(self, user_id: str) -> int:
        with firestore_errors("get_balance", user_id):
            snapshot = self.db.collection(self.PROFILE_COLLECTION).document(user_id).get()
        if not snapshot.exists:
            return 0
        return int((snapshot.to_dict() or {}).get("points", 0))

    def get_entry(self, complaint_id: str) -> Optional[Dict]:
        with firestore_errors("get_reward_entry", complaint_id):
            snapshot = self.db.collection(self.LEDGER_COLLECTION).document(complaint_id).get()
        return snapshot.to_dict() if snapshot.exists else None


_ledger: Optional[RewardLedger] = None


def get_reward_ledger() -> RewardLedger:
    """Get or create the configured RewardLedger singleton."""
    global _ledger
    if _ledger is None:
        from app.core.settings import settings
        _ledger = InMemoryRewardLedger() if settings.USE_MOCK_DB else FirestoreRewardLedger()
    return _ledger
