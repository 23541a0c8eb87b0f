"""
Complaint service - Business logic for complaint handling.

Flow for every staff action:
1. Read the complaint inside a store transaction
2. Ask the workflow engine for the partial update
3. Write status and its dependent fields together (or nothing)
4. Run side effects: reward ledger credit, notifications

Failures are surfaced to the caller. Nothing here retries; a caller that
re-issues a transition is safe because crediting is idempotent per complaint.
"""

from typing import Any, Dict, List, Optional, Union
import logging

from app.models.complaint import (
    Complaint,
    ComplaintCreate,
    ComplaintFilter,
    ComplaintStatus,
    DashboardSummary,
    RewardResult,
    TransitionExtra,
)
from app.models.staff import StaffAccount, StaffRole
from app.core.settings import settings
from app.services.assignment_resolver import AssignmentResolver, get_assignment_resolver
from app.services.complaint_store import ComplaintStore, get_complaint_store
from app.services.image_storage import ImageStorage, get_image_storage
from app.services.notification_service import NotificationService, get_notification_service
from app.services.reward_ledger import RewardLedger, get_reward_ledger
from app.services.status_workflow import (
    RewardSideEffect,
    StatusChanged,
    StatusWorkflowEngine,
    TransitionResult,
)
from app.services.workflow_profiles import WorkflowProfile, get_active_profile, get_profile

logger = logging.getLogger(__name__)


class ComplaintService:
    """
    Service for complaint operations used by the citizen, admin and department routes.
    """

    def __init__(
        self,
        store: Optional[ComplaintStore] = None,
        ledger: Optional[RewardLedger] = None,
        notifications: Optional[NotificationService] = None,
        images: Optional[ImageStorage] = None,
        resolver: Optional[AssignmentResolver] = None,
        profile: Optional[WorkflowProfile] = None,
    ):
        self.store = store or get_complaint_store()
        self.ledger = ledger or get_reward_ledger()
        self.notifications = notifications or get_notification_service()
        self._images = images
        self.resolver = resolver or get_assignment_resolver()
        self.profile = profile or get_active_profile()
        self.engine = StatusWorkflowEngine(self.resolver)

    @property
    def images(self) -> ImageStorage:
        if self._images is None:
            self._images = get_image_storage()
        return self._images

    def profile_for(self, complaint: Complaint) -> WorkflowProfile:
        """Complaints keep the profile they were created under."""
        if complaint.workflow_profile == self.profile.name:
            return self.profile
        return get_profile(complaint.workflow_profile)

    # ------------------------------------------------------------------ #
    # Citizen side
    # ------------------------------------------------------------------ #
    def create_complaint(self, data: ComplaintCreate) -> Complaint:
        """
        File a new complaint in the profile's initial status.

        Args:
            data: Validated complaint data from the citizen

        Returns:
            Complaint: The stored record with generated id and timestamps
        """
        initial = self.profile.initial_status
        fields: Dict[str, Any] = data.model_dump()
        fields.update({
            "status": initial,
            "workflow_profile": self.profile.name,
            "assigned_department": None,
            "staff_note": None,
            "status_history": [
                self.engine.create_status_history_entry(
                    from_status="",
                    to_status=initial.value,
                    changed_by=data.reporter_id,
                    role="reporter",
                    note="Complaint filed",
                )
            ],
        })

        complaint = self.store.create_complaint(fields)
        logger.info(f"✅ Complaint created: {complaint.id} ({complaint.category.value}) by {complaint.reporter_id}")
        return complaint

    def list_complaints(self, filters: Optional[ComplaintFilter] = None) -> List[Complaint]:
        return self.store.list_complaints(filters)

    def get_complaint(self, complaint_id: str) -> Complaint:
        return self.store.get_complaint(complaint_id)

    def upload_photo(self, data: bytes, content_type: Optional[str] = None) -> Dict[str, str]:
        reference = self.images.upload_image(data, content_type, folder="complaints")
        return {"photo_ref": reference, "url": self.images.image_url(reference)}

    def photo_url(self, reference: str) -> str:
        return self.images.image_url(reference)

    def get_balance(self, user_id: str) -> int:
        return self.ledger.get_balance(user_id)

    # ------------------------------------------------------------------ #
    # Staff side
    # ------------------------------------------------------------------ #
    def list_for_actor(
        self,
        actor: StaffAccount,
        status: Optional[Union[ComplaintStatus, str]] = None,
    ) -> List[Complaint]:
        """Admins see every complaint; department staff see their own department's."""
        filters = ComplaintFilter(status=ComplaintStatus(status) if status else None)
        if actor.role == StaffRole.DEPARTMENT:
            filters.assigned_department = actor.department_name
        return self.store.list_complaints(filters)

    def reload(self, actor: StaffAccount) -> List[Complaint]:
        """Full-list reload run on every poll tick or pushed event."""
        return self.list_for_actor(actor)

    def dashboard_summary(self, actor: StaffAccount) -> DashboardSummary:
        complaints = self.list_for_actor(actor)
        counts = {status.value: 0 for status in self.profile.statuses}
        for complaint in complaints:
            counts[complaint.status.value] = counts.get(complaint.status.value, 0) + 1
        return DashboardSummary(
            total=len(complaints),
            by_status=counts,
            department=actor.department_name,
            poll_interval_seconds=settings.POLL_INTERVAL_SECONDS,
        )

    def suggest_department(self, complaint_id: str) -> Dict[str, Any]:
        complaint = self.store.get_complaint(complaint_id)
        profile = self.profile_for(complaint)
        return {
            "complaint_id": complaint.id,
            "category": complaint.category.value,
            "suggested_department": self.resolver.suggest(complaint.category, profile),
            "departments": self.resolver.departments(profile),
        }

    def transition(
        self,
        complaint_id: str,
        actor: StaffAccount,
        target_status: Union[ComplaintStatus, str],
        extra: Optional[TransitionExtra] = None,
    ) -> Complaint:
        """
        Move a complaint to target_status on behalf of actor.

        Raises:
            NotFound: Unknown complaint id
            Forbidden: Department mismatch
            IllegalTransition: Target not reachable under the complaint's profile
            StoreUnavailable: Transient backend failure; safe to re-issue
        """
        return self._run(complaint_id, actor, lambda current: target_status, extra)

    def update_note(self, complaint_id: str, actor: StaffAccount, note: str) -> Complaint:
        """Overwrite the staff note without changing status."""
        return self._run(
            complaint_id,
            actor,
            lambda current: current.status,
            TransitionExtra(note=note),
        )

    def attach_proof(
        self,
        complaint_id: str,
        actor: StaffAccount,
        data: bytes,
        content_type: Optional[str] = None,
        note: Optional[str] = None,
        complete: bool = True,
    ) -> Complaint:
        """
        Upload a resolution photo and, by default, move the complaint to its terminal status.

        Scope and transition legality are checked before anything is uploaded.
        """
        complaint = self.store.get_complaint(complaint_id)
        self.engine.check_scope(complaint, actor)
        profile = self.profile_for(complaint)
        if complete and complaint.status != profile.terminal_status:
            self.engine.require_transition(profile, complaint.status, actor.role, profile.terminal_status)

        reference = self.images.upload_image(data, content_type, folder="proofs")
        extra = TransitionExtra(proof_photo_ref=reference, note=note)
        if complete:
            return self.transition(complaint_id, actor, profile.terminal_status, extra)
        return self._run(complaint_id, actor, lambda current: current.status, extra)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _run(self, complaint_id: str, actor: StaffAccount, target_for, extra: Optional[TransitionExtra]) -> Complaint:
        outcome: Dict[str, Any] = {}

        def mutate(current: Complaint) -> Optional[Dict[str, Any]]:
            # May run more than once when the store retries a contended transaction
            profile = self.profile_for(current)
            result = self.engine.apply(profile, current, actor, target_for(current), extra)
            outcome["result"] = result
            outcome["profile"] = profile
            return result.changes or None

        updated = self.store.transactional_update(complaint_id, mutate)
        result: TransitionResult = outcome["result"]
        profile: WorkflowProfile = outcome["profile"]

        for effect in result.side_effects:
            if isinstance(effect, StatusChanged):
                logger.info(
                    f"✅ {actor.role.value} {actor.id} moved complaint {complaint_id} "
                    f"{effect.from_status} → {effect.to_status}"
                )
                self.notifications.emit(
                    effect.event,
                    complaint_id,
                    from_status=effect.from_status,
                    to_status=effect.to_status,
                    changed_by=effect.changed_by,
                    role=effect.role,
                    assigned_department=effect.assigned_department,
                )
            elif isinstance(effect, RewardSideEffect):
                self._credit(effect)

        if result.no_op and updated.status == profile.terminal_status:
            # Re-applied terminal status: finish a credit an earlier attempt may not have written
            self._settle_reward(profile, updated)

        return updated

    def _settle_reward(self, profile: WorkflowProfile, complaint: Complaint) -> Optional[RewardResult]:
        if profile.reward_points <= 0:
            return None
        return self._credit(
            RewardSideEffect(
                user_id=complaint.reporter_id,
                complaint_id=complaint.id,
                amount=profile.reward_points,
            )
        )

    def _credit(self, effect: RewardSideEffect) -> RewardResult:
        result = self.ledger.credit(effect.user_id, effect.complaint_id, effect.amount)
        if result.credited:
            self.notifications.emit(
                effect.event,
                effect.complaint_id,
                user_id=effect.user_id,
                points=effect.amount,
                balance=result.balance,
            )
        return result


_complaint_service: Optional[ComplaintService] = None


def get_complaint_service() -> ComplaintService:
    """Get or create ComplaintService singleton."""
    global _complaint_service
    if _complaint_service is None:
        _complaint_service = ComplaintService()
    return _complaint_service
