"""
Status Workflow Engine - role-scoped state machine for complaints.

DESIGN PRINCIPLES:
- Legal moves come from the workflow profile, never from the caller
- Only forward moves, except the explicit inprogress ⇄ incomplete cycle
- Department staff only touch complaints assigned to their department
- Pure: returns the partial update and side effects, the caller persists them
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
import logging

from app.core.exceptions import Forbidden, IllegalTransition
from app.models.complaint import (
    Complaint,
    ComplaintStatus,
    StatusHistoryEntry,
    TransitionExtra,
    utcnow,
)
from app.models.staff import StaffAccount, StaffRole
from app.services.assignment_resolver import AssignmentResolver
from app.services.workflow_profiles import WorkflowProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusChanged:
    complaint_id: str
    from_status: str
    to_status: str
    changed_by: str
    role: str
    assigned_department: Optional[str] = None
    event: str = "statusChanged"


@dataclass(frozen=True)
class RewardSideEffect:
    user_id: str
    complaint_id: str
    amount: int
    event: str = "rewardCredited"


SideEffect = Union[StatusChanged, RewardSideEffect]


@dataclass
class TransitionResult:
    complaint: Complaint
    changes: Dict[str, Any] = field(default_factory=dict)
    side_effects: List[SideEffect] = field(default_factory=list)
    no_op: bool = False


def _status(value: Union[ComplaintStatus, str]) -> ComplaintStatus:
    try:
        return ComplaintStatus(value)
    except ValueError:
        raise IllegalTransition(f"Unknown status: {value}")


class StatusWorkflowEngine:
    """
    Decides whether a transition is legal and what it writes.

    Rules:
    - can_transition is pure and only looks at the profile table
    - Department mismatch is Forbidden, an unreachable status is IllegalTransition
    - Re-applying the current status with no extra fields is a no-op
    - Re-applying the current status with extra fields is a field update
    """

    def __init__(self, resolver: Optional[AssignmentResolver] = None):
        self.resolver = resolver or AssignmentResolver()

    @staticmethod
    def can_transition(
        profile: WorkflowProfile,
        current_status: Union[ComplaintStatus, str],
        actor_role: Union[StaffRole, str],
        target_status: Union[ComplaintStatus, str],
    ) -> bool:
        """
        Check if actor_role may move a complaint from current_status to target_status.

        Same status is not a transition and returns False.
        """
        try:
            current = ComplaintStatus(current_status)
            target = ComplaintStatus(target_status)
            role = StaffRole(actor_role)
        except ValueError:
            return False

        if current == target:
            return False
        return profile.find_rule(current, target, role) is not None

    @staticmethod
    def get_allowed_transitions(
        profile: WorkflowProfile,
        current_status: Union[ComplaintStatus, str],
        actor_role: Optional[Union[StaffRole, str]] = None,
    ) -> List[str]:
        """List the statuses reachable in one step, optionally for a single role."""
        try:
            current = ComplaintStatus(current_status)
            role = StaffRole(actor_role) if actor_role is not None else None
        except ValueError:
            return []

        return [
            rule.to_status.value
            for rule in profile.rules_from(current)
            if role is None or rule.role == role
        ]

    @staticmethod
    def create_status_history_entry(
        from_status: str,
        to_status: str,
        changed_by: str,
        role: Optional[str] = None,
        note: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> Dict:
        """Create a status history entry for the audit trail."""
        entry = StatusHistoryEntry(
            from_status=from_status,
            to_status=to_status,
            changed_by=changed_by,
            role=role,
            timestamp=timestamp or utcnow(),
            note=note or "",
        )
        return entry.model_dump(by_alias=True)

    @staticmethod
    def check_scope(complaint: Complaint, actor: StaffAccount) -> None:
        """Department staff may only act on complaints assigned to their own department."""
        if actor.role != StaffRole.DEPARTMENT:
            return
        if complaint.assigned_department != actor.department_name:
            raise Forbidden(
                f"Complaint {complaint.id} is not assigned to {actor.department_name}",
                details={
                    "complaint_id": complaint.id,
                    "assigned_department": complaint.assigned_department,
                    "actor_department": actor.department_name,
                },
            )

    @classmethod
    def require_transition(
        cls,
        profile: WorkflowProfile,
        current_status: ComplaintStatus,
        actor_role: StaffRole,
        target_status: ComplaintStatus,
    ) -> None:
        """Raise IllegalTransition unless can_transition holds."""
        if cls.can_transition(profile, current_status, actor_role, target_status):
            return
        current = ComplaintStatus(current_status).value
        target = ComplaintStatus(target_status).value
        role = StaffRole(actor_role).value
        allowed = cls.get_allowed_transitions(profile, current, role)
        raise IllegalTransition(
            f"Invalid status transition: {current} → {target} for role {role}. "
            f"Allowed transitions from {current}: {allowed}",
            details={"from": current, "to": target, "allowed": allowed},
        )

    def apply(
        self,
        profile: WorkflowProfile,
        complaint: Complaint,
        actor: StaffAccount,
        target_status: Union[ComplaintStatus, str],
        extra: Optional[TransitionExtra] = None,
        now: Optional[datetime] = None,
    ) -> TransitionResult:
        """
        Validate the requested action and compute its effects.

        Args:
            profile: Active workflow profile for this complaint
            complaint: Current complaint record
            actor: Staff member performing the action
            target_status: Requested status
            extra: Optional note, department and proof photo reference
            now: Timestamp to stamp on the update (defaults to current UTC time)

        Returns:
            TransitionResult with the updated complaint, the partial update
            to persist and the side effects to run afterwards

        Raises:
            Forbidden: Department actor outside its department, or a department
                actor trying to change the assignment
            IllegalTransition: Target not reachable under the profile
        """
        extra = extra or TransitionExtra()
        now = now or utcnow()

        self.check_scope(complaint, actor)
        current = _status(complaint.status)
        target = _status(target_status)

        if current not in profile.statuses:
            raise IllegalTransition(
                f"Status {current.value} is not part of workflow profile {profile.name}"
            )

        if current == target:
            if extra.is_empty():
                return TransitionResult(complaint=complaint, no_op=True)
            return self._update_fields(profile, complaint, actor, extra, now)

        if target not in profile.statuses:
            raise IllegalTransition(
                f"Status {target.value} is not part of workflow profile {profile.name}"
            )

        self.require_transition(profile, current, actor.role, target)

        rule = profile.find_rule(current, target, actor.role)

        if extra.department is not None and not rule.sets_department:
            raise IllegalTransition(
                f"Department can only be set when assigning, not on {current.value} → {target.value}"
            )

        changes: Dict[str, Any] = {"status": target.value, "updated_at": now}
        department = complaint.assigned_department

        if rule.sets_department:
            department = extra.department or self.resolver.suggest(complaint.category, profile)
            changes["assigned_department"] = department

        if extra.note is not None:
            changes["staff_note"] = extra.note
        if extra.proof_photo_ref is not None:
            changes["proof_photo_ref"] = extra.proof_photo_ref

        history_entry = self.create_status_history_entry(
            from_status=current.value,
            to_status=target.value,
            changed_by=actor.id,
            role=actor.role.value,
            note=extra.note,
            timestamp=now,
        )
        changes["status_history"] = list(complaint.status_history) + [history_entry]

        side_effects: List[SideEffect] = [
            StatusChanged(
                complaint_id=complaint.id,
                from_status=current.value,
                to_status=target.value,
                changed_by=actor.id,
                role=actor.role.value,
                assigned_department=department,
            )
        ]
        if rule.emits_reward and profile.reward_points > 0:
            side_effects.append(
                RewardSideEffect(
                    user_id=complaint.reporter_id,
                    complaint_id=complaint.id,
                    amount=profile.reward_points,
                )
            )

        logger.debug(f"Transition {complaint.id}: {current.value} → {target.value} by {actor.id}")
        return TransitionResult(
            complaint=complaint.with_changes(changes),
            changes=changes,
            side_effects=side_effects,
        )

    def _update_fields(
        self,
        profile: WorkflowProfile,
        complaint: Complaint,
        actor: StaffAccount,
        extra: TransitionExtra,
        now: datetime,
    ) -> TransitionResult:
        """Field-update-only action on the current status (notes, proof, re-assignment)."""
        changes: Dict[str, Any] = {}

        if extra.department is not None and extra.department != complaint.assigned_department:
            if actor.role != StaffRole.ADMIN:
                raise Forbidden("Only admins can change the assigned department")
            if complaint.status not in profile.assigned_statuses or complaint.status == profile.terminal_status:
                raise IllegalTransition(
                    f"Cannot assign a department while complaint is {complaint.status.value}"
                )
            changes["assigned_department"] = extra.department
            changes["status_history"] = list(complaint.status_history) + [
                self.create_status_history_entry(
                    from_status=complaint.status.value,
                    to_status=complaint.status.value,
                    changed_by=actor.id,
                    role=actor.role.value,
                    note=f"Reassigned to {extra.department}",
                    timestamp=now,
                )
            ]

        if extra.note is not None and extra.note != complaint.staff_note:
            changes["staff_note"] = extra.note
        if extra.proof_photo_ref is not None and extra.proof_photo_ref != complaint.proof_photo_ref:
            changes["proof_photo_ref"] = extra.proof_photo_ref

        if not changes:
            return TransitionResult(complaint=complaint, no_op=True)

        changes["updated_at"] = now
        return TransitionResult(
            complaint=complaint.with_changes(changes),
            changes=changes,
        )
