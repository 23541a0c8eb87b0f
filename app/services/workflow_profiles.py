"""
Workflow profiles - named, versioned transition tables.

A profile decides which status changes are legal, which role may perform
each one, which transitions write the assigned department and which one
earns the reporter a reward. Two profiles ship:

- four_party: admin verifies and assigns, the department receives,
  works (inprogress ⇄ incomplete) and completes. Completion credits 50 points.
- three_party: admin assigns directly, the department works and resolves.
  No reward, notification only.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

from app.core.settings import settings
from app.models.complaint import Category, ComplaintStatus
from app.models.staff import StaffRole


@dataclass(frozen=True)
class TransitionRule:
    from_status: ComplaintStatus
    to_status: ComplaintStatus
    role: StaffRole
    sets_department: bool = False
    emits_reward: bool = False


@dataclass(frozen=True)
class WorkflowProfile:
    name: str
    version: int
    initial_status: ComplaintStatus
    terminal_status: ComplaintStatus
    assigned_statuses: FrozenSet[ComplaintStatus]
    rules: Tuple[TransitionRule, ...]
    category_departments: Dict[Category, str] = field(default_factory=dict)
    default_department: str = ""
    reward_points: int = 0

    @property
    def statuses(self) -> List[ComplaintStatus]:
        """Every status reachable in this profile, initial first."""
        seen = [self.initial_status]
        for rule in self.rules:
            for status in (rule.from_status, rule.to_status):
                if status not in seen:
                    seen.append(status)
        return seen

    @property
    def departments(self) -> List[str]:
        names = []
        for name in list(self.category_departments.values()) + [self.default_department]:
            if name and name not in names:
                names.append(name)
        return names

    def find_rule(
        self,
        from_status: ComplaintStatus,
        to_status: ComplaintStatus,
        role: Optional[StaffRole] = None,
    ) -> Optional[TransitionRule]:
        for rule in self.rules:
            if rule.from_status == from_status and rule.to_status == to_status:
                if role is None or rule.role == role:
                    return rule
        return None

    def rules_from(self, from_status: ComplaintStatus) -> List[TransitionRule]:
        return [rule for rule in self.rules if rule.from_status == from_status]


S = ComplaintStatus
ADMIN = StaffRole.ADMIN
DEPT = StaffRole.DEPARTMENT


FOUR_PARTY = WorkflowProfile(
    name="four_party",
    version=1,
    initial_status=S.PENDING,
    terminal_status=S.COMPLETED,
    assigned_statuses=frozenset({
        S.ASSIGNED, S.RECEIVED_BY_DEPT, S.INPROGRESS, S.INCOMPLETE, S.COMPLETED,
    }),
    rules=(
        TransitionRule(S.PENDING, S.VERIFIED, ADMIN),
        TransitionRule(S.VERIFIED, S.ASSIGNED, ADMIN, sets_department=True),
        TransitionRule(S.ASSIGNED, S.RECEIVED_BY_DEPT, DEPT),
        TransitionRule(S.ASSIGNED, S.INPROGRESS, DEPT),
        TransitionRule(S.RECEIVED_BY_DEPT, S.INPROGRESS, DEPT),
        TransitionRule(S.INPROGRESS, S.INCOMPLETE, DEPT),
        TransitionRule(S.INCOMPLETE, S.INPROGRESS, DEPT),
        TransitionRule(S.INPROGRESS, S.COMPLETED, DEPT, emits_reward=True),
    ),
    category_departments={
        Category.GARBAGE: "Municipality",
        Category.WASTE: "Municipality",
        Category.POTHOLE: "Engineering",
        Category.ROAD: "Engineering",
        Category.STREETLIGHT: "Electricity",
        Category.ELECTRIC: "Electricity",
    },
    default_department="Municipality",
    reward_points=settings.REWARD_POINTS,
)


THREE_PARTY = WorkflowProfile(
    name="three_party",
    version=1,
    initial_status=S.PENDING,
    terminal_status=S.RESOLVED,
    assigned_statuses=frozenset({S.ASSIGNED, S.IN_PROGRESS, S.RESOLVED}),
    rules=(
        TransitionRule(S.PENDING, S.ASSIGNED, ADMIN, sets_department=True),
        TransitionRule(S.ASSIGNED, S.IN_PROGRESS, DEPT),
        TransitionRule(S.IN_PROGRESS, S.RESOLVED, DEPT),
    ),
    category_departments={
        Category.GARBAGE: "Waste",
        Category.WASTE: "Waste",
        Category.POTHOLE: "Road",
        Category.ROAD: "Road",
        Category.STREETLIGHT: "Electric",
        Category.ELECTRIC: "Electric",
    },
    default_department="Waste",
    reward_points=0,
)


PROFILES: Dict[str, WorkflowProfile] = {
    FOUR_PARTY.name: FOUR_PARTY,
    THREE_PARTY.name: THREE_PARTY,
}


def get_profile(name: str) -> WorkflowProfile:
    try:
        return PROFILES[name]
    except KeyError:
        raise ValueError(f"Unknown workflow profile: {name}. Available: {sorted(PROFILES)}")


def get_active_profile() -> WorkflowProfile:
    return get_profile(settings.WORKFLOW_PROFILE)
