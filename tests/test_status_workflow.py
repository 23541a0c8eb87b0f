"""
Workflow engine tests: transition table, role scoping, no-op and field updates,
and randomized walks that check the department invariant after every step.
"""

import random

import pytest

from app.core.exceptions import Forbidden, IllegalTransition
from app.models.complaint import Category, Complaint, ComplaintStatus, TransitionExtra
from app.models.staff import StaffRole
from app.services.status_workflow import RewardSideEffect, StatusChanged, StatusWorkflowEngine
from app.services.workflow_profiles import FOUR_PARTY, PROFILES, THREE_PARTY, get_profile

from conftest import make_department_staff

S = ComplaintStatus


def new_complaint(category=Category.POTHOLE, profile=FOUR_PARTY, **fields) -> Complaint:
    data = {
        "id": "c-1",
        "category": category,
        "title": "Pothole",
        "reporter_id": "citizen-1",
        "status": profile.initial_status,
        "workflow_profile": profile.name,
    }
    data.update(fields)
    return Complaint(**data)


@pytest.fixture
def engine():
    return StatusWorkflowEngine()


class TestCanTransition:
    @pytest.mark.parametrize("current,role,target", [
        (S.PENDING, StaffRole.ADMIN, S.VERIFIED),
        (S.VERIFIED, StaffRole.ADMIN, S.ASSIGNED),
        (S.ASSIGNED, StaffRole.DEPARTMENT, S.RECEIVED_BY_DEPT),
        (S.ASSIGNED, StaffRole.DEPARTMENT, S.INPROGRESS),
        (S.RECEIVED_BY_DEPT, StaffRole.DEPARTMENT, S.INPROGRESS),
        (S.INPROGRESS, StaffRole.DEPARTMENT, S.INCOMPLETE),
        (S.INCOMPLETE, StaffRole.DEPARTMENT, S.INPROGRESS),
        (S.INPROGRESS, StaffRole.DEPARTMENT, S.COMPLETED),
    ])
    def test_four_party_allowed(self, current, role, target):
        assert StatusWorkflowEngine.can_transition(FOUR_PARTY, current, role, target)

    @pytest.mark.parametrize("current,role,target", [
        (S.PENDING, StaffRole.ADMIN, S.COMPLETED),
        (S.PENDING, StaffRole.ADMIN, S.ASSIGNED),
        (S.PENDING, StaffRole.DEPARTMENT, S.VERIFIED),
        (S.VERIFIED, StaffRole.DEPARTMENT, S.ASSIGNED),
        (S.ASSIGNED, StaffRole.ADMIN, S.INPROGRESS),
        (S.INCOMPLETE, StaffRole.DEPARTMENT, S.COMPLETED),
        (S.COMPLETED, StaffRole.DEPARTMENT, S.INPROGRESS),
        (S.VERIFIED, StaffRole.ADMIN, S.PENDING),
        (S.INPROGRESS, StaffRole.DEPARTMENT, S.RESOLVED),
    ])
    def test_four_party_rejected(self, current, role, target):
        assert not StatusWorkflowEngine.can_transition(FOUR_PARTY, current, role, target)

    def test_three_party_table(self):
        assert StatusWorkflowEngine.can_transition(THREE_PARTY, "pending", "admin", "assigned")
        assert StatusWorkflowEngine.can_transition(THREE_PARTY, "assigned", "department", "in_progress")
        assert StatusWorkflowEngine.can_transition(THREE_PARTY, "in_progress", "department", "resolved")
        assert not StatusWorkflowEngine.can_transition(THREE_PARTY, "pending", "admin", "verified")
        assert not StatusWorkflowEngine.can_transition(THREE_PARTY, "assigned", "department", "inprogress")

    def test_same_status_is_not_a_transition(self):
        assert not StatusWorkflowEngine.can_transition(FOUR_PARTY, "pending", "admin", "pending")

    def test_unknown_values_are_rejected(self):
        assert not StatusWorkflowEngine.can_transition(FOUR_PARTY, "pending", "citizen", "verified")
        assert not StatusWorkflowEngine.can_transition(FOUR_PARTY, "archived", "admin", "verified")

    def test_allowed_transitions(self):
        assert StatusWorkflowEngine.get_allowed_transitions(FOUR_PARTY, "assigned", "department") == [
            "received_by_dept", "inprogress",
        ]
        assert StatusWorkflowEngine.get_allowed_transitions(FOUR_PARTY, "assigned", "admin") == []
        assert StatusWorkflowEngine.get_allowed_transitions(FOUR_PARTY, "completed") == []


class TestApply:
    def test_verify_then_assign_with_explicit_department(self, engine, admin):
        complaint = new_complaint()
        verified = engine.apply(FOUR_PARTY, complaint, admin, S.VERIFIED)
        assert verified.complaint.status == S.VERIFIED
        assert verified.complaint.assigned_department is None

        assigned = engine.apply(
            FOUR_PARTY, verified.complaint, admin, S.ASSIGNED, TransitionExtra(department="Municipality"),
        )
        assert assigned.complaint.status == S.ASSIGNED
        assert assigned.complaint.assigned_department == "Municipality"
        assert assigned.changes["assigned_department"] == "Municipality"
        assert [e.to_status for e in assigned.side_effects if isinstance(e, StatusChanged)] == ["assigned"]

    def test_assign_defaults_to_suggestion(self, engine, admin):
        complaint = new_complaint(category=Category.STREETLIGHT, status=S.VERIFIED)
        result = engine.apply(FOUR_PARTY, complaint, admin, S.ASSIGNED)
        assert result.complaint.assigned_department == "Electricity"

    def test_illegal_jump_raises_and_leaves_complaint(self, engine, admin):
        complaint = new_complaint()
        with pytest.raises(IllegalTransition):
            engine.apply(FOUR_PARTY, complaint, admin, S.COMPLETED)
        assert complaint.status == S.PENDING

    def test_admin_cannot_do_department_step(self, engine, admin):
        complaint = new_complaint(status=S.ASSIGNED, assigned_department="Engineering")
        with pytest.raises(IllegalTransition):
            engine.apply(FOUR_PARTY, complaint, admin, S.INPROGRESS)

    def test_department_mismatch_is_forbidden(self, engine, municipality):
        complaint = new_complaint(status=S.ASSIGNED, assigned_department="Engineering")
        with pytest.raises(Forbidden):
            engine.apply(FOUR_PARTY, complaint, municipality, S.INPROGRESS)

    def test_department_mismatch_wins_over_illegal_target(self, engine, municipality):
        complaint = new_complaint(status=S.ASSIGNED, assigned_department="Engineering")
        with pytest.raises(Forbidden):
            engine.apply(FOUR_PARTY, complaint, municipality, S.COMPLETED)

    def test_department_mismatch_wins_over_unknown_status(self, engine, municipality):
        complaint = new_complaint(status=S.ASSIGNED, assigned_department="Engineering")
        with pytest.raises(Forbidden):
            engine.apply(FOUR_PARTY, complaint, municipality, "archived")

    def test_unknown_status_is_illegal(self, engine, engineering):
        complaint = new_complaint(status=S.ASSIGNED, assigned_department="Engineering")
        with pytest.raises(IllegalTransition):
            engine.apply(FOUR_PARTY, complaint, engineering, "archived")

    def test_require_transition_lists_allowed_targets(self):
        with pytest.raises(IllegalTransition) as exc_info:
            StatusWorkflowEngine.require_transition(FOUR_PARTY, S.RECEIVED_BY_DEPT, StaffRole.DEPARTMENT, S.COMPLETED)
        assert exc_info.value.details["allowed"] == ["inprogress"]
        StatusWorkflowEngine.require_transition(FOUR_PARTY, S.INPROGRESS, StaffRole.DEPARTMENT, S.COMPLETED)

    def test_department_cannot_touch_unassigned_complaint(self, engine, municipality):
        with pytest.raises(Forbidden):
            engine.apply(FOUR_PARTY, new_complaint(), municipality, S.VERIFIED)

    def test_completion_emits_reward(self, engine, engineering):
        complaint = new_complaint(status=S.INPROGRESS, assigned_department="Engineering")
        result = engine.apply(FOUR_PARTY, complaint, engineering, S.COMPLETED)
        rewards = [e for e in result.side_effects if isinstance(e, RewardSideEffect)]
        assert rewards == [RewardSideEffect(user_id="citizen-1", complaint_id="c-1", amount=50)]

    def test_three_party_resolution_has_no_reward(self, engine):
        road = make_department_staff("Road")
        complaint = new_complaint(profile=THREE_PARTY, status=S.IN_PROGRESS, assigned_department="Road")
        result = engine.apply(THREE_PARTY, complaint, road, S.RESOLVED)
        assert result.complaint.status == S.RESOLVED
        assert not [e for e in result.side_effects if isinstance(e, RewardSideEffect)]

    def test_same_status_without_fields_is_no_op(self, engine, engineering):
        complaint = new_complaint(status=S.COMPLETED, assigned_department="Engineering")
        result = engine.apply(FOUR_PARTY, complaint, engineering, S.COMPLETED)
        assert result.no_op
        assert result.changes == {}
        assert result.side_effects == []
        assert result.complaint is complaint

    def test_note_update_skips_transition_check(self, engine, engineering):
        complaint = new_complaint(status=S.COMPLETED, assigned_department="Engineering")
        result = engine.apply(
            FOUR_PARTY, complaint, engineering, S.COMPLETED, TransitionExtra(note="Crew revisited"),
        )
        assert not result.no_op
        assert result.complaint.staff_note == "Crew revisited"
        assert result.complaint.status == S.COMPLETED
        assert set(result.changes) == {"staff_note", "updated_at"}
        assert result.side_effects == []

    def test_admin_reassigns_assigned_complaint(self, engine, admin):
        complaint = new_complaint(status=S.ASSIGNED, assigned_department="Municipality")
        result = engine.apply(
            FOUR_PARTY, complaint, admin, S.ASSIGNED, TransitionExtra(department="Engineering"),
        )
        assert result.complaint.assigned_department == "Engineering"
        assert result.complaint.status_history[-1]["note"] == "Reassigned to Engineering"

    def test_department_cannot_reassign(self, engine, municipality):
        complaint = new_complaint(status=S.ASSIGNED, assigned_department="Municipality")
        with pytest.raises(Forbidden):
            engine.apply(
                FOUR_PARTY, complaint, municipality, S.ASSIGNED, TransitionExtra(department="Engineering"),
            )

    def test_department_on_pending_complaint_is_illegal(self, engine, admin):
        with pytest.raises(IllegalTransition):
            engine.apply(FOUR_PARTY, new_complaint(), admin, S.PENDING, TransitionExtra(department="Engineering"))

    def test_department_on_non_assign_step_is_illegal(self, engine, admin):
        with pytest.raises(IllegalTransition):
            engine.apply(FOUR_PARTY, new_complaint(), admin, S.VERIFIED, TransitionExtra(department="Engineering"))

    def test_status_from_other_profile_is_illegal(self, engine, admin):
        complaint = new_complaint(status=S.VERIFIED)
        with pytest.raises(IllegalTransition):
            engine.apply(THREE_PARTY, complaint, admin, S.ASSIGNED)

    def test_history_records_actor(self, engine, admin):
        result = engine.apply(FOUR_PARTY, new_complaint(), admin, S.VERIFIED, TransitionExtra(note="Photo is clear"))
        entry = result.complaint.status_history[-1]
        assert entry["from"] == "pending"
        assert entry["to"] == "verified"
        assert entry["changed_by"] == "admin-1"
        assert entry["role"] == "admin"
        assert entry["note"] == "Photo is clear"

    def test_updated_at_moves_on_every_mutation(self, engine, admin):
        complaint = new_complaint()
        result = engine.apply(FOUR_PARTY, complaint, admin, S.VERIFIED)
        assert result.complaint.updated_at >= complaint.updated_at
        assert result.changes["updated_at"] == result.complaint.updated_at


def actor_for(rule, complaint, admin):
    if rule.role == StaffRole.ADMIN:
        return admin
    return make_department_staff(complaint.assigned_department)


@pytest.mark.parametrize("profile_name", sorted(PROFILES))
@pytest.mark.parametrize("seed", range(20))
def test_random_walk_keeps_invariants(profile_name, seed, admin):
    profile = get_profile(profile_name)
    engine = StatusWorkflowEngine()
    rng = random.Random(seed)
    complaint = new_complaint(category=rng.choice(list(Category)), profile=profile)
    statuses = set(profile.statuses)

    for _ in range(30):
        rules = profile.rules_from(complaint.status)
        if not rules:
            assert complaint.status == profile.terminal_status
            break

        # A random illegal request must fail and change nothing
        bogus = rng.choice([s for s in ComplaintStatus if s != complaint.status])
        if not any(r.to_status == bogus for r in rules):
            before = complaint.model_copy()
            with pytest.raises((IllegalTransition, Forbidden)):
                engine.apply(profile, complaint, admin, bogus)
            assert complaint == before

        rule = rng.choice(rules)
        extra = TransitionExtra(department=rng.choice(profile.departments)) if rule.sets_department else None
        result = engine.apply(profile, complaint, actor_for(rule, complaint, admin), rule.to_status, extra)
        complaint = result.complaint

        assert complaint.status in statuses
        has_department = complaint.assigned_department is not None
        assert has_department == (complaint.status in profile.assigned_statuses)
