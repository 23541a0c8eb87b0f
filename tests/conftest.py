"""
Shared pytest fixtures for the Civic Issue Portal test suite.

Everything runs against the in-memory store, ledger and image storage, so no
Firebase credentials are needed.
"""

import os

os.environ["USE_MOCK_DB"] = "true"
os.environ["WORKFLOW_PROFILE"] = "four_party"
os.environ["REWARD_POINTS"] = "50"
os.environ.pop("STAFF_SEED_PATH", None)

import pytest
from fastapi.testclient import TestClient

from app.models.complaint import Category, ComplaintCreate
from app.models.staff import StaffAccount, StaffRole
from app.services.complaint_service import ComplaintService, get_complaint_service
from app.services.complaint_store import InMemoryComplaintStore, get_complaint_store
from app.services.image_storage import InMemoryImageStorage
from app.services.notification_service import NotificationService, get_notification_service
from app.services.reward_ledger import InMemoryRewardLedger
from app.services.staff_service import InMemoryStaffDirectory, get_staff_directory
from app.services.workflow_profiles import FOUR_PARTY, THREE_PARTY


def make_department_staff(department: str, staff_id: str = None) -> StaffAccount:
    return StaffAccount(
        id=staff_id or f"dept-{department.lower()}",
        full_name=f"{department} Officer",
        role=StaffRole.DEPARTMENT,
        department_name=department,
    )


def make_complaint_data(category=Category.POTHOLE, reporter_id="citizen-1", **overrides) -> ComplaintCreate:
    fields = {
        "category": category,
        "title": f"{category.value if hasattr(category, 'value') else category} near the market",
        "description": "Reported from the citizen app",
        "location": "Station Road",
        "latitude": 18.52,
        "longitude": 73.85,
        "reporter_id": reporter_id,
    }
    fields.update(overrides)
    return ComplaintCreate(**fields)


@pytest.fixture
def admin():
    return StaffAccount(id="admin-1", full_name="Asha Kulkarni", role=StaffRole.ADMIN)


@pytest.fixture
def municipality():
    return make_department_staff("Municipality")


@pytest.fixture
def engineering():
    return make_department_staff("Engineering")


@pytest.fixture
def electricity():
    return make_department_staff("Electricity")


@pytest.fixture
def store():
    return InMemoryComplaintStore()


@pytest.fixture
def ledger():
    return InMemoryRewardLedger()


@pytest.fixture
def notifications():
    return NotificationService(buffer_size=100)


@pytest.fixture
def images():
    return InMemoryImageStorage()


@pytest.fixture
def service(store, ledger, notifications, images):
    return ComplaintService(
        store=store,
        ledger=ledger,
        notifications=notifications,
        images=images,
        profile=FOUR_PARTY,
    )


@pytest.fixture
def three_party_service(ledger, notifications, images):
    return ComplaintService(
        store=InMemoryComplaintStore(),
        ledger=ledger,
        notifications=notifications,
        images=images,
        profile=THREE_PARTY,
    )


@pytest.fixture
def directory(admin, municipality, engineering, electricity):
    return InMemoryStaffDirectory([admin, municipality, engineering, electricity])


@pytest.fixture
def client(service, store, notifications, directory):
    """TestClient wired to the per-test in-memory services."""
    from app.main import app

    app.dependency_overrides[get_complaint_service] = lambda: service
    app.dependency_overrides[get_complaint_store] = lambda: store
    app.dependency_overrides[get_notification_service] = lambda: notifications
    app.dependency_overrides[get_staff_directory] = lambda: directory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(admin):
    return {"X-Staff-Id": admin.id}


@pytest.fixture
def municipality_headers(municipality):
    return {"X-Staff-Id": municipality.id}


@pytest.fixture
def engineering_headers(engineering):
    return {"X-Staff-Id": engineering.id}
