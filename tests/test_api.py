"""
HTTP tests for the citizen, admin, department and auth endpoints.
"""

from conftest import make_complaint_data


def file_complaint(client, **overrides):
    body = make_complaint_data(**overrides).model_dump(mode="json")
    response = client.post("/complaints", json=body)
    assert response.status_code == 201
    return response.json()


def move(client, headers, complaint_id, target, role="admin", **extra):
    return client.patch(
        f"/{role}/complaints/{complaint_id}/status",
        json={"status": target, **extra},
        headers=headers,
    )


def drive_to_inprogress(client, admin_headers, dept_headers, department="Engineering"):
    complaint = file_complaint(client)
    assert move(client, admin_headers, complaint["id"], "verified").status_code == 200
    assert move(client, admin_headers, complaint["id"], "assigned", department=department).status_code == 200
    assert move(client, dept_headers, complaint["id"], "inprogress", role="department").status_code == 200
    return complaint["id"]


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/health/db").json()["connected"] is True


def test_submit_and_fetch(client):
    created = file_complaint(client)

    assert created["status"] == "pending"
    assert created["assigned_department"] is None
    fetched = client.get(f"/complaints/{created['id']}").json()
    assert fetched["id"] == created["id"]
    assert [c["id"] for c in client.get("/complaints", params={"reporter_id": "citizen-1"}).json()] == [created["id"]]


def test_submit_rejects_bad_category(client):
    body = make_complaint_data().model_dump(mode="json")
    body["category"] = "volcano"

    assert client.post("/complaints", json=body).status_code == 422


def test_unknown_complaint_is_404(client, admin_headers):
    assert client.get("/complaints/missing").status_code == 404
    response = move(client, admin_headers, "missing", "verified")
    assert response.status_code == 404
    assert response.json()["error_code"] == "NotFound"


def test_full_flow_credits_reporter(client, admin_headers, engineering_headers):
    complaint_id = drive_to_inprogress(client, admin_headers, engineering_headers)

    response = move(client, engineering_headers, complaint_id, "completed", role="department", note="Patched")
    assert response.status_code == 200
    assert response.json()["complaint"]["status"] == "completed"
    assert client.get("/complaints/rewards/citizen-1").json()["points"] == 50

    # Re-sending completion is a no-op
    assert move(client, engineering_headers, complaint_id, "completed", role="department").status_code == 200
    assert client.get("/complaints/rewards/citizen-1").json()["points"] == 50


def test_illegal_transition_is_409(client, admin_headers):
    complaint = file_complaint(client)

    response = move(client, admin_headers, complaint["id"], "completed")
    assert response.status_code == 409
    assert response.json()["error_code"] == "IllegalTransition"
    assert client.get(f"/complaints/{complaint['id']}").json()["status"] == "pending"


def test_wrong_department_is_403(client, admin_headers, engineering_headers, municipality_headers):
    complaint_id = drive_to_inprogress(client, admin_headers, engineering_headers)

    response = move(client, municipality_headers, complaint_id, "completed", role="department")
    assert response.status_code == 403
    assert response.json()["error_code"] == "Forbidden"


def test_role_gates(client, admin_headers, engineering_headers):
    complaint = file_complaint(client)

    assert client.get("/admin/complaints").status_code == 401
    assert client.get("/admin/complaints", headers={"X-Staff-Id": "ghost"}).status_code == 401
    assert client.get("/admin/complaints", headers=engineering_headers).status_code == 403
    assert client.get("/department/complaints", headers=admin_headers).status_code == 403
    assert move(client, engineering_headers, complaint["id"], "verified").status_code == 403


def test_department_list_and_summary(client, admin_headers, engineering_headers, municipality_headers):
    drive_to_inprogress(client, admin_headers, engineering_headers)
    file_complaint(client)

    assert len(client.get("/admin/complaints", headers=admin_headers).json()) == 2
    assert len(client.get("/admin/complaints", params={"status": "pending"}, headers=admin_headers).json()) == 1
    assert len(client.get("/department/complaints", headers=engineering_headers).json()) == 1
    assert client.get("/department/complaints", headers=municipality_headers).json() == []

    summary = client.get("/department/summary", headers=engineering_headers).json()
    assert summary["total"] == 1
    assert summary["by_status"]["inprogress"] == 1


def test_suggestion_and_departments(client, admin_headers):
    complaint = file_complaint(client, category="streetlight")

    suggestion = client.get(f"/admin/complaints/{complaint['id']}/suggestion", headers=admin_headers).json()
    assert suggestion["suggested_department"] == "Electricity"
    assert client.get("/admin/departments", headers=admin_headers).json()["departments"] == [
        "Municipality", "Engineering", "Electricity",
    ]


def test_notes(client, admin_headers, engineering_headers):
    complaint_id = drive_to_inprogress(client, admin_headers, engineering_headers)

    response = client.patch(
        f"/department/complaints/{complaint_id}/note",
        json={"note": "Road closed until Friday"},
        headers=engineering_headers,
    )
    assert response.status_code == 200
    assert response.json()["complaint"]["staff_note"] == "Road closed until Friday"
    assert response.json()["complaint"]["status"] == "inprogress"


def test_proof_upload_completes(client, admin_headers, engineering_headers):
    complaint_id = drive_to_inprogress(client, admin_headers, engineering_headers)

    response = client.post(
        f"/department/complaints/{complaint_id}/proof",
        files={"file": ("after.jpg", b"\xff\xd8jpeg", "image/jpeg")},
        data={"note": "Filled"},
        headers=engineering_headers,
    )
    assert response.status_code == 200
    complaint = response.json()["complaint"]
    assert complaint["status"] == "completed"
    assert complaint["proof_photo_ref"].startswith("proofs/")
    assert client.get("/complaints/rewards/citizen-1").json()["points"] == 50


def test_photo_upload(client):
    response = client.post("/complaints/photos", files={"file": ("pothole.png", b"png", "image/png")})
    assert response.status_code == 201
    ref = response.json()["photo_ref"]

    assert client.get("/complaints/photos/url", params={"ref": ref}).json()["url"].endswith(ref)
    assert client.get("/complaints/photos/url", params={"ref": "complaints/none.jpg"}).status_code == 404


def test_staff_login(client):
    ok = client.post("/auth/staff-login", json={"staff_id": "dept-engineering", "role": "department"})
    assert ok.status_code == 200
    assert ok.json()["department_name"] == "Engineering"

    assert client.post("/auth/staff-login", json={"staff_id": "admin-1", "role": "department"}).status_code == 403
    assert client.post("/auth/staff-login", json={"staff_id": "nobody", "role": "admin"}).status_code == 404
    assert client.get("/auth/me", headers={"X-Staff-Id": "admin-1"}).json()["role"] == "admin"


def test_event_feed(client, admin_headers):
    complaint = file_complaint(client)
    move(client, admin_headers, complaint["id"], "verified")

    feed = client.get("/events").json()
    assert [e["event"] for e in feed["events"]] == ["statusChanged"]
    assert feed["last_sequence"] == feed["events"][0]["sequence"]

    later = client.get("/events", params={"since": feed["last_sequence"]}).json()
    assert later["events"] == []
    assert later["last_sequence"] == feed["last_sequence"]
