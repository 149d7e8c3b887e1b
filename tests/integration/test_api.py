"""End-to-end API tests with in-process backends."""

import pytest
from fastapi.testclient import TestClient

from referral_service.api.dependencies import get_case_repository, get_object_store
from referral_service.infrastructure.persistence import InMemoryCaseRepository
from referral_service.infrastructure.storage import InMemoryObjectStore
from referral_service.main import app

VET = {"X-User-ID": "vet_1"}
OTHER_VET = {"X-User-ID": "vet_2"}
SPECIALIST = {"X-User-ID": "spec_1", "X-User-Role": "specialist"}


@pytest.fixture
def object_store():
    return InMemoryObjectStore()


@pytest.fixture
def client(object_store):
    repository = InMemoryCaseRepository()
    app.dependency_overrides[get_case_repository] = lambda: repository
    app.dependency_overrides[get_object_store] = lambda: object_store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def submit(client, make_submission):
    """Submit a case as ``headers`` and return the response."""

    def post(headers=VET, **overrides):
        body = make_submission(**overrides).model_dump(mode="json")
        return client.post("/api/v1/cases", json=body, headers=headers)

    return post


def png(name: str, size: int = 64):
    return ("files", (name, b"\x89PNG" + b"\x00" * size, "image/png"))


@pytest.mark.integration
class TestFileRoutes:

    def test_upload_requires_user(self, client):
        response = client.post("/api/v1/files/blood_test_image", files=[png("cbc.png")])

        assert response.status_code == 401

    def test_upload_validates_each_file(self, client, object_store):
        response = client.post(
            "/api/v1/files/blood_test_image",
            files=[
                png("cbc.png"),
                ("files", ("report.pdf", b"%PDF-1.7", "application/pdf")),
                png("chem.png"),
            ],
            headers=VET,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["uploaded"] == 2
        assert body["rejected"] == 1
        assert [r["file_name"] for r in body["results"]] == ["cbc.png", "report.pdf", "chem.png"]
        assert body["results"][1]["error"].startswith('File type "application/pdf" is not supported')
        assert all(key[0] == "blood-tests" for key in object_store.objects)
        assert len(object_store.objects) == 2

    def test_unknown_category(self, client):
        response = client.post("/api/v1/files/xray", files=[png("a.png")], headers=VET)

        assert response.status_code == 422

    def test_delete_own_upload(self, client, object_store):
        uploaded = client.post(
            "/api/v1/files/blood_test_image", files=[png("cbc.png")], headers=VET
        ).json()["results"][0]

        response = client.delete(
            f"/api/v1/files/blood_test_image/{uploaded['storage_path']}", headers=VET
        )

        assert response.status_code == 204
        assert object_store.objects == {}

    def test_cannot_delete_another_users_upload(self, client, object_store):
        uploaded = client.post(
            "/api/v1/files/blood_test_image", files=[png("cbc.png")], headers=VET
        ).json()["results"][0]

        response = client.delete(
            f"/api/v1/files/blood_test_image/{uploaded['storage_path']}", headers=OTHER_VET
        )

        assert response.status_code == 403
        assert len(object_store.objects) == 1

    def test_delete_rejects_dot_segments(self, client, object_store):
        object_store.put_object("blood-tests", "vet_2/x.png", b"x")

        response = client.delete(
            "/api/v1/files/blood_test_image/vet_1/%2E%2E/vet_2/x.png", headers=VET
        )

        assert response.status_code in (400, 403)
        assert ("blood-tests", "vet_2/x.png") in object_store.objects

    def test_upload_case_id_cannot_leave_owner_prefix(self, client):
        response = client.post(
            "/api/v1/files/blood_test_image?case_id=..",
            files=[png("cbc.png")],
            headers=VET,
        )

        path = response.json()["results"][0]["storage_path"]
        assert path.startswith("vet_1/_/")
        assert ".." not in path.split("/")

    def test_delete_missing_object(self, client):
        response = client.delete("/api/v1/files/medical_record/vet_1/nothing.pdf", headers=VET)

        assert response.status_code == 404


@pytest.mark.integration
class TestSubmitCase:

    def test_missing_user_is_unauthorized(self, submit):
        response = submit(headers={})

        assert response.status_code == 401
        assert response.json()["detail"]["reason"] == "authentication"

    def test_invalid_form_lists_every_error(self, submit):
        response = submit(weight=None, patient_name="")

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["reason"] == "validation"
        assert detail["errors"] == [
            "Weight is required and must be greater than 0",
            "Patient name is required",
        ]

    def test_buddy_referral(self, client, submit):
        upload = client.post(
            "/api/v1/files/blood_test_image",
            files=[png("cbc.png"), png("chem.png")],
            headers=VET,
        ).json()
        records = client.post(
            "/api/v1/files/medical_record",
            files=[("files", ("setup.exe", b"MZ", "application/x-msdownload"))],
            headers=VET,
        ).json()
        assert upload["uploaded"] == 2
        assert records["rejected"] == 1

        response = submit(
            blood_test_files=upload["results"],
            medical_record_files=records["results"],
        )

        assert response.status_code == 201
        body = response.json()
        assert body["documents_linked"] == 2
        assert body["document_link_warnings"] == []
        assert body["timeline_recorded"] is True
        case_id = body["case_id"]

        case = client.get(f"/api/v1/cases/{case_id}", headers=VET).json()
        assert case["patient_name"] == "Buddy"
        assert case["status"] == "submitted"
        assert case["urgency"] == "routine"

        documents = client.get(f"/api/v1/cases/{case_id}/documents", headers=VET).json()
        assert sorted(d["file_name"] for d in documents) == ["cbc.png", "chem.png"]
        assert all(d["url"].endswith("?expires_in=3600") for d in documents)
        assert all(d["media_kind"] == "image" and d["extension"] == "png" for d in documents)
        assert all(d["size_label"].endswith("Bytes") for d in documents)

        timeline = client.get(f"/api/v1/cases/{case_id}/timeline", headers=VET).json()
        assert [e["action"] for e in timeline["entries"]] == ["case_submitted"]
        assert timeline["entries"][0]["metadata"] == {
            "filesUploaded": {"bloodTests": 2, "medicalRecords": 0}
        }


@pytest.mark.integration
class TestCaseAccess:

    def test_other_vet_gets_404(self, client, submit):
        case_id = submit().json()["case_id"]

        assert client.get(f"/api/v1/cases/{case_id}", headers=OTHER_VET).status_code == 404
        assert client.get(f"/api/v1/cases/{case_id}/timeline", headers=OTHER_VET).status_code == 404

    def test_list_by_role(self, client, submit):
        submit()
        submit(headers=OTHER_VET, urgency="emergency")

        own = client.get("/api/v1/cases", headers=VET).json()
        queue = client.get("/api/v1/cases", headers=SPECIALIST).json()
        emergencies = client.get("/api/v1/cases?urgency=emergency", headers=SPECIALIST).json()

        assert own["total"] == 1
        assert queue["total"] == 2
        assert [c["referring_vet_id"] for c in emergencies["cases"]] == ["vet_2"]

    def test_unknown_role(self, client):
        response = client.get("/api/v1/cases", headers={"X-User-ID": "x", "X-User-Role": "owner"})

        assert response.status_code == 400

    def test_add_timeline_entry(self, client, submit):
        case_id = submit().json()["case_id"]

        response = client.post(
            f"/api/v1/cases/{case_id}/timeline",
            json={"action": "note_added", "description": "Owner called"},
            headers=VET,
        )

        assert response.status_code == 201
        entries = client.get(
            f"/api/v1/cases/{case_id}/timeline?order=asc", headers=VET
        ).json()["entries"]
        assert [e["action"] for e in entries] == ["case_submitted", "note_added"]


@pytest.mark.integration
class TestSpecialistActions:

    def test_referring_vet_cannot_accept(self, client, submit):
        case_id = submit().json()["case_id"]

        response = client.post(f"/api/v1/cases/{case_id}/accept", headers=VET)

        assert response.status_code == 403

    def test_accept_then_complete(self, client, submit):
        case_id = submit().json()["case_id"]

        accepted = client.post(f"/api/v1/cases/{case_id}/accept", headers=SPECIALIST)
        completed = client.post(
            f"/api/v1/cases/{case_id}/complete",
            json={"note": "Start prednisolone taper"},
            headers=SPECIALIST,
        )

        assert accepted.status_code == 200
        assert accepted.json()["status"] == "reviewing"
        assert accepted.json()["specialist_id"] == "spec_1"
        assert completed.status_code == 200
        assert completed.json()["status"] == "completed"
        assert completed.json()["completed_at"] is not None

        assigned = client.get("/api/v1/cases?assigned_only=true", headers=SPECIALIST).json()
        assert assigned["total"] == 1

    def test_disallowed_transition_conflicts(self, client, submit):
        case_id = submit().json()["case_id"]
        client.post(f"/api/v1/cases/{case_id}/decline", headers=SPECIALIST)

        response = client.post(f"/api/v1/cases/{case_id}/complete", headers=SPECIALIST)

        assert response.status_code == 409

    def test_unknown_case(self, client):
        response = client.post("/api/v1/cases/missing/accept", headers=SPECIALIST)

        assert response.status_code == 404

    def test_addendum(self, client, submit):
        case_id = submit().json()["case_id"]

        response = client.patch(
            f"/api/v1/cases/{case_id}/addendum",
            json={"working_diagnosis": "Addison's disease", "patient_name": "Max"},
            headers=SPECIALIST,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["working_diagnosis"] == "Addison's disease"
        assert body["patient_name"] == "Buddy"

    def test_referring_vet_cannot_respond(self, client, submit):
        case_id = submit().json()["case_id"]

        response = client.post(
            f"/api/v1/cases/{case_id}/responses", json={"response_text": "Hi"}, headers=VET
        )

        assert response.status_code == 403
        assert client.get(f"/api/v1/cases/{case_id}/responses", headers=VET).json() == []

    def test_submit_and_list_responses(self, client, submit):
        case_id = submit().json()["case_id"]

        draft = client.post(
            f"/api/v1/cases/{case_id}/responses",
            json={"response_text": "Pending ACTH stim", "is_final_response": True, "draft": True},
            headers=SPECIALIST,
        )
        final = client.post(
            f"/api/v1/cases/{case_id}/responses",
            json={
                "response_text": "Findings consistent with hypoadrenocorticism.",
                "diagnosis": "Hypoadrenocorticism",
                "follow_up_needed": True,
                "follow_up_date": "2026-11-01",
                "is_final_response": True,
            },
            headers=SPECIALIST,
        )

        assert draft.status_code == 201
        assert draft.json()["is_final_response"] is False
        assert final.status_code == 201
        assert final.json()["follow_up_date"] == "2026-11-01"

        listed = client.get(f"/api/v1/cases/{case_id}/responses", headers=VET).json()
        assert [r["id"] for r in listed] == [final.json()["id"], draft.json()["id"]]

        entries = client.get(
            f"/api/v1/cases/{case_id}/timeline?order=asc", headers=VET
        ).json()["entries"]
        assert [e["action"] for e in entries] == ["case_submitted", "response_submitted"]

    def test_blank_response_is_rejected(self, client, submit):
        case_id = submit().json()["case_id"]

        response = client.post(
            f"/api/v1/cases/{case_id}/responses", json={"response_text": "  "}, headers=SPECIALIST
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Please provide a response before submitting."

    def test_responses_on_unknown_or_hidden_case(self, client, submit):
        case_id = submit().json()["case_id"]

        missing = client.post(
            "/api/v1/cases/missing/responses", json={"response_text": "Hi"}, headers=SPECIALIST
        )

        assert missing.status_code == 404
        assert client.get(f"/api/v1/cases/{case_id}/responses", headers=OTHER_VET).status_code == 404
