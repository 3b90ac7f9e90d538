"""
Integration tests for the certification HTTP endpoints.
"""
import pytest

from app.config import settings
from app.certifications.routers.certifications import _slot_rules
from app.certifications.schemas import AttachmentSlot

OWNER = {"X-User-Id": "u1"}
OTHER = {"X-User-Id": "u2"}
REVIEWER = {"X-User-Id": "7", "X-User-Role": "admin"}

PAYLOAD = {
    "application_type": "NATURAL_PERSON",
    "identification_number": "1712345678",
    "applicant_name": "Ana",
    "applicant_last_name": "Pérez",
    "date_of_birth": "1990-05-20",
    "finger_code": "ab12345678",
    "email_address": "ana@correo.ec",
    "cellphone_number": "+593912345678",
    "city": "Quito",
    "province": "Pichincha",
    "address": "Av. Amazonas N34-120 y Colón",
    "reference_transaction": "TX-0001",
    "period": "1_YEAR",
    "terms_accepted": True,
}

JPEG = ("photo.jpg", b"\xff\xd8\xff\xe0fake-jpeg", "image/jpeg")


def _create(client, **overrides):
    resp = client.post("/api/certifications", json={**PAYLOAD, **overrides}, headers=OWNER)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _upload(client, cid, slot, file=JPEG, headers=OWNER):
    return client.put(f"/api/certifications/{cid}/attachments/{slot}", files={"file": file}, headers=headers)


def _complete_draft(client):
    cid = _create(client)["id"]
    for slot in ("identification_front", "identification_back", "identification_selfie"):
        assert _upload(client, cid, slot).status_code == 200
    return cid


def _submitted(client):
    cid = _complete_draft(client)
    resp = client.post(f"/api/certifications/{cid}/submit", headers=OWNER)
    assert resp.status_code == 200, resp.text
    return cid


def _in_review(client):
    cid = _submitted(client)
    resp = client.post(f"/api/admin/certifications/{cid}/review", headers=REVIEWER)
    assert resp.status_code == 200, resp.text
    return cid


class TestOptions:
    def test_reference_data(self, client):
        resp = client.get("/api/certifications/options")
        assert resp.status_code == 200
        body = resp.json()
        assert "Quito" in body["cities"]
        assert "Pichincha" in body["provinces"]
        assert body["periods"] == {"1_YEAR": "1 Año", "2_YEARS": "2 Años", "3_YEARS": "3 Años"}
        assert body["country_code"] == "ECU"


class TestCreate:
    def test_requires_identity(self, client):
        resp = client.post("/api/certifications", json=PAYLOAD)
        assert resp.status_code == 401

    def test_create_draft(self, client):
        body = _create(client)
        assert body["status"] == "draft"
        assert body["status_label"] == "Borrador"
        assert body["finger_code"] == "AB12345678"
        assert body["country_code"] == "ECU"
        assert body["client_age"] >= 35
        assert body["can_edit"] is True
        assert body["can_submit"] is False
        assert body["completion_percentage"] == 79  # 11 of 14
        assert body["missing_fields"] == [
            "identification_front", "identification_back", "identification_selfie",
        ]

    def test_partial_draft_allowed(self, client):
        resp = client.post("/api/certifications", json={"applicant_name": "Ana"}, headers=OWNER)
        assert resp.status_code == 201
        assert resp.json()["application_type"] == "NATURAL_PERSON"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("city", "Lima"),
            ("province", "Cusco"),
            ("finger_code", "1234"),
            ("cellphone_number", "0991234567"),
            ("address", "too short"),
            ("period", "10_YEARS"),
            ("email_address", "a@.b.c"),
            ("email_address", "a@b..c"),
            ("email_address", "a..b@c.d"),
            ("email_address", ".a@b.c"),
            ("email_address", "ana@" + "c" * 60 + "." + "d" * 35 + ".ec"),
            ("appointment_expiration_date", "2001-01-01T00:00:00Z"),
        ],
    )
    def test_invalid_fields(self, client, field, value):
        resp = client.post("/api/certifications", json={**PAYLOAD, field: value}, headers=OWNER)
        assert resp.status_code == 422


class TestAccess:
    def test_owner_only(self, client):
        cid = _create(client)["id"]
        assert client.get(f"/api/certifications/{cid}", headers=OTHER).status_code == 403
        assert client.get(f"/api/certifications/{cid}", headers=REVIEWER).status_code == 200
        assert client.put(f"/api/certifications/{cid}", json={"city": "Cuenca"}, headers=REVIEWER).status_code == 403

    def test_not_found(self, client):
        assert client.get("/api/certifications/nope", headers=OWNER).status_code == 404

    def test_list_own(self, client):
        _create(client)
        client.post("/api/certifications", json=PAYLOAD, headers=OTHER)
        resp = client.get("/api/certifications", headers=OWNER)
        assert resp.status_code == 200
        assert len(resp.json()) == 1
        assert client.get("/api/certifications?status=pending", headers=OWNER).json() == []

    def test_reviewer_routes_need_role(self, client):
        cid = _submitted(client)
        assert client.get("/api/admin/certifications", headers=OWNER).status_code == 403
        assert client.post(f"/api/admin/certifications/{cid}/review", headers=OTHER).status_code == 403


class TestAttachments:
    def test_upload_and_replace(self, client, store):
        cid = _create(client)["id"]
        first = _upload(client, cid, "identification_front").json()["attachments"]["identification_front"]
        assert store.exists(first)
        second_file = ("photo.png", b"\x89PNG-other-content", "image/png")
        second = _upload(client, cid, "identification_front", second_file).json()["attachments"]["identification_front"]
        assert second != first
        assert store.exists(second)
        assert not store.exists(first)

    def test_failed_commit_keeps_previous_file(self, client, db, store, monkeypatch):
        cid = _create(client)["id"]
        first = _upload(client, cid, "identification_front").json()["attachments"]["identification_front"]

        def failing_commit():
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(db, "commit", failing_commit)
        with pytest.raises(RuntimeError):
            _upload(client, cid, "identification_front", ("photo.png", b"\x89PNG-other-content", "image/png"))
        monkeypatch.undo()

        assert store.exists(first)
        uploaded = list((store.root / "certifications" / cid).iterdir())
        assert [p.name for p in uploaded] == [first.rsplit("/", 1)[-1]]
        body = client.get(f"/api/certifications/{cid}", headers=OWNER).json()
        assert body["attachments"]["identification_front"] == first

    def test_size_limit(self, client, monkeypatch):
        monkeypatch.setattr(settings, "MAX_IMAGE_BYTES", 4)
        cid = _create(client)["id"]
        resp = _upload(client, cid, "identification_front")
        assert resp.status_code == 413
        body = client.get(f"/api/certifications/{cid}", headers=OWNER).json()
        assert body["attachments"]["identification_front"] is None

    def test_video_slot(self, client, store):
        cid = _create(client)["id"]
        resp = _upload(client, cid, "authorization_video", ("consent.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4"))
        assert resp.status_code == 200
        assert store.exists(resp.json()["attachments"]["authorization_video"])
        assert _upload(client, cid, "authorization_video").status_code == 400

    def test_pdf_slot(self, client, store):
        cid = _create(client, company_ruc="1790012345001")["id"]
        resp = _upload(client, cid, "pdf_company_ruc", ("ruc.pdf", b"%PDF-1.4 fake", "application/pdf"))
        assert resp.status_code == 200
        reference = resp.json()["attachments"]["pdf_company_ruc"]
        assert reference.endswith(".pdf")
        assert store.exists(reference)
        assert "pdf_company_ruc" not in resp.json()["missing_fields"]

    @pytest.mark.parametrize("slot", list(AttachmentSlot))
    def test_every_slot_has_upload_rules(self, slot):
        allowed, max_bytes = _slot_rules(slot)
        assert allowed
        assert max_bytes > 0

    def test_wrong_extension(self, client):
        cid = _create(client)["id"]
        resp = _upload(client, cid, "pdf_company_ruc", JPEG)
        assert resp.status_code == 400

    def test_unknown_slot(self, client):
        cid = _create(client)["id"]
        assert _upload(client, cid, "passport").status_code == 422

    def test_download(self, client):
        cid = _create(client)["id"]
        _upload(client, cid, "identification_selfie")
        resp = client.get(f"/api/certifications/{cid}/attachments/identification_selfie", headers=REVIEWER)
        assert resp.status_code == 200
        assert resp.content == JPEG[1]
        missing = client.get(f"/api/certifications/{cid}/attachments/identification_back", headers=OWNER)
        assert missing.status_code == 404


class TestSubmit:
    def test_submit_complete(self, client):
        cid = _complete_draft(client)
        resp = client.post(f"/api/certifications/{cid}/submit", headers=OWNER)
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "pending"
        assert body["submitted_at"]
        assert body["can_edit"] is False

    def test_submit_incomplete(self, client):
        cid = _create(client)["id"]
        resp = client.post(f"/api/certifications/{cid}/submit", headers=OWNER)
        assert resp.status_code == 409
        assert client.get(f"/api/certifications/{cid}", headers=OWNER).json()["status"] == "draft"

    def test_cannot_edit_after_submit(self, client):
        cid = _submitted(client)
        resp = client.put(f"/api/certifications/{cid}", json={"city": "Cuenca"}, headers=OWNER)
        assert resp.status_code == 409
        assert _upload(client, cid, "identification_front").status_code == 409

    def test_ruc_requires_company_pdf(self, client):
        cid = _complete_draft(client)
        resp = client.put(f"/api/certifications/{cid}", json={"company_ruc": "1790012345001"}, headers=OWNER)
        body = resp.json()
        assert body["requires_company_documents"] is True
        assert body["missing_fields"] == ["pdf_company_ruc"]
        assert client.post(f"/api/certifications/{cid}/submit", headers=OWNER).status_code == 409


class TestReview:
    def test_queue_and_stats(self, client):
        _submitted(client)
        _create(client)
        queue = client.get("/api/admin/certifications", headers=REVIEWER).json()
        assert [c["status"] for c in queue] == ["pending"]
        stats = client.get("/api/admin/certifications/stats", headers=REVIEWER).json()
        assert stats["total"] == 2
        assert stats["by_status"]["draft"] == 1
        assert stats["awaiting_review"] == 1

    def test_approve(self, client):
        cid = _in_review(client)
        resp = client.post(f"/api/admin/certifications/{cid}/approve", json={"notes": "ok"}, headers=REVIEWER)
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "approved"
        assert body["processed_by"] == "7"
        assert body["metadata"]["approval_notes"] == "ok"
        done = client.post(f"/api/admin/certifications/{cid}/complete", headers=REVIEWER)
        assert done.json()["status"] == "completed"

    def test_approve_requires_review_first(self, client):
        cid = _submitted(client)
        resp = client.post(f"/api/admin/certifications/{cid}/approve", json={}, headers=REVIEWER)
        assert resp.status_code == 409

    def test_owner_cannot_process_own(self, client):
        cid = _submitted(client)
        resp = client.post(
            f"/api/admin/certifications/{cid}/review",
            headers={"X-User-Id": "u1", "X-User-Role": "admin"},
        )
        assert resp.status_code == 400

    def test_reject_needs_reason(self, client):
        cid = _in_review(client)
        resp = client.post(f"/api/admin/certifications/{cid}/reject", json={"reason": " "}, headers=REVIEWER)
        assert resp.status_code == 400
        body = client.get(f"/api/certifications/{cid}", headers=OWNER).json()
        assert body["status"] == "in_review"
        assert body["processed_by"] is None

    def test_reject_then_correct(self, client):
        cid = _in_review(client)
        resp = client.post(
            f"/api/admin/certifications/{cid}/reject", json={"reason": "blurry selfie"}, headers=REVIEWER
        )
        assert resp.json()["status"] == "rejected"
        assert resp.json()["can_edit"] is True

        assert _upload(client, cid, "identification_selfie", ("new.jpg", b"\xff\xd8sharp", "image/jpeg")).status_code == 200
        body = client.get(f"/api/certifications/{cid}", headers=OWNER).json()
        assert body["status"] == "draft"
        assert body["rejection_reason"] is None

        resubmitted = client.post(f"/api/certifications/{cid}/submit", headers=OWNER)
        assert resubmitted.json()["status"] == "pending"

        events = [e["event"] for e in client.get(f"/api/certifications/{cid}/timeline", headers=OWNER).json()]
        assert events[0] == "CREATED"
        assert "REJECTED" in events
        assert "REOPENED" in events
        assert events.count("SUBMITTED") == 2


class TestDelete:
    def test_delete_draft_removes_files(self, client, store):
        cid = _create(client)["id"]
        ref = _upload(client, cid, "identification_front").json()["attachments"]["identification_front"]
        resp = client.delete(f"/api/certifications/{cid}", headers=OWNER)
        assert resp.status_code == 200
        assert resp.json()["failed_attachments"] == []
        assert not store.exists(ref)
        assert client.get(f"/api/certifications/{cid}", headers=OWNER).status_code == 404

    def test_delete_submitted_refused(self, client):
        cid = _submitted(client)
        assert client.delete(f"/api/certifications/{cid}", headers=OWNER).status_code == 409
        assert client.get(f"/api/certifications/{cid}", headers=OWNER).status_code == 200

    def test_delete_other_users(self, client):
        cid = _create(client)["id"]
        assert client.delete(f"/api/certifications/{cid}", headers=OTHER).status_code == 403
