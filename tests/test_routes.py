"""HTTP tests against the Flask app backed by the in-memory store."""
import json

import pytest

from arm_submissions.models.submission_schema import SubmissionStatus
from arm_submissions.routes.submissions import (
    CREATED_MESSAGE,
    DELETE_FAILED_MESSAGE,
    WRITE_FAILED_MESSAGE,
    snapshot_events,
)
from arm_submissions.server import create_app
from arm_submissions.services.submission_store import SubmissionStore
from tests.helpers import ADMIN_TOKEN, FailingBackend


def _failing_client(clock, fail_on):
    store = SubmissionStore(FailingBackend(fail_on=fail_on), clock=clock)
    app = create_app(store=store, ADMIN_API_KEY=ADMIN_TOKEN, PUBLIC_BASE_URL="https://arm.example.uz/", TESTING=True)
    return app.test_client(), store


@pytest.fixture
def received_id(store, submission_data):
    sub_id = store.create(submission_data)
    store.update_status(sub_id, SubmissionStatus.RECEIVED)
    return sub_id


# ---------------------------------------------------------------- submitting

def test_submit_creates_pending_record(client, store, form_payload):
    resp = client.post("/api/submissions", json=form_payload)

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["message"] == CREATED_MESSAGE
    record = store.get_by_id(body["id"])
    assert record.status is SubmissionStatus.PENDING
    assert record.books[0].title == "Fizika asoslari"


def test_submit_without_books_never_reaches_store(client, store, form_payload):
    resp = client.post("/api/submissions", json=dict(form_payload, books=[]))

    assert resp.status_code == 400
    assert "books" in resp.get_json()["fields"]
    assert store.list_all() == []


def test_submit_reports_store_failure(clock, form_payload):
    client, store = _failing_client(clock, {"insert"})

    resp = client.post("/api/submissions", json=form_payload)

    assert resp.status_code == 503
    assert resp.get_json() == {"error": WRITE_FAILED_MESSAGE}


# -------------------------------------------------------------------- admin

def test_admin_routes_require_token(client):
    assert client.get("/api/submissions").status_code == 401
    assert client.get("/api/submissions", headers={"Authorization": "Bearer wrong"}).status_code == 403


def test_admin_routes_need_configured_key(store):
    client = create_app(store=store, ADMIN_API_KEY=None, TESTING=True).test_client()
    resp = client.get("/api/submissions", headers={"Authorization": "Bearer anything"})
    assert resp.status_code == 500


def test_list_filters(client, store, submission_data, auth):
    store.create(submission_data)
    store.create(dict(submission_data, full_name="Karimova Dilnoza"))

    resp = client.get("/api/submissions?q=dilnoza", headers=auth)
    body = resp.get_json()
    assert resp.status_code == 200
    assert body["count"] == 1
    assert body["submissions"][0]["full_name"] == "Karimova Dilnoza"

    assert client.get("/api/submissions?limit=1", headers=auth).get_json()["count"] == 1
    assert client.get("/api/submissions?period=hourly", headers=auth).status_code == 400
    assert client.get("/api/submissions?status=archived", headers=auth).status_code == 400


def test_accept_submission(client, store, submission_data, auth):
    sub_id = store.create(submission_data)

    resp = client.post(f"/api/submissions/{sub_id}/status", json={"status": "RECEIVED"}, headers=auth)

    assert resp.status_code == 200
    record = client.get(f"/api/submissions/{sub_id}", headers=auth).get_json()
    assert record["status"] == "RECEIVED"
    assert record["received_at"]


def test_status_update_errors(client, store, submission_data, auth):
    sub_id = store.create(submission_data)

    bad = client.post(f"/api/submissions/{sub_id}/status", json={"status": "DONE"}, headers=auth)
    missing = client.post("/api/submissions/nope/status", json={"status": "REJECTED"}, headers=auth)

    assert bad.status_code == 400
    assert missing.status_code == 404


def test_strict_transition_conflict(backend, clock, submission_data, auth):
    store = SubmissionStore(backend, clock=clock, strict_transitions=True)
    client = create_app(store=store, ADMIN_API_KEY=ADMIN_TOKEN, TESTING=True).test_client()
    sub_id = store.create(submission_data)
    store.update_status(sub_id, SubmissionStatus.RECEIVED)

    resp = client.post(f"/api/submissions/{sub_id}/status", json={"status": "REJECTED"}, headers=auth)

    assert resp.status_code == 409


def test_delete_failure_message(clock, submission_data, auth):
    client, store = _failing_client(clock, set())
    sub_id = store.create(submission_data)
    store.backend.fail_on = {"delete"}

    resp = client.delete(f"/api/submissions/{sub_id}", headers=auth)

    assert resp.status_code == 503
    assert resp.get_json() == {"error": DELETE_FAILED_MESSAGE}
    store.backend.fail_on = set()
    assert store.get_by_id(sub_id) is not None


def test_export_csv(client, received_id, auth):
    resp = client.get("/api/submissions/export.csv?period=all", headers=auth)

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert 'filename="ARM_Hisobot_all.csv"' in resp.headers["Content-Disposition"]
    assert resp.data.startswith(b"\xef\xbb\xbf")
    assert "Alisherov Olimjon" in resp.data.decode("utf-8")


# ------------------------------------------------------------- verification

def test_verify_page_for_received_submission(client, received_id):
    resp = client.get(f"/?verify={received_id}")

    html = resp.get_data(as_text=True)
    assert resp.status_code == 200
    assert "TASDIQLANDI" in html
    assert "Alisherov Olimjon" in html
    assert "Fizika asoslari" in html


def test_verify_after_delete(client, received_id, auth):
    assert client.delete(f"/api/submissions/{received_id}", headers=auth).status_code == 200

    page = client.get(f"/?verify={received_id}")
    api = client.get(f"/api/verify/{received_id}")

    assert page.status_code == 404
    assert "topilmadi" in page.get_data(as_text=True)
    assert api.status_code == 404
    assert api.get_json() == {"verified": False, "reason": "not_found"}


def test_verify_unknown_id(client):
    resp = client.get("/api/verify/nonexistent-id")
    assert resp.status_code == 404
    assert resp.get_json()["reason"] == "not_found"


def test_verify_param_present_but_empty(client):
    resp = client.get("/?verify=")
    assert resp.status_code == 404
    assert "topilmadi" in resp.get_data(as_text=True)


def test_unreachable_store_looks_like_not_found_on_page(clock):
    client, _ = _failing_client(clock, {"get"})

    page = client.get("/?verify=abc123")
    api = client.get("/api/verify/abc123")

    assert page.status_code == 404
    assert "topilmadi" in page.get_data(as_text=True)
    assert api.status_code == 503
    assert api.get_json()["reason"] == "unavailable"


def test_verify_json(client, received_id):
    body = client.get(f"/api/verify/{received_id}").get_json()
    assert body["verified"] is True
    assert body["submission"]["id"] == received_id


def test_root_without_verify(client):
    assert client.get("/").get_json()["service"] == "arm-submissions"


# ------------------------------------------------------------- certificates

def test_certificates_for_received_submission(client, received_id, auth):
    resp = client.get(f"/submissions/{received_id}/certificates", headers=auth)

    html = resp.get_data(as_text=True)
    assert resp.status_code == 200
    assert "MA’LUMOTNOMA" in html
    assert "ROZILIK XATI" in html
    assert "data:image/png;base64," in html
    assert received_id in html


def test_single_certificate_kind(client, received_id, auth):
    html = client.get(f"/submissions/{received_id}/certificates?kind=ref", headers=auth).get_data(as_text=True)
    assert 'data-certificate="ref"' in html
    assert 'data-certificate="consent"' not in html


def test_certificates_refused_before_acceptance(client, store, submission_data, auth):
    sub_id = store.create(submission_data)

    assert client.get(f"/submissions/{sub_id}/certificates", headers=auth).status_code == 409
    assert client.get(f"/submissions/{sub_id}/certificates?kind=x", headers=auth).status_code == 400
    assert client.get("/submissions/nope/certificates", headers=auth).status_code == 404


def test_qr_png(client, received_id, auth):
    resp = client.get(f"/submissions/{received_id}/qr.png", headers=auth)
    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    assert resp.data.startswith(b"\x89PNG")


# ------------------------------------------------------------ health / feed

def test_health(client):
    assert client.get("/api/system/health").get_json() == {"flask": "ok", "store": "ok", "backend": "memory"}


def test_snapshot_events(store, submission_data):
    events = snapshot_events(store, keepalive=0.01)

    assert json.loads(next(events).removeprefix("data: ")) == []
    assert next(events) == ": keepalive\n\n"

    sub_id = store.create(submission_data)
    snapshot = json.loads(next(events).removeprefix("data: "))
    assert [r["id"] for r in snapshot] == [sub_id]
    assert store.subscriber_count == 1

    events.close()
    assert store.subscriber_count == 0


def test_stream_requires_token(client):
    assert client.get("/api/submissions/stream").status_code == 401


def test_malformed_stored_row_is_not_found(client, backend, auth):
    sub_id = backend.insert({"full_name": "Broken row"})

    assert client.get(f"/api/submissions/{sub_id}", headers=auth).status_code == 404
    assert client.get(f"/submissions/{sub_id}/certificates", headers=auth).status_code == 404
    assert client.get(f"/submissions/{sub_id}/qr.png", headers=auth).status_code == 404
    assert client.get(f"/api/verify/{sub_id}").status_code == 404


def test_submit_with_malformed_books_is_rejected(client, store, form_payload):
    resp = client.post("/api/submissions", json=dict(form_payload, books="x"))

    assert resp.status_code == 400
    assert store.list_all() == []
