"""Tests for app.routes.support."""
from unittest.mock import patch

import pytest

from app.models import SupportMessage, SupportTicket


def _ticket_body(**overrides):
    body = {
        "name": "Noa Levi",
        "email": "noa@salon.test",
        "message": "Cannot log in",
        "source_page": "/help",
    }
    body.update(overrides)
    return body


@pytest.fixture
def ticket(client):
    resp = client.post("/api/support/tickets", json=_ticket_body())
    assert resp.status_code == 201
    return resp.json()["ticket"]


class TestTickets:

    def test_create_ticket(self, client, db_session):
        with patch("app.routes.support.notify_new_ticket") as notify:
            resp = client.post("/api/support/tickets", json=_ticket_body())
        assert resp.status_code == 201
        ticket = resp.json()["ticket"]
        assert ticket["status"] == "new"
        assert ticket["last_message"] == "Cannot log in"
        assert ticket["pipeline_stage"] == "lead"
        assert db_session.query(SupportMessage).filter_by(ticket_id=ticket["id"]).count() == 1
        notify.assert_called_once()

    def test_links_existing_user(self, client, make_user):
        user = make_user(email="noa@salon.test")
        resp = client.post("/api/support/tickets", json=_ticket_body())
        assert resp.json()["ticket"]["user_id"] == user.id

    def test_contact_required(self, client, db_session):
        resp = client.post("/api/support/tickets", json=_ticket_body(email=None))
        assert resp.status_code == 400
        assert db_session.query(SupportTicket).count() == 0

    def test_missing_message(self, client):
        resp = client.post("/api/support/tickets", json=_ticket_body(message=""))
        assert resp.status_code == 400

    def test_list_requires_admin(self, client, staff_headers):
        assert client.get("/api/support/tickets").status_code == 401
        assert client.get("/api/support/tickets", headers=staff_headers).status_code == 403

    def test_list_with_message_count(self, client, admin_headers, ticket):
        client.post("/api/support/messages", json={"ticket_id": ticket["id"], "message": "Any update?"})
        resp = client.get("/api/support/tickets", headers=admin_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 1
        assert body["tickets"][0]["message_count"] == 2

    def test_list_filters_by_status(self, client, admin_headers, ticket):
        resp = client.get("/api/support/tickets?status=closed", headers=admin_headers)
        assert resp.json()["total"] == 0

    def test_update_ticket(self, client, admin_headers, ticket):
        resp = client.patch(
            f"/api/support/tickets/{ticket['id']}",
            json={"status": "resolved", "tags": ["billing"]},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["ticket"]["status"] == "resolved"
        assert resp.json()["ticket"]["tags"] == ["billing"]

    def test_update_unknown_status(self, client, admin_headers, ticket):
        resp = client.patch(f"/api/support/tickets/{ticket['id']}", json={"status": "lost"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_update_missing_ticket(self, client, admin_headers):
        resp = client.patch("/api/support/tickets/nope", json={"status": "closed"}, headers=admin_headers)
        assert resp.status_code == 404


class TestMessages:

    def test_client_message(self, client, ticket):
        resp = client.post("/api/support/messages", json={"ticket_id": ticket["id"], "message": "Hello again"})
        assert resp.status_code == 201
        assert resp.json()["message"]["sender_type"] == "client"

    def test_admin_message_needs_token(self, client, ticket):
        resp = client.post("/api/support/messages", json={
            "ticket_id": ticket["id"], "sender_type": "admin", "message": "On it",
        })
        assert resp.status_code == 401

    def test_admin_message_needs_admin_role(self, client, ticket, staff_headers):
        resp = client.post("/api/support/messages", json={
            "ticket_id": ticket["id"], "sender_type": "admin", "message": "On it",
        }, headers=staff_headers)
        assert resp.status_code == 403

    def test_admin_reply_moves_ticket_in_progress(self, client, ticket, admin_headers, admin_user):
        resp = client.post("/api/support/messages", json={
            "ticket_id": ticket["id"], "sender_type": "admin", "message": "On it",
        }, headers=admin_headers)
        assert resp.status_code == 201
        message = resp.json()["message"]
        assert message["sender_id"] == admin_user.id
        assert message["sender_name"] == "Ada Admin"

        thread = client.get(f"/api/support/messages?ticket_id={ticket['id']}").json()
        assert thread["ticket"]["status"] == "in_progress"
        assert thread["ticket"]["last_message"] == "On it"
        assert [m["message"] for m in thread["messages"]] == ["Cannot log in", "On it"]

    def test_unknown_sender_type(self, client, ticket):
        resp = client.post("/api/support/messages", json={
            "ticket_id": ticket["id"], "sender_type": "bot", "message": "beep",
        })
        assert resp.status_code == 400

    def test_message_on_missing_ticket(self, client):
        resp = client.post("/api/support/messages", json={"ticket_id": "nope", "message": "hi"})
        assert resp.status_code == 404

    def test_thread_missing_ticket(self, client):
        assert client.get("/api/support/messages?ticket_id=nope").status_code == 404


class TestAttachments:

    PRESIGNED = {"upload_url": "https://bucket.test/put", "file_key": "support/x/file.png", "expires_in": 900}

    def test_presigned_url(self, client, ticket):
        with patch("app.routes.support.storage.presign_attachment_upload", return_value=self.PRESIGNED) as presign:
            resp = client.post(
                f"/api/support/tickets/{ticket['id']}/attachments",
                json={"filename": "file.png", "content_type": "image/png", "email": "noa@salon.test"},
            )
        assert resp.status_code == 200
        assert resp.json() == self.PRESIGNED
        presign.assert_called_once_with(ticket["id"], "file.png", "image/png")

    def test_throttled_after_allowance(self, client, ticket):
        body = {"filename": "file.png", "content_type": "image/png", "email": "noa@salon.test"}
        url = f"/api/support/tickets/{ticket['id']}/attachments"
        with patch("app.routes.support.storage.presign_attachment_upload", return_value=self.PRESIGNED):
            codes = [client.post(url, json=body).status_code for _ in range(4)]
        assert codes == [200, 200, 200, 429]

    def test_missing_ticket(self, client):
        resp = client.post(
            "/api/support/tickets/nope/attachments",
            json={"filename": "file.png", "content_type": "image/png"},
        )
        assert resp.status_code == 404

    def test_storage_not_configured(self, client, ticket, monkeypatch):
        from app.config import settings
        monkeypatch.setattr(settings, "AWS_BUCKET_NAME", "")
        resp = client.post(
            f"/api/support/tickets/{ticket['id']}/attachments",
            json={"filename": "file.png", "content_type": "image/png"},
        )
        assert resp.status_code == 500
        assert resp.json()["error"] == "upstream_error"
