"""Tests for app.routes.leads: public funnel submissions and admin reads."""
from unittest.mock import patch

from app.models import Lead, UserAction


class TestSubmitLeadEvent:

    def test_first_touch_creates_lead(self, client):
        resp = client.post("/api/leads", json={
            "session_id": "s-1", "stage": "cta_clicked", "source_page": "/home", "utm_campaign": "spring",
        })
        assert resp.status_code == 201
        body = resp.json()
        assert body["updated"] is False
        assert body["lead"]["stage"] == "cta_clicked"
        assert body["lead"]["utm_campaign"] == "spring"
        assert len(body["lead"]["events"]) == 1

    def test_follow_up_updates_lead(self, client):
        created = client.post("/api/leads", json={"source_page": "/home"}).json()["lead"]
        resp = client.post("/api/leads", json={
            "lead_id": created["lead_id"], "stage": "account_completed",
            "email": "dana@salon.test", "full_name": "Dana",
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["updated"] is True
        assert body["lead"]["stage"] == "account_completed"
        assert body["lead"]["email"] == "dana@salon.test"
        assert len(body["lead"]["events"]) == 2

    def test_records_request_context(self, client, db_session):
        client.post(
            "/api/leads",
            json={"source_page": "/home"},
            headers={"User-Agent": "pytest-agent", "X-Forwarded-For": "203.0.113.9, 10.0.0.1"},
        )
        lead = db_session.query(Lead).one()
        assert lead.user_agent == "pytest-agent"
        assert lead.ip_address == "203.0.113.9"

    def test_invalid_stage(self, client, db_session):
        resp = client.post("/api/leads", json={"stage": "bogus", "source_page": "/home"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_stage"
        assert db_session.query(Lead).count() == 0

    def test_missing_source_page(self, client):
        resp = client.post("/api/leads", json={"stage": "cta_clicked"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "missing_attribution"

    def test_missing_source_page_at_later_stage(self, client, db_session):
        resp = client.post("/api/leads", json={"stage": "account_completed"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "missing_attribution"
        assert db_session.query(Lead).count() == 0

    def test_email_required_after_cta(self, client):
        resp = client.post("/api/leads", json={"stage": "account_completed", "source_page": "/signup"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_error"

    def test_malformed_email(self, client):
        resp = client.post("/api/leads", json={"source_page": "/home", "email": "not-an-email"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_error"

    def test_unknown_lead_id(self, client):
        resp = client.post("/api/leads", json={"lead_id": "nope", "stage": "cta_clicked"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    def test_new_lead_fires_webhook(self, client):
        with patch("app.routes.leads.notifications.post_lead_webhook") as mock_hook:
            client.post("/api/leads", json={"source_page": "/home"})
        payload = mock_hook.call_args[0][0]
        assert payload["type"] == "lead.created"

    def test_existing_lead_does_not_fire_webhook(self, client, make_lead):
        lead = make_lead()
        with patch("app.routes.leads.notifications.post_lead_webhook") as mock_hook:
            client.post("/api/leads", json={"lead_id": lead.lead_id, "stage": "cta_clicked"})
        mock_hook.assert_not_called()


class TestAdminLeadReads:

    def test_list_requires_token(self, client):
        resp = client.get("/api/leads")
        assert resp.status_code == 401
        assert resp.json()["error"] == "unauthorized"

    def test_list_requires_admin_role(self, client, staff_headers):
        resp = client.get("/api/leads", headers=staff_headers)
        assert resp.status_code == 403
        assert resp.json()["error"] == "forbidden"

    def test_list_paginates(self, client, admin_headers, make_lead):
        for _ in range(3):
            make_lead()
        resp = client.get("/api/leads?page=2&limit=2", headers=admin_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["leads"]) == 1
        assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}

    def test_limit_is_clamped(self, client, admin_headers):
        body = client.get("/api/leads?limit=10000", headers=admin_headers).json()
        assert body["pagination"]["limit"] == 500
        body = client.get("/api/leads?limit=0", headers=admin_headers).json()
        assert body["pagination"]["limit"] == 1

    def test_list_filters(self, client, admin_headers, make_lead):
        make_lead(stage="payment_viewed", source_page="/a")
        make_lead(stage="cta_clicked", source_page="/a")
        make_lead(stage="payment_viewed", source_page="/b")
        body = client.get("/api/leads?status=payment_viewed&source=/a", headers=admin_headers).json()
        assert body["pagination"]["total"] == 1

    def test_list_writes_audit_row(self, client, admin_headers, admin_user, db_session):
        client.get("/api/leads", headers=admin_headers)
        row = db_session.query(UserAction).one()
        assert row.action == "leads.list"
        assert row.user_id == admin_user.id

    def test_summary(self, client, admin_headers, make_lead):
        make_lead(stage="account_completed")
        body = client.get("/api/leads/summary", headers=admin_headers).json()
        assert body["leads"]["total_leads"] == 1
        assert body["leads"]["stage_2_account"] == 1
        assert body["funnel"][0]["source_page"] == "/pricing"

    def test_get_one(self, client, admin_headers, make_lead):
        lead = make_lead()
        resp = client.get(f"/api/leads/{lead.lead_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["lead"]["lead_id"] == lead.lead_id

    def test_get_one_missing(self, client, admin_headers):
        assert client.get("/api/leads/missing", headers=admin_headers).status_code == 404


class TestCors:

    def test_preflight_allows_any_origin(self, client):
        resp = client.options("/api/leads", headers={
            "Origin": "https://salonos.ai",
            "Access-Control-Request-Method": "POST",
        })
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_error_responses_allow_any_origin(self, client):
        resp = client.post("/api/leads", json={"stage": "bogus"}, headers={"Origin": "https://salonos.ai"})
        assert resp.status_code == 400
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_unexpected_error_is_json_with_cors(self, client):
        with patch("app.routes.leads.record_stage_event", side_effect=RuntimeError("db exploded")):
            resp = client.post(
                "/api/leads",
                json={"source_page": "/home"},
                headers={"Origin": "https://salonos.ai"},
            )
        assert resp.status_code == 500
        assert resp.json() == {"error": "internal_error", "detail": "Internal server error"}
        assert resp.headers["access-control-allow-origin"] == "*"
