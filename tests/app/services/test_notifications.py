"""Tests for app.services.notifications (lead webhook) and app.services.audit."""
import json
from unittest.mock import MagicMock

import httpx
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.models import UserAction
from app.services.audit import log_action
from app.services.notifications import build_lead_payload, post_lead_webhook


class TestLeadWebhook:

    def test_payload_shape(self, make_lead):
        lead = make_lead(utm_source="ig")
        payload = build_lead_payload(lead)
        assert payload["type"] == "lead.created"
        assert payload["source"] == "/pricing"
        assert payload["data"]["id"] == lead.lead_id
        assert payload["data"]["utm_source"] == "ig"

    def test_not_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "LEADS_WEBHOOK_URL", "")
        assert post_lead_webhook({"type": "lead.created"}) is False

    def test_posts_payload(self, monkeypatch):
        monkeypatch.setattr(settings, "LEADS_WEBHOOK_URL", "https://hooks.test/leads")
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(204)

        assert post_lead_webhook({"type": "lead.created"}, transport=httpx.MockTransport(handler)) is True
        assert seen == {"url": "https://hooks.test/leads", "body": {"type": "lead.created"}}

    def test_failure_is_swallowed(self, monkeypatch):
        monkeypatch.setattr(settings, "LEADS_WEBHOOK_URL", "https://hooks.test/leads")

        def handler(request):
            raise httpx.ConnectError("down", request=request)

        assert post_lead_webhook({}, transport=httpx.MockTransport(handler)) is False


class TestAudit:

    def test_writes_row(self, db_session, admin_user):
        log_action(db_session, admin_user, "leads.list", {"page": 1})
        row = db_session.query(UserAction).one()
        assert row.user_id == admin_user.id
        assert row.email == admin_user.email
        assert row.action == "leads.list"
        assert row.meta == {"page": 1}

    def test_failure_never_raises(self):
        db = MagicMock()
        db.commit.side_effect = SQLAlchemyError("db down")
        log_action(db, None, "leads.summary")
        db.rollback.assert_called_once()
