"""Tests for app.services.sumit: charge call and webhook signatures."""
import hashlib
import hmac
import json

import httpx
import pytest

from app.errors import UpstreamError
from app.services.plans import get_plan
from app.services.sumit import SumitClient, SumitCustomer, verify_webhook_signature

CUSTOMER = SumitCustomer(full_name="Dana Cohen", email="dana@salon.test", phone="0501234567")


def _client(handler):
    return SumitClient(
        api_key="key-123",
        org_id="org-9",
        base_url="https://sumit.test",
        transport=httpx.MockTransport(handler),
    )


class TestCharge:

    def test_sends_auth_headers_and_parses_ids(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["org"] = request.headers["X-Organization-ID"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"Data": {
                "CustomerID": 555, "PaymentMethodID": "pm-1", "RecurringItemID": "rec-7",
            }})

        result = _client(handler).charge(CUSTOMER, get_plan("pro"), "tok-abc")

        assert seen["auth"] == "Bearer key-123"
        assert seen["org"] == "org-9"
        assert seen["body"]["SingleUseToken"] == "tok-abc"
        assert seen["body"]["Customer"]["EmailAddress"] == "dana@salon.test"
        assert result.customer_id == "555"
        assert result.payment_method_id == "pm-1"
        assert result.subscription_id == "rec-7"
        assert result.charged_now is False

    def test_transaction_id_means_charged_now(self):
        def handler(request):
            return httpx.Response(200, json={"Data": {"CustomerID": "c1", "TransactionID": "tx-1"}})

        assert _client(handler).charge(CUSTOMER, get_plan("pro"), "tok").charged_now is True

    def test_non_2xx_raises_upstream(self):
        def handler(request):
            return httpx.Response(402, json={"message": "declined"})

        with pytest.raises(UpstreamError):
            _client(handler).charge(CUSTOMER, get_plan("pro"), "tok")

    def test_transport_error_raises_upstream(self):
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        with pytest.raises(UpstreamError):
            _client(handler).charge(CUSTOMER, get_plan("pro"), "tok")

    def test_missing_customer_id_raises_upstream(self):
        def handler(request):
            return httpx.Response(200, json={"Data": {}})

        with pytest.raises(UpstreamError):
            _client(handler).charge(CUSTOMER, get_plan("pro"), "tok")

    def test_missing_credentials_raise_upstream(self):
        client = SumitClient(api_key="", org_id="", base_url="https://sumit.test")
        with pytest.raises(UpstreamError):
            client.charge(CUSTOMER, get_plan("pro"), "tok")


class TestVerifyWebhookSignature:

    def _sign(self, body, secret="s3cret"):
        return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()

    def test_valid_signature(self):
        body = b'{"id": "evt_1"}'
        assert verify_webhook_signature(body, self._sign(body), "s3cret") is True

    def test_wrong_signature(self):
        body = b'{"id": "evt_1"}'
        assert verify_webhook_signature(body, self._sign(body, "other"), "s3cret") is False

    def test_tampered_body(self):
        signature = self._sign(b'{"id": "evt_1"}')
        assert verify_webhook_signature(b'{"id": "evt_2"}', signature, "s3cret") is False

    def test_missing_signature(self):
        assert verify_webhook_signature(b"{}", None, "s3cret") is False
