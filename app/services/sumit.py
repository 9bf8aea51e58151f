"""
app/services/sumit.py
SUMIT billing provider: charge / tokenised-card subscription and webhook
signature check.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
import hashlib
import hmac
import logging

import httpx

from app.config import settings
from app.errors import UpstreamError
from app.services.plans import Plan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SumitCustomer:
    full_name: str
    email: str
    phone: Optional[str] = None


@dataclass(frozen=True)
class ChargeResult:
    customer_id: str
    payment_method_id: Optional[str]
    transaction_id: Optional[str]
    subscription_id: Optional[str]

    @property
    def charged_now(self) -> bool:
        return bool(self.transaction_id)


class SumitClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        org_id: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.SUMIT_API_KEY
        self.org_id = org_id if org_id is not None else settings.SUMIT_ORG_ID
        self.base_url = (base_url or settings.SUMIT_API_URL).rstrip("/")
        self.timeout = timeout or settings.SUMIT_TIMEOUT_SECONDS
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "X-Organization-ID": self.org_id,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key or not self.org_id:
            raise UpstreamError("SUMIT credentials are not configured")
        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(endpoint, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error(f"SUMIT request failed [{endpoint}]: {e}")
            raise UpstreamError("Billing provider unreachable")

        if resp.status_code >= 300:
            logger.error(f"SUMIT error [{endpoint}] {resp.status_code}: {resp.text[:500]}")
            raise UpstreamError(f"Billing provider returned {resp.status_code}")
        try:
            return resp.json()
        except ValueError:
            raise UpstreamError("Billing provider returned an invalid response")

    def charge(self, customer: SumitCustomer, plan: Plan, single_use_token: str) -> ChargeResult:
        """Create the customer and a recurring subscription; first charge is deferred by the trial."""
        start_date = (datetime.utcnow() + timedelta(days=settings.TRIAL_DAYS)).date().isoformat()
        body = self._post("/billing/recurring/charge/", {
            "Customer": {
                "Name": customer.full_name,
                "EmailAddress": customer.email,
                "Phone": customer.phone,
            },
            "SingleUseToken": single_use_token,
            "Items": [{
                "ItemID": plan.sumit_plan_id,
                "UnitPrice": plan.amount_minor / 100,
                "Currency": plan.currency,
                "Quantity": 1,
                "Recurrence": "monthly",
                "StartDate": start_date,
            }],
        })

        data = body.get("Data") if isinstance(body.get("Data"), dict) else body
        customer_id = data.get("CustomerID") or data.get("customer_id")
        if not customer_id:
            logger.error(f"SUMIT charge returned no customer id: {body}")
            raise UpstreamError("Billing provider did not return a customer id")

        def _str(value):
            return str(value) if value else None

        result = ChargeResult(
            customer_id=str(customer_id),
            payment_method_id=_str(data.get("PaymentMethodID") or data.get("payment_method_id")),
            transaction_id=_str(data.get("TransactionID") or data.get("transaction_id")),
            subscription_id=_str(data.get("RecurringItemID") or data.get("subscription_id")),
        )
        logger.info(f"SUMIT charge ok: customer={result.customer_id} plan={plan.code}")
        return result


def verify_webhook_signature(raw_body: bytes, signature: Optional[str], secret: str) -> bool:
    if not signature:
        return False
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(digest, signature.strip().lower())
