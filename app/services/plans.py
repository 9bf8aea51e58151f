from dataclasses import dataclass
from typing import Dict

from app.errors import ValidationError


@dataclass(frozen=True)
class Plan:
    code: str
    name: str
    amount_minor: int
    currency: str
    sumit_plan_id: int


PLANS: Dict[str, Plan] = {
    "single-user": Plan("single-user", "Single User",  3900, "USD", 101),
    "pro":         Plan("pro",         "Pro",          8900, "USD", 102),
    "business":    Plan("business",    "Business",    14900, "USD", 103),
    "enterprise":  Plan("enterprise",  "Enterprise",  29900, "USD", 104),
}


def get_plan(code: str) -> Plan:
    plan = PLANS.get((code or "").strip().lower())
    if plan is None:
        raise ValidationError(f"Unknown plan: {code}")
    return plan
