from app.models.user import User, UserRole
from app.models.lead import Lead, LeadStage
from app.models.subscriber import Subscriber, SubscriptionStatus
from app.models.billing_event import BillingEvent, EventOutcome
from app.models.support import SupportTicket, SupportMessage, TicketStatus, SenderType
from app.models.tracking import CtaClick, UserAction, ClientThrottling

__all__ = [
    "User", "UserRole",
    "Lead", "LeadStage",
    "Subscriber", "SubscriptionStatus",
    "BillingEvent", "EventOutcome",
    "SupportTicket", "SupportMessage", "TicketStatus", "SenderType",
    "CtaClick", "UserAction", "ClientThrottling",
]
