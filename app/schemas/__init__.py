from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Dict, Any, List
from datetime import datetime

# Auth Schemas
class UserResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: str
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Lead Schemas
class LeadEventIn(BaseModel):
    lead_id:      Optional[str] = None
    session_id:   Optional[str] = None
    stage:        Optional[str] = None      # cta_clicked | account_completed | address_completed | payment_viewed
    full_name:    Optional[str] = None
    email:        Optional[EmailStr] = None
    phone:        Optional[str] = None
    source_page:  Optional[str] = None
    utm_source:   Optional[str] = None
    utm_medium:   Optional[str] = None
    utm_campaign: Optional[str] = None
    referrer:     Optional[str] = None
    meta:         Optional[Dict[str, Any]] = None

class LeadResponse(BaseModel):
    lead_id: str
    session_id: Optional[str] = None
    source_page: str
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    referrer: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    stage: str
    cta_clicked_at: Optional[datetime] = None
    account_completed_at: Optional[datetime] = None
    address_completed_at: Optional[datetime] = None
    payment_viewed_at: Optional[datetime] = None
    events: List[Dict[str, Any]] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# CTA Schemas
class CtaClickIn(BaseModel):
    button_name: str = Field(min_length=1)
    page_url:    str = Field(min_length=1)
    device_type: Optional[str] = None
    user_agent:  Optional[str] = None
    session_id:  Optional[str] = None
    user_id:     Optional[str] = None
    referrer:    Optional[str] = None

class CtaClickResponse(BaseModel):
    id: str
    button_name: str
    page_url: str
    device_type: Optional[str] = None
    session_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Subscriber Schemas
class SubscriberCreate(BaseModel):
    lead_id: str
    plan_code: str
    currency: str = Field(min_length=3, max_length=3)
    amount_minor: int
    sumit_customer_id: str = Field(min_length=1)
    sumit_payment_method: Optional[str] = None
    sumit_subscription_id: Optional[str] = None
    email: Optional[EmailStr] = None
    charged_now: bool = False

class SubscriberResponse(BaseModel):
    subscriber_id: str
    lead_id: Optional[str] = None
    email: str
    full_name: Optional[str] = None
    plan_code: str
    currency: str
    amount_minor: int
    status: str
    sumit_customer_id: str
    sumit_payment_method: Optional[str] = None
    sumit_subscription_id: Optional[str] = None
    trial_start: Optional[datetime] = None
    trial_end: Optional[datetime] = None
    last_charge_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Billing Schemas
class CheckoutRequest(BaseModel):
    lead_id: str
    plan_code: str
    single_use_token: str = Field(min_length=1)
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None

# Support Schemas
class TicketCreate(BaseModel):
    name: str = Field(min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    message: str = Field(min_length=1)
    source_page: str = Field(min_length=1)

class TicketUpdate(BaseModel):
    status: Optional[str] = None
    tags: Optional[List[str]] = None
    pipeline_stage: Optional[str] = None
    assigned_to: Optional[str] = None

class TicketResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    source_page: Optional[str] = None
    last_message: Optional[str] = None
    status: str
    priority: Optional[str] = None
    tags: List[str] = []
    pipeline_stage: Optional[str] = None
    assigned_to: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TicketListItem(TicketResponse):
    message_count: int = 0

class MessageCreate(BaseModel):
    ticket_id: str
    sender_type: str = "client"      # client | admin
    sender_name: Optional[str] = None
    message: str = Field(min_length=1)
    file_url: Optional[str] = None

class MessageResponse(BaseModel):
    id: str
    ticket_id: str
    sender_type: str
    sender_name: Optional[str] = None
    sender_id: Optional[str] = None
    message: str
    file_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Upload Schemas
class AttachmentRequest(BaseModel):
    filename: str = Field(min_length=1)
    content_type: str = Field(min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None

class AttachmentResponse(BaseModel):
    upload_url: str
    file_key: str
    expires_in: int

# Messaging Schemas
class WhatsAppSend(BaseModel):
    to: str = Field(min_length=1)
    message: str = Field(min_length=1)

class EmailSend(BaseModel):
    to: EmailStr
    subject: str = Field(min_length=1)
    html: str = Field(min_length=1)
