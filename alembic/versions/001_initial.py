"""Initial database schema

Revision ID: 001
Revises: 
Create Date: 2026-08-26

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False, server_default='user'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_phone', 'users', ['phone'])

    # Create leads table
    op.create_table(
        'leads',
        sa.Column('lead_id', sa.String(), nullable=False),
        sa.Column('session_id', sa.String(), nullable=True),
        sa.Column('source_page', sa.String(), nullable=False),
        sa.Column('utm_source', sa.String(), nullable=True),
        sa.Column('utm_medium', sa.String(), nullable=True),
        sa.Column('utm_campaign', sa.String(), nullable=True),
        sa.Column('referrer', sa.String(), nullable=True),
        sa.Column('user_agent', sa.String(), nullable=True),
        sa.Column('ip_address', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('stage', sa.String(), nullable=False, server_default='cta_clicked'),
        sa.Column('cta_clicked_at', sa.DateTime(), nullable=True),
        sa.Column('account_completed_at', sa.DateTime(), nullable=True),
        sa.Column('address_completed_at', sa.DateTime(), nullable=True),
        sa.Column('payment_viewed_at', sa.DateTime(), nullable=True),
        sa.Column('events', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('lead_id')
    )
    op.create_index('ix_leads_lead_id', 'leads', ['lead_id'])
    op.create_index('ix_leads_session_id', 'leads', ['session_id'])
    op.create_index('ix_leads_source_page', 'leads', ['source_page'])
    op.create_index('ix_leads_email', 'leads', ['email'])
    op.create_index('ix_leads_stage', 'leads', ['stage'])
    op.create_index('ix_leads_created_at', 'leads', ['created_at'])

    # Create subscribers table
    op.create_table(
        'subscribers',
        sa.Column('subscriber_id', sa.String(), nullable=False),
        sa.Column('lead_id', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('plan_code', sa.String(), nullable=False),
        sa.Column('currency', sa.String(), nullable=False, server_default='USD'),
        sa.Column('amount_minor', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(), nullable=False, server_default='trial_active'),
        sa.Column('sumit_customer_id', sa.String(), nullable=False),
        sa.Column('sumit_payment_method', sa.String(), nullable=True),
        sa.Column('sumit_subscription_id', sa.String(), nullable=True),
        sa.Column('trial_start', sa.DateTime(), nullable=True),
        sa.Column('trial_end', sa.DateTime(), nullable=True),
        sa.Column('last_charge_at', sa.DateTime(), nullable=True),
        sa.Column('canceled_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('amount_minor >= 0', name='ck_subscribers_amount_minor_non_negative'),
        sa.PrimaryKeyConstraint('subscriber_id')
    )
    op.create_index('ix_subscribers_subscriber_id', 'subscribers', ['subscriber_id'])
    op.create_index('ix_subscribers_lead_id', 'subscribers', ['lead_id'], unique=True)
    op.create_index('ix_subscribers_email', 'subscribers', ['email'])
    op.create_index('ix_subscribers_status', 'subscribers', ['status'])
    op.create_index('ix_subscribers_sumit_customer_id', 'subscribers', ['sumit_customer_id'], unique=True)
    op.create_index('ix_subscribers_created_at', 'subscribers', ['created_at'])

    # Create billing_events table
    op.create_table(
        'billing_events',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('event_id', sa.String(), nullable=False),
        sa.Column('event_type', sa.String(), nullable=True),
        sa.Column('customer_id', sa.String(), nullable=True),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('outcome', sa.String(), nullable=False),
        sa.Column('received_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_billing_events_id', 'billing_events', ['id'])
    op.create_index('ix_billing_events_event_id', 'billing_events', ['event_id'], unique=True)
    op.create_index('ix_billing_events_customer_id', 'billing_events', ['customer_id'])

    # Create support_tickets table
    op.create_table(
        'support_tickets',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('source_page', sa.String(), nullable=True),
        sa.Column('last_message', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='new'),
        sa.Column('priority', sa.String(), nullable=False, server_default='medium'),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('pipeline_stage', sa.String(), nullable=False, server_default='lead'),
        sa.Column('assigned_to', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_support_tickets_id', 'support_tickets', ['id'])
    op.create_index('ix_support_tickets_email', 'support_tickets', ['email'])
    op.create_index('ix_support_tickets_phone', 'support_tickets', ['phone'])
    op.create_index('ix_support_tickets_status', 'support_tickets', ['status'])
    op.create_index('ix_support_tickets_created_at', 'support_tickets', ['created_at'])

    # Create support_messages table
    op.create_table(
        'support_messages',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('ticket_id', sa.String(), nullable=False),
        sa.Column('sender_type', sa.String(), nullable=False),
        sa.Column('sender_name', sa.String(), nullable=True),
        sa.Column('sender_id', sa.String(), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('file_url', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['ticket_id'], ['support_tickets.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_support_messages_id', 'support_messages', ['id'])
    op.create_index('ix_support_messages_ticket_id', 'support_messages', ['ticket_id'])

    # Create cta_clicks table
    op.create_table(
        'cta_clicks',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('button_name', sa.String(), nullable=False),
        sa.Column('page_url', sa.String(), nullable=False),
        sa.Column('device_type', sa.String(), nullable=True),
        sa.Column('user_agent', sa.String(), nullable=True),
        sa.Column('session_id', sa.String(), nullable=True),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('ip_address', sa.String(), nullable=True),
        sa.Column('referrer', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_cta_clicks_id', 'cta_clicks', ['id'])
    op.create_index('ix_cta_clicks_page_url', 'cta_clicks', ['page_url'])
    op.create_index('ix_cta_clicks_session_id', 'cta_clicks', ['session_id'])
    op.create_index('ix_cta_clicks_created_at', 'cta_clicks', ['created_at'])

    # Create user_actions table
    op.create_table(
        'user_actions',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('ip', sa.String(), nullable=True),
        sa.Column('ua', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_user_actions_id', 'user_actions', ['id'])
    op.create_index('ix_user_actions_user_id', 'user_actions', ['user_id'])

    # Create client_throttling table
    op.create_table(
        'client_throttling',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('contact_key', sa.String(), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_attempt', sa.DateTime(), nullable=True),
        sa.Column('blocked_until', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_client_throttling_id', 'client_throttling', ['id'])
    op.create_index('ix_client_throttling_contact_key', 'client_throttling', ['contact_key'], unique=True)

def downgrade():
    op.drop_table('client_throttling')
    op.drop_table('user_actions')
    op.drop_table('cta_clicks')
    op.drop_table('support_messages')
    op.drop_table('support_tickets')
    op.drop_table('billing_events')
    op.drop_table('subscribers')
    op.drop_table('leads')
    op.drop_table('users')
