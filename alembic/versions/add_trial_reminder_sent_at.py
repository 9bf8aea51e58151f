"""add trial reminder stamp to subscribers

Revision ID: add_trial_reminder_sent_at
Revises: 001
Create Date: 2026-09-14

"""
from alembic import op
import sqlalchemy as sa

revision = 'add_trial_reminder_sent_at'
down_revision = '001'
branch_labels = None
depends_on = None

def upgrade():
    op.add_column('subscribers', sa.Column('trial_reminder_sent_at', sa.DateTime(), nullable=True))

def downgrade():
    op.drop_column('subscribers', 'trial_reminder_sent_at')
