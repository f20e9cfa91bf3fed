"""Create memberships and membership_periods tables

Revision ID: 001
Revises:
Create Date: 2024-07-01 00:00:00.000000

- memberships: recurring plans with their validity window
- membership_periods: billing periods, deleted with their membership
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create enums
    membershipstate = postgresql.ENUM('pending', 'active', 'expired', 'terminated', name='membershipstate', create_type=False)
    paymentmethod = postgresql.ENUM('cash', 'credit card', name='paymentmethod', create_type=False)
    billinginterval = postgresql.ENUM('weekly', 'monthly', 'yearly', name='billinginterval', create_type=False)

    membershipstate.create(op.get_bind(), checkfirst=True)
    paymentmethod.create(op.get_bind(), checkfirst=True)
    billinginterval.create(op.get_bind(), checkfirst=True)

    # Memberships table
    op.create_table(
        'memberships',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('uuid', sa.String(36), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False, index=True),
        sa.Column('recurring_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('valid_from', sa.Date(), nullable=False),
        sa.Column('valid_until', sa.Date(), nullable=False),
        sa.Column('state', membershipstate, nullable=False, server_default='pending'),
        sa.Column('assigned_by', sa.String(255), nullable=True),
        sa.Column('payment_method', paymentmethod, nullable=False),
        sa.Column('billing_interval', billinginterval, nullable=False),
        sa.Column('billing_periods', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    # Membership periods table
    op.create_table(
        'membership_periods',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('uuid', sa.String(36), nullable=False, unique=True),
        sa.Column('membership_id', sa.Integer(), sa.ForeignKey('memberships.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('state', membershipstate, nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('membership_periods')
    op.drop_table('memberships')

    op.execute('DROP TYPE IF EXISTS billinginterval')
    op.execute('DROP TYPE IF EXISTS paymentmethod')
    op.execute('DROP TYPE IF EXISTS membershipstate')
