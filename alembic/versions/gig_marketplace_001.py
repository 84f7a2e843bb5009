"""Create gig marketplace tables

This migration adds:
1. users table (client/freelancer/admin with cached earnings and rating)
2. gigs table
3. orders table (unique order_number and checkout_reference)
4. order_messages table (append-only, unique per order position)
5. payments table (one per order via unique order_id)
6. withdrawals table
7. reviews table (one per order via unique order_id)

Revision ID: gig_marketplace_001
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = 'gig_marketplace_001'
down_revision = None
branch_labels = None
depends_on = None


def _enum(name, *values):
    return sa.Enum(*values, name=name)


PARTY_ROLE = ('client', 'freelancer', 'admin')


def upgrade():
    # 1. Users
    op.create_table('users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('role', _enum('userrole', 'client', 'freelancer', 'admin'), nullable=False),

        # Profile
        sa.Column('profile_picture', sa.String(500)),
        sa.Column('bio', sa.Text),
        sa.Column('phone', sa.String(20)),
        sa.Column('location', sa.String(100)),
        sa.Column('timezone', sa.String(50)),

        # Freelancer-specific
        sa.Column('professional_title', sa.String(200)),
        sa.Column('skills', sa.JSON),
        sa.Column('languages', sa.JSON),
        sa.Column('hourly_rate', sa.Numeric(12, 2)),
        sa.Column('experience', _enum('experiencelevel', 'Beginner', 'Intermediate', 'Expert')),

        sa.Column('is_verified', sa.Boolean, default=False),
        sa.Column('is_active', sa.Boolean, default=True),

        # Derived statistics
        sa.Column('total_earnings', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_orders', sa.Integer, nullable=False, server_default='0'),
        sa.Column('average_rating', sa.Numeric(3, 1), nullable=False, server_default='0'),
        sa.Column('total_reviews', sa.Integer, nullable=False, server_default='0'),

        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # 2. Gigs
    op.create_table('gigs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('freelancer_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('subcategory', sa.String(100)),
        sa.Column('tags', sa.JSON),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('price_type', sa.String(20), server_default='fixed'),
        sa.Column('min_price', sa.Numeric(12, 2)),
        sa.Column('max_price', sa.Numeric(12, 2)),
        sa.Column('currency', sa.String(3), server_default='INR'),
        sa.Column('delivery_time', sa.Integer, nullable=False),
        sa.Column('revisions', sa.Integer, nullable=False, server_default='0'),
        sa.Column('images', sa.JSON),
        sa.Column('video', sa.String(500)),
        sa.Column('status', _enum('gigstatusdb', 'draft', 'active', 'paused'), nullable=False, server_default='draft'),

        # Counters
        sa.Column('views', sa.Integer, nullable=False, server_default='0'),
        sa.Column('clicks', sa.Integer, nullable=False, server_default='0'),
        sa.Column('orders', sa.Integer, nullable=False, server_default='0'),
        sa.Column('rating', sa.Numeric(3, 1), nullable=False, server_default='0'),
        sa.Column('reviews_count', sa.Integer, nullable=False, server_default='0'),

        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_gigs_freelancer_id', 'gigs', ['freelancer_id'])
    op.create_index('ix_gigs_category', 'gigs', ['category'])

    # 3. Orders
    op.create_table('orders',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('order_number', sa.String(20), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('requirements', sa.Text),
        sa.Column('gig_id', sa.String(36), sa.ForeignKey('gigs.id'), nullable=False),
        sa.Column('client_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('freelancer_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),

        # Pricing
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(3), server_default='INR'),
        sa.Column('platform_fee', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('freelancer_amount', sa.Numeric(12, 2), nullable=False),

        sa.Column('status', _enum('orderstatusdb', 'pending', 'in_progress', 'delivered', 'completed', 'cancelled', 'disputed'),
                  nullable=False, server_default='pending'),

        # Timeline
        sa.Column('order_date', sa.DateTime, server_default=sa.func.now()),
        sa.Column('start_date', sa.DateTime),
        sa.Column('delivery_date', sa.DateTime, nullable=False),
        sa.Column('completed_date', sa.DateTime),
        sa.Column('deliverables', sa.JSON),
        sa.Column('revisions', sa.Integer, nullable=False, server_default='0'),
        sa.Column('max_revisions', sa.Integer, nullable=False, server_default='0'),

        # Payment & escrow
        sa.Column('payment_status', _enum('orderpaymentstatusdb', 'pending', 'paid', 'refunded', 'disputed'),
                  nullable=False, server_default='pending'),
        sa.Column('checkout_reference', sa.String(100), unique=True),
        sa.Column('is_escrowed', sa.Boolean, default=True),
        sa.Column('escrow_released', sa.Boolean, default=False),
        sa.Column('escrow_release_date', sa.DateTime),

        # Cancellation & dispute
        sa.Column('cancellation_reason', sa.Text),
        sa.Column('cancelled_by', _enum('partyroledb', *PARTY_ROLE)),
        sa.Column('cancellation_date', sa.DateTime),
        sa.Column('is_disputed', sa.Boolean, default=False),
        sa.Column('dispute_reason', sa.Text),
        sa.Column('dispute_date', sa.DateTime),

        sa.Column('has_review', sa.Boolean, default=False),
        sa.Column('review_id', sa.String(36)),

        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_client_id', 'orders', ['client_id'])
    op.create_index('ix_orders_freelancer_id', 'orders', ['freelancer_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_payment_status', 'orders', ['payment_status'])
    op.create_index('ix_orders_client_created', 'orders', ['client_id', 'created_at'])
    op.create_index('ix_orders_freelancer_created', 'orders', ['freelancer_id', 'created_at'])

    # 4. Order messages
    op.create_table('order_messages',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('order_id', sa.String(36), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer, nullable=False),
        sa.Column('sender', postgresql.ENUM(*PARTY_ROLE, name='partyroledb', create_type=False), nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('attachments', sa.JSON),
        sa.Column('timestamp', sa.DateTime, nullable=False),
        sa.UniqueConstraint('order_id', 'position', name='uq_order_messages_position'),
    )

    # 5. Payments
    op.create_table('payments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('payment_number', sa.String(20), nullable=False),
        sa.Column('transaction_id', sa.String(100)),
        sa.Column('order_id', sa.String(36), sa.ForeignKey('orders.id'), nullable=False, unique=True),
        sa.Column('client_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('freelancer_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(3), server_default='INR'),
        sa.Column('platform_fee', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('freelancer_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('payment_method', _enum('paymentmethoddb', 'credit_card', 'debit_card', 'upi', 'net_banking', 'wallet', 'bank_transfer'),
                  nullable=False),
        sa.Column('payment_gateway', sa.String(30)),
        sa.Column('status', _enum('paymentstatusdb', 'pending', 'processing', 'completed', 'failed', 'refunded', 'cancelled'),
                  nullable=False, server_default='pending'),
        sa.Column('payment_date', sa.DateTime, server_default=sa.func.now()),
        sa.Column('processed_date', sa.DateTime),
        sa.Column('completed_date', sa.DateTime),
        sa.Column('is_escrowed', sa.Boolean, default=True),
        sa.Column('escrow_release_date', sa.DateTime),
        sa.Column('escrow_released', sa.Boolean, default=False),
        sa.Column('refund_amount', sa.Numeric(12, 2), server_default='0'),
        sa.Column('refund_reason', sa.Text),
        sa.Column('refund_date', sa.DateTime),
        sa.Column('gateway_response', sa.JSON),
        sa.Column('billing_details', sa.JSON),
        sa.Column('notes', sa.Text),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_payments_payment_number', 'payments', ['payment_number'], unique=True)
    op.create_index('ix_payments_transaction_id', 'payments', ['transaction_id'])
    op.create_index('ix_payments_client_id', 'payments', ['client_id'])
    op.create_index('ix_payments_freelancer_id', 'payments', ['freelancer_id'])
    op.create_index('ix_payments_status', 'payments', ['status'])

    # 6. Withdrawals
    op.create_table('withdrawals',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('withdrawal_number', sa.String(20), nullable=False),
        sa.Column('freelancer_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(3), server_default='INR'),
        sa.Column('processing_fee', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('net_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('method', _enum('withdrawalmethoddb', 'bank_transfer', 'upi', 'paypal', 'razorpay'), nullable=False),
        sa.Column('account_details', sa.JSON),
        sa.Column('status', _enum('withdrawalstatusdb', 'pending', 'processing', 'completed', 'failed', 'cancelled'),
                  nullable=False, server_default='pending'),
        sa.Column('requested_date', sa.DateTime, server_default=sa.func.now()),
        sa.Column('processed_date', sa.DateTime),
        sa.Column('completed_date', sa.DateTime),
        sa.Column('estimated_delivery', sa.DateTime),
        sa.Column('gateway_response', sa.JSON),
        sa.Column('rejection_reason', sa.Text),
        sa.Column('notes', sa.Text),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_withdrawals_withdrawal_number', 'withdrawals', ['withdrawal_number'], unique=True)
    op.create_index('ix_withdrawals_freelancer_id', 'withdrawals', ['freelancer_id'])
    op.create_index('ix_withdrawals_status', 'withdrawals', ['status'])

    # 7. Reviews
    op.create_table('reviews',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('order_id', sa.String(36), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('gig_id', sa.String(36), sa.ForeignKey('gigs.id'), nullable=False),
        sa.Column('client_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('freelancer_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('rating', sa.Integer, nullable=False),
        sa.Column('review_text', sa.Text, nullable=False),
        sa.Column('freelancer_reply', sa.Text),
        sa.Column('reply_date', sa.DateTime),
        sa.Column('status', _enum('reviewstatusdb', 'active', 'hidden', 'reported'), nullable=False, server_default='active'),
        sa.Column('categories', sa.JSON),
        sa.Column('attachments', sa.JSON),
        sa.Column('helpful_votes', sa.Integer, server_default='0'),
        sa.Column('total_votes', sa.Integer, server_default='0'),
        sa.Column('is_verified', sa.Boolean, default=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_reviews_gig_id', 'reviews', ['gig_id'])
    op.create_index('ix_reviews_client_id', 'reviews', ['client_id'])
    op.create_index('ix_reviews_freelancer_id', 'reviews', ['freelancer_id'])


def downgrade():
    # Drop tables in reverse order
    op.drop_table('reviews')
    op.drop_table('withdrawals')
    op.drop_table('payments')
    op.drop_table('order_messages')
    op.drop_table('orders')
    op.drop_table('gigs')
    op.drop_table('users')

    # Drop enums
    for name in ('reviewstatusdb', 'withdrawalstatusdb', 'withdrawalmethoddb', 'paymentstatusdb',
                 'paymentmethoddb', 'partyroledb', 'orderpaymentstatusdb', 'orderstatusdb',
                 'gigstatusdb', 'experiencelevel', 'userrole'):
        op.execute(f"DROP TYPE IF EXISTS {name}")
