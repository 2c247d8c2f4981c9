"""init_db_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Schema:
- user, event: read-only mirrors of the user directory and event catalog
- ticket_category: capacity per category (minted <= max_tickets)
- ticket: minted tickets, resale listing and payout destination
- transaction: payment ledger (PENDING -> SUCCESS | FAILED)
- transaction_ticket: tickets bought by a PURCHASE or RESALE transaction
- wallet: one balance per user (balance >= 0), bcrypt PIN hash
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create all tables with final schema."""

    # ========== STEP 1: Directories ==========

    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='user'),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_email'), 'user', ['email'], unique=True)

    op.create_table(
        'event',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organizer_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('starts_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('primary_fee_bps', sa.Integer(), nullable=False, server_default='500'),
        sa.Column('resale_fee_bps', sa.Integer(), nullable=False, server_default='500'),
        sa.Column('royalty_fee_bps', sa.Integer(), nullable=False, server_default='500'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_event_organizer_id'), 'event', ['organizer_id'])

    # ========== STEP 2: Inventory ==========

    op.create_table(
        'ticket_category',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('price', sa.BigInteger(), nullable=False),
        sa.Column('max_tickets', sa.Integer(), nullable=False),
        sa.Column('minted', sa.Integer(), nullable=False, server_default='0'),
        sa.CheckConstraint('minted <= max_tickets', name='ck_category_capacity'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_ticket_category_event_id'), 'ticket_category', ['event_id'])

    op.create_table(
        'ticket',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('ticket_category_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('is_issued', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_listed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('resale_price', sa.BigInteger(), nullable=True),
        sa.Column('listed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('resale_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('resale_commission', sa.BigInteger(), nullable=True),
        sa.Column('sold_to', sa.Integer(), nullable=True),
        sa.Column('bank_code', sa.String(length=16), nullable=True),
        sa.Column('account_number', sa.String(length=32), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['ticket_category_id'], ['ticket_category.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )
    op.create_index(op.f('ix_ticket_event_id'), 'ticket', ['event_id'])
    op.create_index(op.f('ix_ticket_ticket_category_id'), 'ticket', ['ticket_category_id'])
    op.create_index(op.f('ix_ticket_user_id'), 'ticket', ['user_id'])
    op.create_index(op.f('ix_ticket_is_listed'), 'ticket', ['is_listed'])
    op.create_index(op.f('ix_ticket_sold_to'), 'ticket', ['sold_to'])

    # ========== STEP 3: Ledger ==========

    op.create_table(
        'transaction',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('reference', sa.String(length=128), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING'),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=True),
        sa.Column('ticket_category_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_transaction_reference'), 'transaction', ['reference'], unique=True)
    op.create_index(op.f('ix_transaction_user_id'), 'transaction', ['user_id'])
    op.create_index(op.f('ix_transaction_event_id'), 'transaction', ['event_id'])

    op.create_table(
        'transaction_ticket',
        sa.Column('transaction_id', sa.Integer(), nullable=False),
        sa.Column('ticket_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['transaction_id'], ['transaction.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['ticket_id'], ['ticket.id']),
        sa.PrimaryKeyConstraint('transaction_id', 'ticket_id'),
    )
    op.create_index(
        op.f('ix_transaction_ticket_transaction_id'), 'transaction_ticket', ['transaction_id']
    )
    op.create_index(op.f('ix_transaction_ticket_ticket_id'), 'transaction_ticket', ['ticket_id'])

    # ========== STEP 4: Wallets ==========

    op.create_table(
        'wallet',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('balance', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('pin_hash', sa.String(length=128), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('balance >= 0', name='ck_wallet_balance_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_wallet_user_id'), 'wallet', ['user_id'], unique=True)


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('wallet')
    op.drop_table('transaction_ticket')
    op.drop_table('transaction')
    op.drop_table('ticket')
    op.drop_table('ticket_category')
    op.drop_table('event')
    op.drop_table('user')
