"""create_chain_tables

Revision ID: 2026_10_18_120000
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '2026_10_18_120000'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'blocks',
        sa.Column('block_number', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('chain_id', sa.BigInteger(), nullable=False),
        sa.Column('block_hash', postgresql.BYTEA(), nullable=False),
        sa.Column('parent_hash', postgresql.BYTEA(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('size', sa.Integer(), nullable=False),
        sa.Column('gas_limit', sa.Numeric(78, 0), nullable=False),
        sa.Column('gas_used', sa.Numeric(78, 0), nullable=False),
        sa.Column('transactions_root', postgresql.BYTEA(), nullable=False),
        sa.Column('state_root', postgresql.BYTEA(), nullable=False),
        sa.Column('receipts_root', postgresql.BYTEA(), nullable=False),
        sa.PrimaryKeyConstraint('block_number'),
    )
    op.create_index('ix_blocks_hash', 'blocks', ['block_hash'], unique=True)
    op.create_index('ix_blocks_timestamp', 'blocks', ['timestamp'], unique=False)

    op.create_table(
        'transactions',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('transaction_index', sa.Integer(), nullable=False),
        sa.Column('transaction_hash', postgresql.BYTEA(), nullable=False),
        sa.Column('from_address', postgresql.BYTEA(), nullable=False),
        sa.Column('to_address', postgresql.BYTEA(), nullable=True),
        sa.Column('nonce', sa.Numeric(78, 0), nullable=False),
        sa.Column('gas_price', sa.Numeric(78, 0), nullable=False),
        sa.Column('gas_limit', sa.Numeric(78, 0), nullable=False),
        sa.Column('gas_used', sa.Numeric(78, 0), nullable=False),
        sa.Column('value', sa.Numeric(78, 0), nullable=False),
        sa.Column('input', postgresql.BYTEA(), nullable=False),
        sa.Column('v', sa.Numeric(78, 0), nullable=False),
        sa.Column('r', sa.Numeric(78, 0), nullable=False),
        sa.Column('s', sa.Numeric(78, 0), nullable=False),
        sa.Column('status', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['block_number'], ['blocks.block_number']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('block_number', 'transaction_index', name='uq_transactions_block_index'),
    )
    op.create_index('ix_transactions_hash', 'transactions', ['transaction_hash'], unique=True)
    op.create_index('ix_transactions_from', 'transactions', ['from_address'], unique=False)

    op.create_table(
        'events',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('transaction_id', sa.BigInteger(), nullable=False),
        sa.Column('log_index', sa.Integer(), nullable=False),
        sa.Column('topic0', postgresql.BYTEA(), nullable=True),
        sa.Column('topic1', postgresql.BYTEA(), nullable=True),
        sa.Column('topic2', postgresql.BYTEA(), nullable=True),
        sa.Column('topic3', postgresql.BYTEA(), nullable=True),
        sa.Column('data', postgresql.BYTEA(), nullable=False),
        sa.ForeignKeyConstraint(['transaction_id'], ['transactions.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('transaction_id', 'log_index', name='uq_events_transaction_log'),
    )
    op.create_index('ix_events_topic0', 'events', ['topic0'], unique=False)

    op.create_table(
        'filters',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('kind', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('client', sa.String(length=64), nullable=False),
        sa.Column('params', sa.JSON(), nullable=True),
        sa.Column('origin', sa.BigInteger(), nullable=False),
        sa.Column('cursor', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    # new-block notifications for idle pollers
    op.execute(
        """
        CREATE OR REPLACE FUNCTION notify_block() RETURNS trigger AS $$
        BEGIN
            PERFORM pg_notify('block', NEW.block_number::text);
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql
        """
    )
    op.execute(
        """
        CREATE TRIGGER blocks_notify
        AFTER INSERT ON blocks
        FOR EACH ROW EXECUTE FUNCTION notify_block()
        """
    )


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS blocks_notify ON blocks")
    op.execute("DROP FUNCTION IF EXISTS notify_block()")
    op.drop_table('filters')
    op.drop_index('ix_events_topic0', table_name='events')
    op.drop_table('events')
    op.drop_index('ix_transactions_from', table_name='transactions')
    op.drop_index('ix_transactions_hash', table_name='transactions')
    op.drop_table('transactions')
    op.drop_index('ix_blocks_timestamp', table_name='blocks')
    op.drop_index('ix_blocks_hash', table_name='blocks')
    op.drop_table('blocks')
