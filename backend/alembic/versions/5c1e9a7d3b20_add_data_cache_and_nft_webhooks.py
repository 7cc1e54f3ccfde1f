"""add_data_cache_and_nft_webhooks

Revision ID: 5c1e9a7d3b20
Revises:
Create Date: 2026-10-19 09:12:41.118402

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c1e9a7d3b20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Durable tier of the collection metadata cache
    op.create_table(
        'data_cache',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=255), nullable=False),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('fetched_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('ttl_seconds', sa.Integer(), nullable=False, server_default='1800'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_data_cache_id', 'data_cache', ['id'], unique=False)
    op.create_index('ix_data_cache_key', 'data_cache', ['key'], unique=True)

    # Webhook log read back by the collections GET
    op.create_table(
        'nft_webhooks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('chain', sa.String(length=20), nullable=False),
        sa.Column('address', sa.String(length=64), nullable=False),
        sa.Column('collections', sa.Text(), nullable=False),
        sa.Column('stream_id', sa.String(length=100), nullable=True),
        sa.Column('raw', sa.Text(), nullable=True),
        sa.Column('received_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_nft_webhooks_id', 'nft_webhooks', ['id'], unique=False)
    op.create_index('ix_nft_webhooks_lookup', 'nft_webhooks', ['address', 'chain', 'received_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_nft_webhooks_lookup', table_name='nft_webhooks')
    op.drop_index('ix_nft_webhooks_id', table_name='nft_webhooks')
    op.drop_table('nft_webhooks')
    op.drop_index('ix_data_cache_key', table_name='data_cache')
    op.drop_index('ix_data_cache_id', table_name='data_cache')
    op.drop_table('data_cache')
