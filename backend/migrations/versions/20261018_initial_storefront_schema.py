"""Initial storefront schema: products, stock levels, keyed records

Revision ID: 20261018_storefront
Revises:
Create Date: 2026-10-18

Creates:
1. products (catalog metadata)
2. stock_levels (available-to-sell counts, never negative)
3. stored_records (keyed serialized values with an optimistic version column)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_storefront'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('products',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('category', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('image', sa.String(length=512), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_products_category_name', 'products', ['category', 'name'])

    op.create_table('stock_levels',
        sa.Column('product_id', sa.String(length=64), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('quantity >= 0', name='ck_stock_levels_nonnegative'),
        sa.PrimaryKeyConstraint('product_id'),
    )

    op.create_table('stored_records',
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('key'),
    )


def downgrade():
    op.drop_table('stored_records')
    op.drop_table('stock_levels')
    op.drop_index('ix_products_category_name', table_name='products')
    op.drop_table('products')
