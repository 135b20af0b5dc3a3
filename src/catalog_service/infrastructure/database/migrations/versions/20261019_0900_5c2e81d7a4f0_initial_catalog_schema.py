"""Initial catalog schema

Revision ID: 5c2e81d7a4f0
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5c2e81d7a4f0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create stores table
    op.create_table('stores',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('url', sa.String(length=500), nullable=False),
    sa.Column('description', sa.Text(), nullable=False),
    sa.Column('logo', sa.String(length=1000), nullable=False),
    sa.Column('shop_id', sa.BigInteger(), nullable=True),
    sa.Column('access_token', sa.String(length=255), nullable=True),
    sa.Column('last_sync_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('url'),
    schema='catalog'
    )
    op.create_index(op.f('ix_catalog_stores_shop_id'), 'stores', ['shop_id'], unique=True, schema='catalog')

    # Create products table
    op.create_table('products',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('shop_id', sa.BigInteger(), nullable=False),
    sa.Column('product_id', sa.BigInteger(), nullable=False),
    sa.Column('name', sa.String(length=500), nullable=False),
    sa.Column('description', sa.Text(), nullable=False),
    sa.Column('price', sa.Float(), nullable=False),
    sa.Column('handle', sa.String(length=500), nullable=True),
    sa.Column('permalink', sa.String(length=1000), nullable=True),
    sa.Column('published', sa.Boolean(), nullable=False),
    sa.Column('tags', sa.ARRAY(sa.String()), nullable=False),
    sa.Column('categories', sa.ARRAY(sa.BigInteger()), nullable=False),
    sa.Column('main_image', sa.String(length=1000), nullable=True),
    sa.Column('created_at_remote', sa.DateTime(timezone=True), nullable=True),
    sa.Column('updated_at_remote', sa.DateTime(timezone=True), nullable=True),
    sa.Column('synced_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('sync_error', sa.Text(), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('shop_id', 'product_id', name='uq_products_shop_product'),
    schema='catalog'
    )
    op.create_index('ix_products_shop_handle', 'products', ['shop_id', 'handle'], unique=False, schema='catalog')
    op.create_index('ix_products_shop_published', 'products', ['shop_id', 'published'], unique=False, schema='catalog')
    # GIN index for tag overlap lookups (related products, tag filters)
    op.execute("CREATE INDEX ix_products_tags_gin ON catalog.products USING gin (tags)")

    # Create variants table
    op.create_table('variants',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('shop_id', sa.BigInteger(), nullable=False),
    sa.Column('product_id', sa.BigInteger(), nullable=False),
    sa.Column('variant_id', sa.BigInteger(), nullable=False),
    sa.Column('sku', sa.String(length=255), nullable=False),
    sa.Column('price', sa.Float(), nullable=False),
    sa.Column('stock', sa.Integer(), nullable=False),
    sa.Column('options', sa.ARRAY(sa.String()), nullable=False),
    sa.Column('updated_at_remote', sa.DateTime(timezone=True), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('shop_id', 'product_id', 'variant_id', name='uq_variants_shop_product_variant'),
    schema='catalog'
    )
    op.create_index('ix_variants_shop_product', 'variants', ['shop_id', 'product_id'], unique=False, schema='catalog')

    # Create images table
    op.create_table('images',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('shop_id', sa.BigInteger(), nullable=False),
    sa.Column('product_id', sa.BigInteger(), nullable=False),
    sa.Column('image_id', sa.BigInteger(), nullable=False),
    sa.Column('src', sa.String(length=1000), nullable=False),
    sa.Column('alt', sa.String(length=500), nullable=False),
    sa.Column('position', sa.Integer(), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('shop_id', 'product_id', 'image_id', name='uq_images_shop_product_image'),
    schema='catalog'
    )
    op.create_index('ix_images_shop_product', 'images', ['shop_id', 'product_id'], unique=False, schema='catalog')

    # Create categories table
    op.create_table('categories',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('shop_id', sa.BigInteger(), nullable=False),
    sa.Column('category_id', sa.BigInteger(), nullable=False),
    sa.Column('name', sa.String(length=500), nullable=False),
    sa.Column('description', sa.Text(), nullable=False),
    sa.Column('handle', sa.String(length=500), nullable=True),
    sa.Column('parent', sa.BigInteger(), nullable=True),
    sa.Column('subcategories', sa.ARRAY(sa.BigInteger()), nullable=False),
    sa.Column('seo_title', sa.String(length=500), nullable=False),
    sa.Column('seo_description', sa.Text(), nullable=False),
    sa.Column('google_shopping_category', sa.String(length=500), nullable=True),
    sa.Column('created_at_remote', sa.DateTime(timezone=True), nullable=True),
    sa.Column('updated_at_remote', sa.DateTime(timezone=True), nullable=True),
    sa.Column('synced_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('sync_error', sa.Text(), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('shop_id', 'category_id', name='uq_categories_shop_category'),
    schema='catalog'
    )
    op.create_index('ix_categories_shop_parent', 'categories', ['shop_id', 'parent'], unique=False, schema='catalog')


def downgrade() -> None:
    op.drop_index('ix_categories_shop_parent', table_name='categories', schema='catalog')
    op.drop_table('categories', schema='catalog')
    op.drop_index('ix_images_shop_product', table_name='images', schema='catalog')
    op.drop_table('images', schema='catalog')
    op.drop_index('ix_variants_shop_product', table_name='variants', schema='catalog')
    op.drop_table('variants', schema='catalog')
    op.execute("DROP INDEX IF EXISTS catalog.ix_products_tags_gin")
    op.drop_index('ix_products_shop_published', table_name='products', schema='catalog')
    op.drop_index('ix_products_shop_handle', table_name='products', schema='catalog')
    op.drop_table('products', schema='catalog')
    op.drop_index(op.f('ix_catalog_stores_shop_id'), table_name='stores', schema='catalog')
    op.drop_table('stores', schema='catalog')
