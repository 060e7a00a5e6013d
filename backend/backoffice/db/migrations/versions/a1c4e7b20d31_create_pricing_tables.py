"""create catalog, purchase order and pricing tables

Revision ID: a1c4e7b20d31
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1c4e7b20d31'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('full_name', sa.String(length=128), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=False, server_default=sa.text("'staff'")),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    # ---- 目录 ----
    for table in ('product_types', 'brands'):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('name', sa.String(length=128), nullable=False),
            *_timestamps(),
            sa.UniqueConstraint('name', name=f'uq_{table}_name'),
        )

    op.create_table(
        'product_models',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('brand_id', sa.Integer(), sa.ForeignKey('brands.id', name='fk_product_models_brand_id_brands'), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('name', name='uq_product_models_name'),
    )

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('product_type_id', sa.Integer(), sa.ForeignKey('product_types.id', name='fk_products_product_type_id_product_types'), nullable=True),
        sa.Column('brand_id', sa.Integer(), sa.ForeignKey('brands.id', name='fk_products_brand_id_brands'), nullable=True),
        sa.Column('model_id', sa.Integer(), sa.ForeignKey('product_models.id', name='fk_products_model_id_product_models'), nullable=True),
        sa.Column('cost_of_goods', sa.Numeric(14, 4), nullable=True),
        sa.Column('store_price', sa.Numeric(12, 2), nullable=False, server_default=sa.text('0')),
        sa.Column('route_price', sa.Numeric(12, 2), nullable=False, server_default=sa.text('0')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.UniqueConstraint('sku', name='uq_products_sku'),
    )
    op.create_index('idx_products_type', 'products', ['product_type_id'])
    op.create_index('idx_products_name', 'products', ['name'])

    # ---- 采购单（成本历史）----
    op.create_table(
        'purchase_orders',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='SET NULL', name='fk_purchase_orders_product_id_products'), nullable=True),
        sa.Column('product_type_id', sa.Integer(), sa.ForeignKey('product_types.id', name='fk_purchase_orders_product_type_id_product_types'), nullable=True),
        sa.Column('brand_id', sa.Integer(), sa.ForeignKey('brands.id', name='fk_purchase_orders_brand_id_brands'), nullable=True),
        sa.Column('model_id', sa.Integer(), sa.ForeignKey('product_models.id', name='fk_purchase_orders_model_id_product_models'), nullable=True),
        sa.Column('cost_of_goods', sa.Numeric(14, 4), nullable=True),
        sa.Column('order_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        *_timestamps(),
    )
    op.create_index('idx_purchase_orders_product_date', 'purchase_orders', ['product_id', 'order_date'])
    op.create_index('idx_purchase_orders_generic', 'purchase_orders', ['product_type_id', 'brand_id', 'model_id'])

    # ---- 定价三级配置 ----
    op.create_table(
        'pricing_settings',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('store_markup_percent', sa.Numeric(7, 2), nullable=False, server_default=sa.text('0')),
        sa.Column('route_markup_percent', sa.Numeric(7, 2), nullable=False, server_default=sa.text('0')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_by', sa.Integer(), sa.ForeignKey('users.id', name='fk_pricing_settings_updated_by_users'), nullable=True),
    )

    op.create_table(
        'product_type_pricing_overrides',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('product_type_id', sa.Integer(), sa.ForeignKey('product_types.id', ondelete='CASCADE', name='fk_product_type_pricing_overrides_product_type_id_product_types'), nullable=False),
        sa.Column('store_markup_percent', sa.Numeric(7, 2), nullable=True),
        sa.Column('route_markup_percent', sa.Numeric(7, 2), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_by', sa.Integer(), sa.ForeignKey('users.id', name='fk_product_type_pricing_overrides_updated_by_users'), nullable=True),
        sa.UniqueConstraint('product_type_id', name='uq_product_type_pricing_overrides_product_type_id'),
    )

    op.create_table(
        'product_pricing_overrides',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='CASCADE', name='fk_product_pricing_overrides_product_id_products'), nullable=False),
        sa.Column('store_markup_percent', sa.Numeric(7, 2), nullable=True),
        sa.Column('route_markup_percent', sa.Numeric(7, 2), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_by', sa.Integer(), sa.ForeignKey('users.id', name='fk_product_pricing_overrides_updated_by_users'), nullable=True),
        sa.UniqueConstraint('product_id', name='uq_product_pricing_overrides_product_id'),
    )


def downgrade() -> None:
    op.drop_table('product_pricing_overrides')
    op.drop_table('product_type_pricing_overrides')
    op.drop_table('pricing_settings')

    op.drop_index('idx_purchase_orders_generic', table_name='purchase_orders')
    op.drop_index('idx_purchase_orders_product_date', table_name='purchase_orders')
    op.drop_table('purchase_orders')

    op.drop_index('idx_products_name', table_name='products')
    op.drop_index('idx_products_type', table_name='products')
    op.drop_table('products')

    op.drop_table('product_models')
    op.drop_table('brands')
    op.drop_table('product_types')

    op.drop_index('ix_users_username', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')
