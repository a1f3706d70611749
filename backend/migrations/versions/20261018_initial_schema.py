"""Initial schema: catalog, staff, users, sales and purchase invoices

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18

Line item tables are keyed by (header id, product id); a product appears
at most once per invoice. Header ids are UUID strings.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade():
    # ==========================================================================
    # CATALOG
    # ==========================================================================
    op.create_table('categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('color', sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_categories_name'),
        sqlite_autoincrement=True
    )

    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('barcode', sa.String(length=50), nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('stock', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('price >= 0', name='ck_products_price_non_negative'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('barcode', name='uq_products_barcode'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_products_name'), ['name'], unique=False)
        batch_op.create_index(batch_op.f('ix_products_category_id'), ['category_id'], unique=False)

    # ==========================================================================
    # STAFF AND USERS
    # ==========================================================================
    op.create_table('employees',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('salary', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('commission', sa.Numeric(precision=5, scale=2), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('commission >= 0 AND commission <= 100', name='ck_employees_commission_range'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('phone', name='uq_employees_phone'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('employees', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_employees_name'), ['name'], unique=False)

    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=100), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("role IN ('admin', 'manager', 'employee')", name='ck_users_role'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username', name='uq_users_username'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sqlite_autoincrement=True
    )

    # ==========================================================================
    # SALES
    # ==========================================================================
    op.create_table('sales',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('invoice_number', sa.String(length=50), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=True),
        sa.Column('employee_name', sa.String(length=100), nullable=True),
        sa.Column('seller_user', sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invoice_number', name='uq_sales_invoice_number'),
    )
    with op.batch_alter_table('sales', schema=None) as batch_op:
        batch_op.create_index('ix_sales_created_at', ['created_at'], unique=False)
        batch_op.create_index(batch_op.f('ix_sales_employee_id'), ['employee_id'], unique=False)

    op.create_table('sale_items',
        sa.Column('sale_id', sa.String(length=36), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_name', sa.String(length=100), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('total_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.CheckConstraint('quantity >= 1', name='ck_sale_items_quantity_positive'),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('sale_id', 'product_id'),
    )
    with op.batch_alter_table('sale_items', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_sale_items_product_id'), ['product_id'], unique=False)

    # ==========================================================================
    # PURCHASE INVOICES
    # ==========================================================================
    op.create_table('purchase_invoices',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('invoice_number', sa.String(length=50), nullable=False),
        sa.Column('supplier_name', sa.String(length=100), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invoice_number', name='uq_purchase_invoices_invoice_number'),
    )
    with op.batch_alter_table('purchase_invoices', schema=None) as batch_op:
        batch_op.create_index('ix_purchase_invoices_created_at', ['created_at'], unique=False)

    op.create_table('purchase_items',
        sa.Column('purchase_id', sa.String(length=36), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_name', sa.String(length=100), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('total_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.CheckConstraint('quantity >= 1', name='ck_purchase_items_quantity_positive'),
        sa.ForeignKeyConstraint(['purchase_id'], ['purchase_invoices.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('purchase_id', 'product_id'),
    )
    with op.batch_alter_table('purchase_items', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_purchase_items_product_id'), ['product_id'], unique=False)


def downgrade():
    with op.batch_alter_table('purchase_items', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_purchase_items_product_id'))
    op.drop_table('purchase_items')

    with op.batch_alter_table('purchase_invoices', schema=None) as batch_op:
        batch_op.drop_index('ix_purchase_invoices_created_at')
    op.drop_table('purchase_invoices')

    with op.batch_alter_table('sale_items', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_sale_items_product_id'))
    op.drop_table('sale_items')

    with op.batch_alter_table('sales', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_sales_employee_id'))
        batch_op.drop_index('ix_sales_created_at')
    op.drop_table('sales')

    op.drop_table('users')

    with op.batch_alter_table('employees', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_employees_name'))
    op.drop_table('employees')

    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_products_category_id'))
        batch_op.drop_index(batch_op.f('ix_products_name'))
    op.drop_table('products')

    op.drop_table('categories')
