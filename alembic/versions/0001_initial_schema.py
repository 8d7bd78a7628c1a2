"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _enum(*values):
    return sa.Enum(*values, native_enum=False, length=max(len(v) for v in values))


def upgrade() -> None:
    op.create_table(
        'cooperative',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_cooperative_name', 'cooperative', ['name'], unique=True)

    op.create_table(
        'user',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('names', sa.String(100), nullable=False),
        sa.Column('phone_number', sa.String(20), nullable=False),
        sa.Column('email', sa.String(255), nullable=True, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', _enum('superadmin', 'manager', 'accountant', 'member'), nullable=False),
        sa.Column('cooperative_id', sa.Uuid(), sa.ForeignKey('cooperative.id'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_user_phone_number', 'user', ['phone_number'], unique=True)
    op.create_index('ix_user_cooperative_id', 'user', ['cooperative_id'])

    op.create_table(
        'season',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('cooperative_id', sa.Uuid(), sa.ForeignKey('cooperative.id'), nullable=False),
        sa.Column('name', _enum('Season-A', 'Season-B'), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('status', _enum('active', 'inactive'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.UniqueConstraint('cooperative_id', 'name', 'year', name='uq_season_cooperative_name_year'),
        sa.CheckConstraint('year >= 2000 AND year <= 2100', name='ck_season_year_range'),
    )
    op.create_index('ix_season_cooperative_id', 'season', ['cooperative_id'])

    op.create_table(
        'cooperative_cash',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('cooperative_id', sa.Uuid(), sa.ForeignKey('cooperative.id'), nullable=False),
        sa.Column('balance', sa.Numeric(15, 2), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('balance >= 0', name='ck_cooperative_cash_non_negative'),
    )
    op.create_index('ix_cooperative_cash_cooperative_id', 'cooperative_cash', ['cooperative_id'], unique=True)

    op.create_table(
        'fee_type',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('cooperative_id', sa.Uuid(), sa.ForeignKey('cooperative.id'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', _enum('active', 'inactive'), nullable=False),
        sa.Column('is_per_season', sa.Boolean(), nullable=False),
        sa.Column('auto_apply_on_create', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.UniqueConstraint('cooperative_id', 'name', name='uq_fee_type_cooperative_name'),
        sa.CheckConstraint('amount >= 0', name='ck_fee_type_amount_non_negative'),
    )
    op.create_index('ix_fee_type_cooperative_id', 'fee_type', ['cooperative_id'])

    op.create_table(
        'product',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('cooperative_id', sa.Uuid(), sa.ForeignKey('cooperative.id'), nullable=False),
        sa.Column('product_name', sa.String(100), nullable=False),
        sa.Column('unit_price', sa.Numeric(15, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_product_cooperative_id', 'product', ['cooperative_id'])

    op.create_table(
        'payment',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('member_id', sa.Uuid(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('cooperative_id', sa.Uuid(), sa.ForeignKey('cooperative.id'), nullable=False),
        sa.Column('season_id', sa.Uuid(), sa.ForeignKey('season.id'), nullable=True),
        sa.Column('gross_amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('total_deductions', sa.Numeric(15, 2), nullable=False),
        sa.Column('amount_due', sa.Numeric(15, 2), nullable=False),
        sa.Column('amount_paid', sa.Numeric(15, 2), nullable=False),
        sa.Column('amount_remaining_to_pay', sa.Numeric(15, 2), nullable=False),
        sa.Column('status', _enum('pending', 'partial', 'paid'), nullable=False),
        sa.Column('processed_by', sa.Uuid(), sa.ForeignKey('user.id'), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('amount_due >= 0', name='ck_payment_amount_due_non_negative'),
        sa.CheckConstraint('amount_paid >= 0', name='ck_payment_amount_paid_non_negative'),
        sa.CheckConstraint('amount_remaining_to_pay >= 0', name='ck_payment_remaining_non_negative'),
    )
    op.create_index('ix_payment_member_id', 'payment', ['member_id'])
    op.create_index('ix_payment_cooperative_id', 'payment', ['cooperative_id'])
    op.create_index('ix_payment_season_id', 'payment', ['season_id'])
    # One open payment slot per member and cooperative
    op.create_index(
        'uq_payment_open_slot',
        'payment',
        ['member_id', 'cooperative_id'],
        unique=True,
        postgresql_where=sa.text('amount_remaining_to_pay > 0'),
        sqlite_where=sa.text('amount_remaining_to_pay > 0'),
    )

    op.create_table(
        'payment_transaction',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('payment_id', sa.Uuid(), sa.ForeignKey('payment.id'), nullable=False),
        sa.Column('member_id', sa.Uuid(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('cooperative_id', sa.Uuid(), sa.ForeignKey('cooperative.id'), nullable=False),
        sa.Column('amount_paid', sa.Numeric(15, 2), nullable=False),
        sa.Column('amount_remaining_to_pay', sa.Numeric(15, 2), nullable=False),
        sa.Column('processed_by', sa.Uuid(), sa.ForeignKey('user.id'), nullable=True),
        sa.Column('transaction_date', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_payment_transaction_payment_id', 'payment_transaction', ['payment_id'])
    op.create_index('ix_payment_transaction_member_id', 'payment_transaction', ['member_id'])
    op.create_index('ix_payment_transaction_cooperative_id', 'payment_transaction', ['cooperative_id'])

    op.create_table(
        'fee',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('member_id', sa.Uuid(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('cooperative_id', sa.Uuid(), sa.ForeignKey('cooperative.id'), nullable=False),
        sa.Column('season_id', sa.Uuid(), sa.ForeignKey('season.id'), nullable=True),
        sa.Column('fee_type_id', sa.Uuid(), sa.ForeignKey('fee_type.id'), nullable=False),
        sa.Column('amount_owed', sa.Numeric(15, 2), nullable=False),
        sa.Column('amount_paid', sa.Numeric(15, 2), nullable=False),
        sa.Column('status', _enum('unpaid', 'partial', 'paid'), nullable=False),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('payment_id', sa.Uuid(), sa.ForeignKey('payment.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.UniqueConstraint('member_id', 'fee_type_id', 'season_id', name='uq_fee_member_type_season'),
        sa.CheckConstraint('amount_owed >= 0', name='ck_fee_amount_owed_non_negative'),
        sa.CheckConstraint('amount_paid >= 0 AND amount_paid <= amount_owed', name='ck_fee_amount_paid_range'),
    )
    for column in ('member_id', 'cooperative_id', 'season_id', 'fee_type_id', 'payment_id'):
        op.create_index(f'ix_fee_{column}', 'fee', [column])

    op.create_table(
        'loan',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('member_id', sa.Uuid(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('cooperative_id', sa.Uuid(), sa.ForeignKey('cooperative.id'), nullable=False),
        sa.Column('season_id', sa.Uuid(), sa.ForeignKey('season.id'), nullable=True),
        sa.Column('principal_amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('interest_rate', sa.Numeric(5, 2), nullable=False),
        sa.Column('amount_owed', sa.Numeric(15, 2), nullable=False),
        sa.Column('amount_paid', sa.Numeric(15, 2), nullable=False),
        sa.Column('status', _enum('pending', 'repaid'), nullable=False),
        sa.Column('repaid_at', sa.DateTime(), nullable=True),
        sa.Column('payment_id', sa.Uuid(), sa.ForeignKey('payment.id'), nullable=True),
        sa.Column('created_by', sa.Uuid(), sa.ForeignKey('user.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('amount_owed >= 0', name='ck_loan_amount_owed_non_negative'),
        sa.CheckConstraint('amount_paid >= 0 AND amount_paid <= amount_owed', name='ck_loan_amount_paid_range'),
    )
    for column in ('member_id', 'cooperative_id', 'season_id', 'payment_id'):
        op.create_index(f'ix_loan_{column}', 'loan', [column])

    op.create_table(
        'loan_transaction',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('loan_id', sa.Uuid(), sa.ForeignKey('loan.id'), nullable=False),
        sa.Column('cooperative_id', sa.Uuid(), sa.ForeignKey('cooperative.id'), nullable=False),
        sa.Column('payment_id', sa.Uuid(), sa.ForeignKey('payment.id'), nullable=True),
        sa.Column('amount_paid', sa.Numeric(15, 2), nullable=False),
        sa.Column('amount_remaining_to_pay', sa.Numeric(15, 2), nullable=False),
        sa.Column('transaction_date', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    for column in ('loan_id', 'cooperative_id', 'payment_id'):
        op.create_index(f'ix_loan_transaction_{column}', 'loan_transaction', [column])

    op.create_table(
        'production',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('member_id', sa.Uuid(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('cooperative_id', sa.Uuid(), sa.ForeignKey('cooperative.id'), nullable=False),
        sa.Column('season_id', sa.Uuid(), sa.ForeignKey('season.id'), nullable=False),
        sa.Column('product_id', sa.Uuid(), sa.ForeignKey('product.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(15, 2), nullable=False),
        sa.Column('total_price', sa.Numeric(15, 2), nullable=False),
        sa.Column('payment_status', _enum('pending', 'paid'), nullable=False),
        sa.Column('payment_id', sa.Uuid(), sa.ForeignKey('payment.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('quantity >= 1', name='ck_production_quantity_positive'),
        sa.CheckConstraint('unit_price >= 0', name='ck_production_unit_price_non_negative'),
    )
    for column in ('member_id', 'cooperative_id', 'season_id', 'product_id', 'payment_id'):
        op.create_index(f'ix_production_{column}', 'production', [column])


def downgrade() -> None:
    for table in (
        'production', 'loan_transaction', 'loan', 'fee', 'payment_transaction',
        'payment', 'product', 'fee_type', 'cooperative_cash', 'season', 'user', 'cooperative',
    ):
        op.drop_table(table)
