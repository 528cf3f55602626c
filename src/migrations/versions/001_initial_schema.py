"""Initial coliving ledger schema.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-03-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

EXPENSE_CATEGORY = ('RENT', 'UTILITIES', 'CLEANING', 'PROVISIONS', 'OTHER')
PAYMENT_MODE = ('BANK_TRANSFER', 'PAYNOW', 'CASH', 'CREDIT_CARD', 'GRABPAY', 'PAYLAH', 'OTHER')


def _timestamps() -> list:
    return [
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create ledger tables."""
    op.create_table(
        'profiles',
        *_timestamps(),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('avatar_url', sa.String(500), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'units',
        *_timestamps(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('address', sa.String(255), nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('zipcode', sa.String(20), nullable=True),
        sa.Column('monthly_rent', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('contract_start_date', sa.Date(), nullable=True),
        sa.Column('contract_end_date', sa.Date(), nullable=True),
        sa.Column('payment_due_day', sa.Integer(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_units_created_by', 'units', ['created_by'])

    op.create_table(
        'unit_members',
        *_timestamps(),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.Enum('MASTER_TENANT', 'CO_TENANT', name='memberrole'), nullable=False),
        sa.Column('contribution_type', sa.Enum('SHARE', 'FIXED', name='contributiontype'), nullable=True),
        sa.Column('share_percentage', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('fixed_amount', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('contribution_period', sa.Enum('MONTHLY', 'YEARLY', name='contributionperiod'), nullable=True),
        sa.Column('contribution_end_date', sa.Date(), nullable=True),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('unit_id', 'user_id', name='uq_unit_member'),
    )
    op.create_index('ix_unit_members_unit_id', 'unit_members', ['unit_id'])
    op.create_index('ix_unit_members_user_id', 'unit_members', ['user_id'])

    op.create_table(
        'expenses',
        *_timestamps(),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('category', sa.Enum(*EXPENSE_CATEGORY, name='expensecategory'), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('paid_by', sa.Integer(), nullable=False),
        sa.Column('payment_mode', sa.Enum(*PAYMENT_MODE, name='paymentmode'), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('receipt_url', sa.String(500), nullable=True),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id'], ),
        sa.ForeignKeyConstraint(['paid_by'], ['profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_expenses_unit_id', 'expenses', ['unit_id'])
    op.create_index('ix_expenses_date', 'expenses', ['date'])
    op.create_index('ix_expenses_paid_by', 'expenses', ['paid_by'])
    op.create_index('idx_expense_unit_date', 'expenses', ['unit_id', 'date'])

    op.create_table(
        'expected_expense_templates',
        *_timestamps(),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('category', sa.Enum(*EXPENSE_CATEGORY, name='expensecategory'), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('unit_id', 'category', name='uq_expected_template_unit_category'),
    )
    op.create_index('ix_expected_expense_templates_unit_id', 'expected_expense_templates', ['unit_id'])

    op.create_table(
        'expected_expense_entries',
        *_timestamps(),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('month', sa.Date(), nullable=False),
        sa.Column('category', sa.Enum(*EXPENSE_CATEGORY, name='expensecategory'), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('unit_id', 'month', 'category', name='uq_expected_entry_unit_month_category'),
    )
    op.create_index('ix_expected_expense_entries_unit_id', 'expected_expense_entries', ['unit_id'])
    op.create_index('ix_expected_expense_entries_month', 'expected_expense_entries', ['month'])

    op.create_table(
        'balance_payments',
        *_timestamps(),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('from_user_id', sa.Integer(), nullable=False),
        sa.Column('to_user_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('for_month', sa.Date(), nullable=False),
        sa.Column('payment_mode', sa.Enum(*PAYMENT_MODE, name='paymentmode'), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id'], ),
        sa.ForeignKeyConstraint(['from_user_id'], ['profiles.id'], ),
        sa.ForeignKeyConstraint(['to_user_id'], ['profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_balance_payments_unit_id', 'balance_payments', ['unit_id'])
    op.create_index('ix_balance_payments_from_user_id', 'balance_payments', ['from_user_id'])
    op.create_index('idx_balance_payment_unit_month', 'balance_payments', ['unit_id', 'for_month'])

    op.create_table(
        'contributions',
        *_timestamps(),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('reason', sa.String(255), nullable=False),
        sa.Column('requested_by', sa.Integer(), nullable=False),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'PARTIALLY_COLLECTED', 'COLLECTED', name='contributionstatus'),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id'], ),
        sa.ForeignKeyConstraint(['requested_by'], ['profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_contributions_unit_id', 'contributions', ['unit_id'])

    op.create_table(
        'contribution_payments',
        *_timestamps(),
        sa.Column('contribution_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('receipt_url', sa.String(500), nullable=True),
        sa.ForeignKeyConstraint(['contribution_id'], ['contributions.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_contribution_payments_contribution_id', 'contribution_payments', ['contribution_id'])
    op.create_index('ix_contribution_payments_user_id', 'contribution_payments', ['user_id'])


def downgrade() -> None:
    """Drop ledger tables."""
    op.drop_table('contribution_payments')
    op.drop_table('contributions')
    op.drop_table('balance_payments')
    op.drop_table('expected_expense_entries')
    op.drop_table('expected_expense_templates')
    op.drop_table('expenses')
    op.drop_table('unit_members')
    op.drop_table('units')
    op.drop_table('profiles')
