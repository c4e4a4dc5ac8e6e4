"""Create rolling billing schema.

Revision ID: 001_rolling_billing_schema
Revises: None
Create Date: 2025-02-03 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_rolling_billing_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list:
    return [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create organizations, letting and payment schedule tables."""
    op.create_table(
        'organizations',
        *_timestamps(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index('ix_organizations_is_active', 'organizations', ['is_active'])

    op.create_table(
        'landlords',
        *_timestamps(),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('manage_rent', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_landlords_organization_id', 'landlords', ['organization_id'])

    op.create_table(
        'properties',
        *_timestamps(),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('landlord_id', sa.Integer(), nullable=True),
        sa.Column('address', sa.String(255), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ),
        sa.ForeignKeyConstraint(['landlord_id'], ['landlords.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_properties_organization_id', 'properties', ['organization_id'])
    op.create_index('ix_properties_landlord_id', 'properties', ['landlord_id'])
    op.create_index('idx_property_org_landlord', 'properties', ['organization_id', 'landlord_id'])

    op.create_table(
        'tenancies',
        *_timestamps(),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'AWAITING_SIGNATURES', 'APPROVAL', 'ACTIVE', 'EXPIRED', name='tenancystatus'),
            nullable=False,
        ),
        sa.Column('is_rolling_monthly', sa.Boolean(), nullable=False),
        sa.Column('auto_generate_payments', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tenancies_organization_id', 'tenancies', ['organization_id'])
    op.create_index('ix_tenancies_property_id', 'tenancies', ['property_id'])
    op.create_index(
        'idx_tenancy_org_rolling', 'tenancies', ['organization_id', 'is_rolling_monthly', 'status']
    )

    op.create_table(
        'tenancy_members',
        *_timestamps(),
        sa.Column('tenancy_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('rent_pppw', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('payment_option', sa.String(50), nullable=True),
        sa.ForeignKeyConstraint(['tenancy_id'], ['tenancies.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tenancy_members_tenancy_id', 'tenancy_members', ['tenancy_id'])

    op.create_table(
        'payment_schedules',
        *_timestamps(),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('tenancy_id', sa.Integer(), nullable=False),
        sa.Column('tenancy_member_id', sa.Integer(), nullable=False),
        sa.Column('payment_type', sa.Enum('RENT', 'DEPOSIT', 'FEE', 'OTHER', name='paymenttype'), nullable=False),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('due_month', sa.String(7), nullable=False),
        sa.Column('amount_due', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'PARTIAL', 'PAID', 'OVERDUE', name='paymentstatus'),
            nullable=False,
        ),
        sa.Column('schedule_type', sa.Enum('AUTOMATED', 'MANUAL', name='scheduletype'), nullable=False),
        sa.Column('covers_from', sa.Date(), nullable=True),
        sa.Column('covers_to', sa.Date(), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ),
        sa.ForeignKeyConstraint(['tenancy_id'], ['tenancies.id'], ),
        sa.ForeignKeyConstraint(['tenancy_member_id'], ['tenancy_members.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payment_schedules_organization_id', 'payment_schedules', ['organization_id'])
    op.create_index('ix_payment_schedules_tenancy_id', 'payment_schedules', ['tenancy_id'])
    op.create_index('ix_payment_schedules_tenancy_member_id', 'payment_schedules', ['tenancy_member_id'])
    op.create_index('ix_payment_schedules_due_date', 'payment_schedules', ['due_date'])
    op.create_index(
        'idx_schedule_tenancy_member_due',
        'payment_schedules',
        ['tenancy_id', 'tenancy_member_id', 'due_date'],
    )
    # One rent row per member per calendar month
    op.create_index(
        'uq_payment_schedule_member_type_month',
        'payment_schedules',
        ['tenancy_member_id', 'payment_type', 'due_month'],
        unique=True,
        sqlite_where=sa.text("payment_type = 'RENT'"),
        postgresql_where=sa.text("payment_type = 'RENT'"),
    )

    op.create_table(
        'audit_logs',
        *_timestamps(),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('entity_type', sa.String(), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=True),
        sa.Column('changes', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_organization_id', 'audit_logs', ['organization_id'])


def downgrade() -> None:
    """Drop rolling billing tables."""
    op.drop_table('audit_logs')
    op.drop_index('uq_payment_schedule_member_type_month', table_name='payment_schedules')
    op.drop_table('payment_schedules')
    op.drop_table('tenancy_members')
    op.drop_table('tenancies')
    op.drop_table('properties')
    op.drop_table('landlords')
    op.drop_table('organizations')
