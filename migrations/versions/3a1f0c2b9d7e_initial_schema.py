"""initial_schema

Revision ID: 3a1f0c2b9d7e
Revises:
Create Date: 2026-10-19 10:12:41.518204

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3a1f0c2b9d7e'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=80), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('avatar_url', sa.String(length=255), nullable=True),
        sa.Column('api_token', sa.String(length=64), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_api_token', 'users', ['api_token'], unique=True)

    op.create_table('clients',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('ic_number', sa.String(length=30), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tenant_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'ic_number', name='uq_clients_tenant_ic_number')
    )
    op.create_index('ix_clients_tenant_id', 'clients', ['tenant_id'], unique=False)
    op.create_index('ix_clients_full_name', 'clients', ['full_name'], unique=False)
    op.create_index('ix_clients_ic_number', 'clients', ['ic_number'], unique=False)
    op.create_index('ix_clients_created_at', 'clients', ['created_at'], unique=False)

    op.create_table('loans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('principal', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('disbursed', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('principal_balance', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('interest_balance', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('deposit_amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('deposit_policy', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tenant_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_loans_tenant_id', 'loans', ['tenant_id'], unique=False)
    op.create_index('ix_loans_client_id', 'loans', ['client_id'], unique=False)
    op.create_index('ix_loans_status', 'loans', ['status'], unique=False)
    op.create_index('ix_loans_created_at', 'loans', ['created_at'], unique=False)

    op.create_table('repayment_txn',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('loan_id', sa.Integer(), nullable=False),
        sa.Column('amount_in', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('alloc_interest', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('alloc_principal', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tenant_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['loan_id'], ['loans.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_repayment_txn_tenant_id', 'repayment_txn', ['tenant_id'], unique=False)
    op.create_index('ix_repayment_txn_loan_id', 'repayment_txn', ['loan_id'], unique=False)
    op.create_index('ix_repayment_txn_created_at', 'repayment_txn', ['created_at'], unique=False)

    op.create_table('activity_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=True),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=50), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_activity_logs_user_id', 'activity_logs', ['user_id'], unique=False)
    op.create_index('ix_activity_logs_created_at', 'activity_logs', ['created_at'], unique=False)


def downgrade():
    op.drop_table('activity_logs')
    op.drop_table('repayment_txn')
    op.drop_table('loans')
    op.drop_table('clients')
    op.drop_table('users')
