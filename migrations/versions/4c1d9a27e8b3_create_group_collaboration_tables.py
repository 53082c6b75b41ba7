"""create_group_collaboration_tables

Revision ID: 4c1d9a27e8b3
Revises:
Create Date: 2026-10-18 09:12:04.318827

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4c1d9a27e8b3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create profiles, budget groups and every group-scoped table."""
    op.create_table('profiles',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table('budget_groups',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', sa.UUID(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table('group_members',
        sa.Column('group_id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='member'),
        sa.Column('family_role', sa.String(length=20), nullable=True),
        sa.Column('joined_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("role IN ('owner', 'admin', 'member', 'viewer')", name='ck_group_members_role'),
        sa.CheckConstraint(
            "family_role IN ('parent', 'child', 'guardian', 'other')",
            name='ck_group_members_family_role',
        ),
        sa.ForeignKeyConstraint(['group_id'], ['budget_groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('group_id', 'user_id'),
    )
    op.create_index('ix_group_members_user_id', 'group_members', ['user_id'], unique=False)

    op.create_table('group_invitations',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('group_id', sa.UUID(), nullable=False),
        sa.Column('invited_by', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='member'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('token', sa.String(length=255), nullable=False),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("role IN ('admin', 'member', 'viewer')", name='ck_group_invitations_role'),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected', 'expired')",
            name='ck_group_invitations_status',
        ),
        sa.ForeignKeyConstraint(['group_id'], ['budget_groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['invited_by'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token'),
    )
    op.create_index('ix_group_invitations_group_id', 'group_invitations', ['group_id'], unique=False)
    op.create_index('ix_group_invitations_email', 'group_invitations', ['email'], unique=False)

    op.create_table('group_activity_log',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('group_id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.UUID(), nullable=True),
        sa.Column(
            'details',
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['group_id'], ['budget_groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_group_activity_log_group_created',
        'group_activity_log',
        ['group_id', 'created_at'],
        unique=False,
    )

    op.create_table('group_transactions',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('group_id', sa.UUID(), nullable=False),
        sa.Column('created_by', sa.UUID(), nullable=False),
        sa.Column('category_id', sa.UUID(), nullable=True),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("type IN ('income', 'expense')", name='ck_group_transactions_type'),
        sa.ForeignKeyConstraint(['group_id'], ['budget_groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_group_transactions_group_date', 'group_transactions', ['group_id', 'date'], unique=False)
    op.create_index('ix_group_transactions_category_id', 'group_transactions', ['category_id'], unique=False)

    op.create_table('group_budgets',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('group_id', sa.UUID(), nullable=False),
        sa.Column('created_by', sa.UUID(), nullable=False),
        sa.Column('category_id', sa.UUID(), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('period', sa.String(length=20), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "period IN ('daily', 'weekly', 'monthly', 'yearly')",
            name='ck_group_budgets_period',
        ),
        sa.ForeignKeyConstraint(['group_id'], ['budget_groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_group_budgets_group_id', 'group_budgets', ['group_id'], unique=False)

    # Invitation tokens are minted server-side; the API falls back to a
    # locally generated token when this function is unavailable.
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto;")
    op.execute("""
        CREATE OR REPLACE FUNCTION generate_invitation_token()
        RETURNS TEXT
        LANGUAGE sql
        VOLATILE
        SET search_path = public, extensions
        AS $$
            SELECT encode(gen_random_bytes(32), 'hex');
        $$;
    """)


def downgrade() -> None:
    """Drop the group collaboration schema."""
    op.execute("DROP FUNCTION IF EXISTS generate_invitation_token();")

    op.drop_index('ix_group_budgets_group_id', table_name='group_budgets')
    op.drop_table('group_budgets')
    op.drop_index('ix_group_transactions_category_id', table_name='group_transactions')
    op.drop_index('ix_group_transactions_group_date', table_name='group_transactions')
    op.drop_table('group_transactions')
    op.drop_index('ix_group_activity_log_group_created', table_name='group_activity_log')
    op.drop_table('group_activity_log')
    op.drop_index('ix_group_invitations_email', table_name='group_invitations')
    op.drop_index('ix_group_invitations_group_id', table_name='group_invitations')
    op.drop_table('group_invitations')
    op.drop_index('ix_group_members_user_id', table_name='group_members')
    op.drop_table('group_members')
    op.drop_table('budget_groups')
    op.drop_table('profiles')
