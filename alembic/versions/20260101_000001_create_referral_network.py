"""Create users and reward_claims tables

Revision ID: 20260101_000001
Revises: 
Create Date: 2026-01-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20260101_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users form the referral forest through referrer_id
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('is_member', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('activated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('referral_code', sa.String(20), nullable=True),
        sa.Column('referrer_id', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['referrer_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sa.UniqueConstraint('phone', name='uq_users_phone'),
    )
    op.create_index('ix_users_is_member', 'users', ['is_member'])
    op.create_index('ix_users_referral_code', 'users', ['referral_code'], unique=True)
    op.create_index('ix_users_referrer_id', 'users', ['referrer_id'])

    # One claim per user per reward level
    op.create_table(
        'reward_claims',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('amount', sa.String(255), nullable=False, comment='Prize description'),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('claimed_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'level', name='uq_reward_claims_user_level'),
        sa.CheckConstraint('level IN (1, 3, 5, 7)', name='check_reward_claim_level'),
        sa.CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'DELIVERED')",
            name='check_reward_claim_status',
        ),
    )
    op.create_index('ix_reward_claims_user_id', 'reward_claims', ['user_id'])
    op.create_index('ix_reward_claims_status', 'reward_claims', ['status'])


def downgrade() -> None:
    op.drop_index('ix_reward_claims_status', 'reward_claims')
    op.drop_index('ix_reward_claims_user_id', 'reward_claims')
    op.drop_table('reward_claims')

    op.drop_index('ix_users_referrer_id', 'users')
    op.drop_index('ix_users_referral_code', 'users')
    op.drop_index('ix_users_is_member', 'users')
    op.drop_table('users')
