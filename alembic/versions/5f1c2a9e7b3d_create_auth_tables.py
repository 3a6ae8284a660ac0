"""create_auth_tables

Revision ID: 5f1c2a9e7b3d
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '5f1c2a9e7b3d'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        *_audit_columns(),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('username', sa.String(50), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='user'),
        sa.Column('name', sa.String(100), nullable=True),
        sa.Column('gender', sa.String(20), nullable=True),
        sa.Column('status', sa.String(255), nullable=True),
        sa.Column('birthdate', sa.Date(), nullable=True),
        sa.Column('password_changed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reset_code', sa.String(6), nullable=True),
        sa.Column('reset_code_issued_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            '(reset_code IS NULL) = (reset_code_issued_at IS NULL)',
            name='ck_users_reset_code_pair',
        ),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'followings',
        *_audit_columns(),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('following_user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'following_user_id', name='uq_followings_pair'),
    )
    op.create_index('ix_followings_id', 'followings', ['id'])
    op.create_index('ix_followings_user_id', 'followings', ['user_id'])
    op.create_index('ix_followings_following_user_id', 'followings', ['following_user_id'])

    op.create_table(
        'followers',
        *_audit_columns(),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('follower_user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'follower_user_id', name='uq_followers_pair'),
    )
    op.create_index('ix_followers_id', 'followers', ['id'])
    op.create_index('ix_followers_user_id', 'followers', ['user_id'])
    op.create_index('ix_followers_follower_user_id', 'followers', ['follower_user_id'])


def downgrade() -> None:
    op.drop_table('followers')
    op.drop_table('followings')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')
