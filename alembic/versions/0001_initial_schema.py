"""initial schema: users, login sessions, games, ledger and settlements

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(12, 2)

session_status = sa.Enum('ONGOING', 'COMPLETED', name='session_status')
player_status = sa.Enum('ACTIVE', 'CASHED_OUT', name='player_status')
transaction_type = sa.Enum('BUY_IN', 'REBUY', 'CASH_OUT', name='transaction_type')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reset_token_hash', sa.String(64), nullable=True),
        sa.Column('reset_token_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_reset_token_hash', 'users', ['reset_token_hash'])

    op.create_table(
        'login_sessions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('refresh_token_hash', sa.String(255), nullable=False),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_seen_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_login_sessions_user_id_users',
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_login_sessions'),
    )
    op.create_index('ix_login_sessions_user_id', 'login_sessions', ['user_id'])

    op.create_table(
        'game_sessions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('location', sa.String(200), nullable=True),
        sa.Column('game_type', sa.String(100), nullable=False),
        sa.Column('status', session_status, nullable=False),
        sa.Column('buy_in', MONEY, nullable=False),
        sa.Column('session_cost', MONEY, nullable=True),
        sa.Column('discount', sa.Float(), nullable=False),
        sa.Column('host_id', sa.String(36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['host_id'], ['users.id'], name='fk_game_sessions_host_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_game_sessions'),
    )
    op.create_index('ix_game_sessions_date', 'game_sessions', ['date'])
    op.create_index('ix_game_sessions_status', 'game_sessions', ['status'])
    op.create_index('ix_game_sessions_host_id', 'game_sessions', ['host_id'])

    op.create_table(
        'player_sessions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('session_id', sa.String(36), nullable=False),
        sa.Column('initial_buy_in', MONEY, nullable=False),
        sa.Column('current_stack', MONEY, nullable=False),
        sa.Column('status', player_status, nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('left_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_player_sessions_user_id_users'),
        sa.ForeignKeyConstraint(
            ['session_id'], ['game_sessions.id'],
            name='fk_player_sessions_session_id_game_sessions',
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_player_sessions'),
    )
    op.create_index('ix_player_sessions_user_id', 'player_sessions', ['user_id'])
    op.create_index('ix_player_sessions_session_id', 'player_sessions', ['session_id'])
    op.create_index('ix_player_sessions_status', 'player_sessions', ['status'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('type', transaction_type, nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('session_id', sa.String(36), nullable=False),
        sa.Column('player_session_id', sa.String(36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_transactions_user_id_users'),
        sa.ForeignKeyConstraint(
            ['session_id'], ['game_sessions.id'],
            name='fk_transactions_session_id_game_sessions',
            ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['player_session_id'], ['player_sessions.id'],
            name='fk_transactions_player_session_id_player_sessions',
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_transactions'),
    )
    op.create_index('ix_transactions_type', 'transactions', ['type'])
    op.create_index('ix_transactions_user_id', 'transactions', ['user_id'])
    op.create_index('ix_transactions_session_id', 'transactions', ['session_id'])
    op.create_index('ix_transactions_player_session_id', 'transactions', ['player_session_id'])
    op.create_index('ix_transactions_created_at', 'transactions', ['created_at'])

    op.create_table(
        'session_settlements',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('session_id', sa.String(36), nullable=False),
        sa.Column('player_id', sa.String(36), nullable=False),
        sa.Column('original_profit_loss', MONEY, nullable=False),
        sa.Column('session_cost_share', MONEY, nullable=False),
        sa.Column('final_amount', MONEY, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ['session_id'], ['game_sessions.id'],
            name='fk_session_settlements_session_id_game_sessions',
            ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(['player_id'], ['users.id'], name='fk_session_settlements_player_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_session_settlements'),
    )
    op.create_index('ix_session_settlements_session_id', 'session_settlements', ['session_id'])
    op.create_index('ix_session_settlements_player_id', 'session_settlements', ['player_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('session_settlements')
    op.drop_table('transactions')
    op.drop_table('player_sessions')
    op.drop_table('game_sessions')
    op.drop_table('login_sessions')
    op.drop_table('users')

    bind = op.get_bind()
    transaction_type.drop(bind, checkfirst=True)
    player_status.drop(bind, checkfirst=True)
    session_status.drop(bind, checkfirst=True)
