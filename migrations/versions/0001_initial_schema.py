"""Initial schema: accounts, settings, requests, catalog, watchlist, history

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

account_type = sa.Enum('LOCAL', 'PLEX', 'JELLYFIN', 'EMBY', name='accounttype')
media_type = sa.Enum('MOVIE', 'TV', name='mediatype')
request_status = sa.Enum('PENDING', 'APPROVED', 'DECLINED', name='requeststatus')
setting_value_type = sa.Enum('STRING', 'INTEGER', 'BOOLEAN', 'JSON', 'SECRET', name='settingvaluetype')
event_type = sa.Enum(
    'SETTING_CHANGE', 'LOGIN_SUCCESS', 'LOGIN_FAIL', 'LOGOUT', 'USER_CREATED',
    'USER_IMPORTED_FROM_PLEX', 'USER_UPDATED_FROM_PLEX', 'USER_IMPORTED_FROM_JELLYFIN',
    'USER_PROVISIONED_JELLYFIN', 'USER_CREDENTIALS_RESET', 'USER_PERMISSIONS_CHANGED', 'USER_DELETED',
    'ERROR_GENERAL', 'ERROR_PROVIDER',
    name='eventtype',
)


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=255), nullable=True),
        sa.Column('user_type', account_type, nullable=False),
        sa.Column('permissions', sa.Integer(), nullable=False),
        sa.Column('avatar', sa.String(length=512), nullable=True),
        sa.Column('password_hash', sa.String(length=256), nullable=True),
        sa.Column('plex_id', sa.Integer(), nullable=True),
        sa.Column('plex_username', sa.String(length=255), nullable=True),
        sa.Column('plex_token', sa.String(length=255), nullable=True),
        sa.Column('jellyfin_user_id', sa.String(length=64), nullable=True),
        sa.Column('jellyfin_username', sa.String(length=255), nullable=True),
        sa.Column('jellyfin_device_id', sa.String(length=255), nullable=True),
        sa.Column('movie_quota_limit', sa.Integer(), nullable=True),
        sa.Column('movie_quota_days', sa.Integer(), nullable=True),
        sa.Column('tv_quota_limit', sa.Integer(), nullable=True),
        sa.Column('tv_quota_days', sa.Integer(), nullable=True),
        sa.Column('subscription_status', sa.String(length=50), nullable=True),
        sa.Column('subscription_expiration_date', sa.DateTime(), nullable=True),
        sa.Column('suspicious_activity_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=True)
        batch_op.create_index(batch_op.f('ix_users_user_type'), ['user_type'], unique=False)
        batch_op.create_index(batch_op.f('ix_users_plex_id'), ['plex_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_users_jellyfin_user_id'), ['jellyfin_user_id'], unique=False)

    op.create_table(
        'user_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('locale', sa.String(length=16), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )

    op.create_table(
        'media',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('media_type', media_type, nullable=False),
        sa.Column('tmdb_id', sa.Integer(), nullable=False),
        sa.Column('tvdb_id', sa.Integer(), nullable=True),
        sa.Column('rating_key', sa.String(length=64), nullable=True),
        sa.Column('rating_key_4k', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('media', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_media_media_type'), ['media_type'], unique=False)
        batch_op.create_index(batch_op.f('ix_media_tmdb_id'), ['tmdb_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_media_rating_key'), ['rating_key'], unique=False)
        batch_op.create_index(batch_op.f('ix_media_rating_key_4k'), ['rating_key_4k'], unique=False)

    op.create_table(
        'media_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('media_id', sa.Integer(), nullable=True),
        sa.Column('media_type', media_type, nullable=False),
        sa.Column('status', request_status, nullable=False),
        sa.Column('is_4k', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('season_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('requested_by_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['media_id'], ['media.id']),
        sa.ForeignKeyConstraint(['requested_by_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('media_requests', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_media_requests_requested_by_id'), ['requested_by_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_media_requests_created_at'), ['created_at'], unique=False)

    op.create_table(
        'watchlist',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('rating_key', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('media_type', media_type, nullable=False),
        sa.Column('tmdb_id', sa.Integer(), nullable=True),
        sa.Column('requested_by_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['requested_by_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('watchlist', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_watchlist_requested_by_id'), ['requested_by_id'], unique=False)

    op.create_table(
        'settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('value_type', setting_value_type, nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('settings', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_settings_key'), ['key'], unique=True)

    op.create_table(
        'history_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=True),
        sa.Column('event_type', event_type, nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('actor_id', sa.Integer(), nullable=True),
        sa.Column('target_user_id', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('history_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_history_logs_timestamp'), ['timestamp'], unique=False)
        batch_op.create_index(batch_op.f('ix_history_logs_event_type'), ['event_type'], unique=False)
        batch_op.create_index(batch_op.f('ix_history_logs_actor_id'), ['actor_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_history_logs_target_user_id'), ['target_user_id'], unique=False)


def downgrade():
    op.drop_table('history_logs')
    op.drop_table('settings')
    op.drop_table('watchlist')
    op.drop_table('media_requests')
    op.drop_table('media')
    op.drop_table('user_settings')
    op.drop_table('users')
