# File: seerr_users/models.py
import enum
import json

from flask import current_app
from flask_login import UserMixin
from sqlalchemy.ext.mutable import MutableDict
from sqlalchemy.orm import validates
from werkzeug.security import generate_password_hash, check_password_hash

from seerr_users.extensions import db, JSONEncodedDict
from seerr_users.permissions import has_permission
from seerr_users.utils.timezone_utils import utcnow, isoformat


class SettingValueType(enum.Enum):
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    JSON = "json"
    SECRET = "secret"


class EventType(enum.Enum):
    SETTING_CHANGE = "SETTING_CHANGE"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAIL = "LOGIN_FAIL"
    LOGOUT = "LOGOUT"
    USER_CREATED = "USER_CREATED"
    USER_IMPORTED_FROM_PLEX = "USER_IMPORTED_FROM_PLEX"
    USER_UPDATED_FROM_PLEX = "USER_UPDATED_FROM_PLEX"
    USER_IMPORTED_FROM_JELLYFIN = "USER_IMPORTED_FROM_JELLYFIN"
    USER_PROVISIONED_JELLYFIN = "USER_PROVISIONED_JELLYFIN"
    USER_CREDENTIALS_RESET = "USER_CREDENTIALS_RESET"
    USER_PERMISSIONS_CHANGED = "USER_PERMISSIONS_CHANGED"
    USER_DELETED = "USER_DELETED"
    ERROR_GENERAL = "ERROR_GENERAL"
    ERROR_PROVIDER = "ERROR_PROVIDER"


class AccountType(enum.Enum):
    """How an account signs in. LOCAL may be promoted to PLEX, never the other way."""
    LOCAL = "local"
    PLEX = "plex"
    JELLYFIN = "jellyfin"
    EMBY = "emby"

    @classmethod
    def for_media_server(cls, media_server_type):
        """Account kind for users coming from the configured alt media server."""
        if (media_server_type or '').lower() == 'emby':
            return cls.EMBY
        return cls.JELLYFIN


class MediaType(enum.Enum):
    MOVIE = "movie"
    TV = "tv"


class RequestStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"


class Account(db.Model, UserMixin):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    username = db.Column(db.String(255), nullable=True)
    user_type = db.Column(db.Enum(AccountType), nullable=False, default=AccountType.LOCAL, index=True)
    permissions = db.Column(db.Integer, nullable=False, default=0)
    avatar = db.Column(db.String(512), nullable=True)
    password_hash = db.Column(db.String(256), nullable=True)

    # Plex identity
    plex_id = db.Column(db.Integer, nullable=True, index=True)
    plex_username = db.Column(db.String(255), nullable=True)
    plex_token = db.Column(db.String(255), nullable=True)

    # Jellyfin / Emby identity
    jellyfin_user_id = db.Column(db.String(64), nullable=True, index=True)
    jellyfin_username = db.Column(db.String(255), nullable=True)
    jellyfin_device_id = db.Column(db.String(255), nullable=True)

    # Request quotas, None falls back to the configured defaults
    movie_quota_limit = db.Column(db.Integer, nullable=True)
    movie_quota_days = db.Column(db.Integer, nullable=True)
    tv_quota_limit = db.Column(db.Integer, nullable=True)
    tv_quota_days = db.Column(db.Integer, nullable=True)

    subscription_status = db.Column(db.String(50), nullable=True)
    subscription_expiration_date = db.Column(db.DateTime, nullable=True)
    suspicious_activity_count = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    settings = db.relationship('AccountSettings', back_populates='account', uselist=False,
                               cascade='all, delete-orphan')
    requests = db.relationship('MediaRequest', back_populates='requested_by', lazy='dynamic')
    watchlist = db.relationship('WatchlistEntry', back_populates='requested_by', lazy='dynamic',
                                cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Account {self.id} {self.email} ({self.user_type.value if self.user_type else "?"})>'

    @validates('email')
    def _normalize_email(self, key, value):
        return value.strip().lower() if value else value

    @property
    def display_name(self):
        """First non-empty of username, Plex username, Jellyfin username, email."""
        return self.username or self.plex_username or self.jellyfin_username or self.email

    def set_password(self, password):
        self.password_hash = generate_password_hash(password, method='pbkdf2:sha256')

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def has_permission(self, permissions, type='and'):
        return has_permission(permissions, self.permissions or 0, type=type)

    @property
    def is_alt_provider_account(self):
        return self.user_type in (AccountType.JELLYFIN, AccountType.EMBY)

    def get_id(self):
        return str(self.id)


class AccountSettings(db.Model):
    __tablename__ = 'user_settings'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False)
    locale = db.Column(db.String(16), nullable=True)

    account = db.relationship('Account', back_populates='settings')

    def __repr__(self):
        return f'<AccountSettings user={self.user_id} locale={self.locale}>'


class MediaCatalogItem(db.Model):
    __tablename__ = 'media'

    id = db.Column(db.Integer, primary_key=True)
    media_type = db.Column(db.Enum(MediaType), nullable=False, index=True)
    tmdb_id = db.Column(db.Integer, nullable=False, index=True)
    tvdb_id = db.Column(db.Integer, nullable=True)
    rating_key = db.Column(db.String(64), nullable=True, index=True)
    rating_key_4k = db.Column(db.String(64), nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f'<MediaCatalogItem {self.media_type.value}:{self.tmdb_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'mediaType': self.media_type.value,
            'tmdbId': self.tmdb_id,
            'tvdbId': self.tvdb_id,
            'ratingKey': self.rating_key,
            'ratingKey4k': self.rating_key_4k,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }


class MediaRequest(db.Model):
    __tablename__ = 'media_requests'

    id = db.Column(db.Integer, primary_key=True)
    media_id = db.Column(db.Integer, db.ForeignKey('media.id'), nullable=True)
    media_type = db.Column(db.Enum(MediaType), nullable=False)
    status = db.Column(db.Enum(RequestStatus), nullable=False, default=RequestStatus.PENDING)
    is_4k = db.Column(db.Boolean, nullable=False, default=False)
    season_count = db.Column(db.Integer, nullable=False, default=0)
    requested_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    requested_by = db.relationship('Account', back_populates='requests')
    media = db.relationship('MediaCatalogItem')

    def __repr__(self):
        return f'<MediaRequest {self.id} {self.media_type.value} by {self.requested_by_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.media_type.value,
            'status': self.status.value,
            'is4k': self.is_4k,
            'seasonCount': self.season_count,
            'media': self.media.to_dict() if self.media else None,
            'requestedBy': self.requested_by_id,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }


class WatchlistEntry(db.Model):
    __tablename__ = 'watchlist'

    id = db.Column(db.Integer, primary_key=True)
    rating_key = db.Column(db.String(64), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    media_type = db.Column(db.Enum(MediaType), nullable=False)
    tmdb_id = db.Column(db.Integer, nullable=True)
    requested_by_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    requested_by = db.relationship('Account', back_populates='watchlist')

    def to_dict(self):
        return {
            'id': self.id,
            'ratingKey': self.rating_key,
            'title': self.title,
            'mediaType': self.media_type.value,
            'tmdbId': self.tmdb_id,
        }


class Setting(db.Model):
    __tablename__ = 'settings'

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), unique=True, nullable=False, index=True)
    value = db.Column(db.Text, nullable=True)
    value_type = db.Column(db.Enum(SettingValueType), default=SettingValueType.STRING, nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f'<Setting {self.key}>'

    def get_value(self):
        if self.value is None:
            return None
        if self.value_type == SettingValueType.INTEGER:
            return int(self.value)
        if self.value_type == SettingValueType.BOOLEAN:
            return self.value.lower() in ['true', '1', 'yes', 'on']
        if self.value_type == SettingValueType.JSON:
            try:
                return json.loads(self.value)
            except json.JSONDecodeError:
                return None
        return self.value

    @staticmethod
    def get(key_name, default=None):
        """Value from the settings table, then app.config, then the default."""
        if current_app:
            try:
                setting_obj = Setting.query.filter_by(key=key_name).first()
                if setting_obj:
                    return setting_obj.get_value()
            except Exception as e:
                current_app.logger.debug(f"Setting.get({key_name}): DB query failed: {e}")
            if key_name in current_app.config:
                value = current_app.config.get(key_name)
                return default if value is None else value
        return default

    @staticmethod
    def get_bool(key_name, default=False):
        value = Setting.get(key_name, default)
        if isinstance(value, bool):
            return value
        return str(value).lower() in ['true', '1', 'yes', 'on']

    @staticmethod
    def set(key_name, value, v_type=SettingValueType.STRING, description=None):
        setting = Setting.query.filter_by(key=key_name).first()
        if not setting:
            setting = Setting(key=key_name)
            db.session.add(setting)
        setting.value_type = v_type
        setting.description = description or setting.description
        if v_type == SettingValueType.JSON and not isinstance(value, str):
            setting.value = json.dumps(value)
        elif isinstance(value, bool):
            setting.value = 'true' if value else 'false'
        else:
            setting.value = None if value is None else str(value)
        db.session.commit()
        if key_name.isupper():
            current_app.config[key_name] = setting.get_value()
        return setting


class HistoryLog(db.Model):
    __tablename__ = 'history_logs'

    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.DateTime, default=utcnow, index=True)
    event_type = db.Column(db.Enum(EventType), nullable=False, index=True)
    message = db.Column(db.Text, nullable=False)
    details = db.Column(MutableDict.as_mutable(JSONEncodedDict), nullable=True)
    # Plain ids: audit rows outlive the accounts they mention
    actor_id = db.Column(db.Integer, nullable=True, index=True)
    target_user_id = db.Column(db.Integer, nullable=True, index=True)

    def __repr__(self):
        return f'<HistoryLog {self.timestamp} [{self.event_type.name}]: {self.message[:50]}>'
