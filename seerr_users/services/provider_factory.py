# File: seerr_users/services/provider_factory.py
from typing import Optional

from flask import current_app

from seerr_users.errors import Unconfigured
from seerr_users.models import Setting
from seerr_users.services.jellyfin_service import JellyfinService
from seerr_users.services.plex_service import PlexTvService
from seerr_users.services.tautulli_service import TautulliService


class ProviderFactory:
    """Builds provider clients from the current settings"""

    @classmethod
    def tautulli_configured(cls) -> bool:
        return bool(Setting.get('TAUTULLI_HOSTNAME') and Setting.get('TAUTULLI_PORT')
                    and Setting.get('TAUTULLI_API_KEY'))

    @classmethod
    def create_tautulli(cls) -> TautulliService:
        if not cls.tautulli_configured():
            raise Unconfigured('Tautulli API not configured.')
        return TautulliService(
            hostname=Setting.get('TAUTULLI_HOSTNAME'),
            port=Setting.get('TAUTULLI_PORT'),
            api_key=Setting.get('TAUTULLI_API_KEY'),
            use_ssl=Setting.get_bool('TAUTULLI_USE_SSL', False),
            url_base=Setting.get('TAUTULLI_URL_BASE', ''),
        )

    @classmethod
    def create_jellyfin(cls) -> JellyfinService:
        url = Setting.get('JELLYFIN_URL')
        api_key = Setting.get('JELLYFIN_API_KEY')
        if not url or not api_key:
            raise Unconfigured('Jellyfin server not configured.')
        return JellyfinService(url, api_key, name=Setting.get('JELLYFIN_NAME', 'Jellyfin'))

    @classmethod
    def create_plex(cls, token: Optional[str]) -> PlexTvService:
        if not token:
            raise Unconfigured('Plex token not available.')
        machine_id = Setting.get('PLEX_MACHINE_ID')
        if not machine_id:
            current_app.logger.warning("ProviderFactory - PLEX_MACHINE_ID is not set; access checks will fail.")
        return PlexTvService(token, machine_id=machine_id,
                             client_identifier=Setting.get('PLEX_CLIENT_IDENTIFIER', 'seerr-users'))
