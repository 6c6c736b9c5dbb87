"""
Centralized timeout management utility
"""
from flask import current_app

from seerr_users.models import Setting


def get_api_timeout(fallback: int = 10) -> int:
    """
    Provider request timeout in seconds, from the API_TIMEOUT_SECONDS setting.

    Args:
        fallback (int): Used when the setting is missing or not a number
    """
    try:
        return int(Setting.get('API_TIMEOUT_SECONDS', fallback))
    except (ValueError, TypeError):
        current_app.logger.warning(f"Invalid API_TIMEOUT_SECONDS setting, using fallback: {fallback}")
        return fallback
