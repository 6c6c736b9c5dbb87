# File: seerr_users/services/base_provider.py
from typing import Any, Optional

import requests
from flask import current_app

from seerr_users.errors import ProviderError
from seerr_users.utils.timeout_helper import get_api_timeout


class BaseProviderClient:
    """Shared plumbing for the HTTP provider clients (session, timeout, logging, errors)."""

    provider_name = 'provider'

    def __init__(self, base_url: Optional[str] = None, name: Optional[str] = None):
        self.base_url = (base_url or '').rstrip('/')
        self.name = name or self.provider_name
        self.session = requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

    def _request(self, method: str, path_or_url: str, **kwargs) -> requests.Response:
        """Send one request. Transport and HTTP errors become :class:`ProviderError`."""
        url = path_or_url if path_or_url.startswith('http') else f"{self.base_url}{path_or_url}"
        kwargs.setdefault('timeout', get_api_timeout())
        try:
            response = self.session.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            self.log_error(f"{method} {url} returned HTTP {status}")
            raise ProviderError(f"{self.name} returned HTTP {status}", status_code=status,
                                provider=self.provider_name) from e
        except requests.exceptions.Timeout as e:
            self.log_error(f"{method} {url} timed out")
            raise ProviderError(f"Request to {self.name} timed out", provider=self.provider_name) from e
        except requests.exceptions.RequestException as e:
            self.log_error(f"{method} {url} failed: {e}")
            raise ProviderError(f"Could not reach {self.name}: {e}", provider=self.provider_name) from e

    def _json(self, method: str, path_or_url: str, **kwargs) -> Any:
        response = self._request(method, path_or_url, **kwargs)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"{self.name} returned a non-JSON response", status_code=response.status_code,
                                provider=self.provider_name) from e

    def log_info(self, message: str):
        current_app.logger.debug(f"[{self.provider_name.upper()}:{self.name}] {message}")

    def log_warning(self, message: str):
        current_app.logger.warning(f"[{self.provider_name.upper()}:{self.name}] {message}")

    def log_error(self, message: str, exc_info: bool = False):
        current_app.logger.error(f"[{self.provider_name.upper()}:{self.name}] {message}", exc_info=exc_info)
