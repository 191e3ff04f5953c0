"""
Orchestrator Client Module

Performs authenticated GET requests against the orchestrator's platform API and
classifies each response into a decoded payload or an OrchestratorError.
"""

from typing import Any, Optional
import logging

import requests

from .errors import (
    OrchestratorError,
    Unauthorized,
    Forbidden,
    NotFound,
    UnknownStatus,
    TransportError,
    DecodeError
)
from .models import AllocatorsRoot, ProxiesRoot

logger = logging.getLogger(__name__)

ALLOCATORS_PATH = "api/v1/platform/infrastructure/allocators"
PROXIES_PATH = "api/v1/platform/infrastructure/proxies"


class OrchestratorClient:
    """
    Client for the orchestrator platform API.

    Exactly one credential mode is accepted: an API key, or a username and
    password pair used for HTTP Basic auth. Every call issues a fresh request;
    there are no retries and nothing is cached.
    """

    def __init__(self, base_url: str, timeout: float = 60,
                 api_key: Optional[str] = None,
                 username: Optional[str] = None,
                 password: Optional[str] = None,
                 verify_tls: bool = True):
        if not base_url:
            raise ValueError("base_url must not be empty")
        if api_key and (username or password):
            raise ValueError("api_key and username/password are mutually exclusive")
        if not api_key and not (username and password):
            raise ValueError("either api_key or both username and password are required")

        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.verify_tls = verify_tls
        self._api_key = api_key
        self._username = username
        self._password = password

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _auth_kwargs(self) -> dict:
        if self._api_key:
            return {'headers': {'Authorization': f"ApiKey {self._api_key}",
                                'Accept': 'application/json'}}
        return {'headers': {'Accept': 'application/json'},
                'auth': (self._username, self._password)}

    def fetch(self, path: str) -> requests.Response:
        """
        GET {base_url}/{path} and return the response if the status is 200.

        Raises:
            Unauthorized, Forbidden, NotFound: for 401, 403 and 404
            UnknownStatus: for any other non-200 status
            TransportError: if the request never produced a response
        """
        url = self._url(path)
        logger.debug(f"Getting url {url}")

        try:
            response = requests.get(url, timeout=self.timeout,
                                    verify=self.verify_tls, **self._auth_kwargs())
        except requests.exceptions.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise TransportError(e) from e

        status = response.status_code
        if status == 200:
            return response
        if status == 401:
            raise Unauthorized()
        if status == 403:
            raise Forbidden()
        if status == 404:
            raise NotFound()

        logger.error(f"Got bad status code from orchestrator: {status}")
        try:
            logger.error(f"Bad response body: {response.json()}")
        except ValueError as e:
            # The diagnostic body is best effort; the outcome stays UnknownStatus
            logger.error(f"Could not decode bad response body: {DecodeError(e)}")
        raise UnknownStatus(status)

    def _fetch_json(self, path: str) -> Any:
        response = self.fetch(path)
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(e) from e

    def fetch_allocators(self) -> AllocatorsRoot:
        """Fetch and decode the allocator inventory."""
        return AllocatorsRoot.from_dict(self._fetch_json(ALLOCATORS_PATH))

    def fetch_proxies(self) -> ProxiesRoot:
        """Fetch and decode the proxy inventory."""
        return ProxiesRoot.from_dict(self._fetch_json(PROXIES_PATH))


__all__ = [
    'OrchestratorClient',
    'OrchestratorError',
    'ALLOCATORS_PATH',
    'PROXIES_PATH'
]
