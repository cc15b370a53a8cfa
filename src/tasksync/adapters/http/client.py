"""
API Client - Low-level HTTP client for the task server's REST API.

This handles the raw HTTP communication. Unlike a typical client it does
not raise on HTTP error statuses: the sync engine decides per status class
whether to serve the cache, queue a write, or drop it. Only a missing
response (connection refused, DNS failure, timeout) raises.
"""

import logging
from typing import Any, Optional

import requests

from ...core.exceptions import TransportError
from ...core.ports.token_provider import TokenProvider, StaticTokenProvider


SUCCESS = "success"
NOT_MODIFIED = "not_modified"
CLIENT_ERROR = "client_error"
SERVER_ERROR = "server_error"


def classify_status(status: int) -> str:
    """
    Map an HTTP status code to how the sync engine treats it.

    Args:
        status: HTTP status code

    Returns:
        One of "success", "not_modified", "client_error", "server_error"
    """
    if status == 304:
        return NOT_MODIFIED
    if 200 <= status < 300:
        return SUCCESS
    if 400 <= status < 500:
        return CLIENT_ERROR
    # Unexpected 1xx/3xx are retried like server errors
    return SERVER_ERROR


def decode_body(response: requests.Response, default: Any = None) -> Any:
    """Parse a JSON body; 204, empty and non-JSON bodies yield ``default``."""
    if response.status_code == 204 or not response.content:
        return default
    try:
        return response.json()
    except ValueError:
        return default


class ApiClient:
    """
    Low-level REST client.

    Handles the base URL, bearer authentication and transport errors.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: Optional[TokenProvider] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Server URL (e.g., http://localhost:3000)
            token_provider: Callable returning the current bearer token
            timeout: Per-request timeout in seconds
            session: Optional pre-built session (tests inject a fake one)
        """
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider or StaticTokenProvider()
        self.timeout = timeout
        self.logger = logging.getLogger("ApiClient")

        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    # -------------------------------------------------------------------------
    # Core Request Methods
    # -------------------------------------------------------------------------

    def url(self, path: str) -> str:
        """Build an absolute URL from a resource path."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def headers(self) -> dict[str, str]:
        """Build default headers, including the bearer credential when available."""
        headers = {"Content-Type": "application/json"}
        token = self.token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(
        self,
        method: str,
        url: str,
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> requests.Response:
        """
        Make an authenticated request.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE)
            url: Absolute URL or resource path
            json: JSON body (omitted when None)
            headers: Extra headers merged over the defaults

        Returns:
            The response, whatever its status code

        Raises:
            TransportError: When no response was received
        """
        url = self.url(url)
        request_headers = self.headers()
        if headers:
            request_headers.update(headers)

        kwargs: dict[str, Any] = {"headers": request_headers, "timeout": self.timeout}
        if json is not None:
            kwargs["json"] = json

        try:
            response = self._session.request(method, url, **kwargs)
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Request timed out: {method} {url}", url=url, cause=e)
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Connection failed: {method} {url}", url=url, cause=e)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request failed: {method} {url}: {e}", url=url, cause=e)

        self.logger.debug(f"{method} {url} -> {response.status_code}")
        return response

    def get(self, url: str, validator: Optional[str] = None) -> requests.Response:
        """GET request, conditional when a validator is given."""
        extra = {"If-None-Match": validator} if validator else None
        return self.request("GET", url, headers=extra)

    def close(self) -> None:
        self._session.close()
