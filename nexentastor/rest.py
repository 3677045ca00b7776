"""
REST transport for NexentaStor appliances.

Provides:
- One requests.Session per appliance (connection pooling, TLS settings)
- JSON request encoding
- Per-client request ids for log correlation

Does NOT provide:
- Authentication state (see session.py)
- Error classification or retries (see executor.py)
"""

import logging
import threading
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode

import requests
import urllib3

from .errors import NefConnectionError

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 300


class RestClient:
    """
    Sends JSON requests to a single appliance address.

    Safe for concurrent use; the only shared mutable state is the request
    counter, which is guarded by a lock.
    """

    def __init__(
        self,
        address: str,
        insecure_skip_verify: bool = False,
        timeout: int = DEFAULT_REQUEST_TIMEOUT
    ):
        """
        Args:
            address: Appliance base URL, e.g. https://10.3.1.1:8443
            insecure_skip_verify: Skip certificate chain and host name checks
            timeout: Request timeout in seconds
        """
        self.address = address.rstrip("/")
        self.timeout = timeout
        self.http = requests.Session()
        self.http.verify = not insecure_skip_verify
        self.http.headers.update({
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        })
        self._lock = threading.Lock()
        self._request_id = 0

        if insecure_skip_verify:
            urllib3.disable_warnings()

        logger.debug(f"created for '{self.address}'")

    def __str__(self):
        return self.address

    def next_request_id(self) -> int:
        with self._lock:
            self._request_id += 1
            return self._request_id

    @staticmethod
    def build_uri(uri: str, params: Dict[str, Any]) -> str:
        """
        Build a request URI in [path?params...] format.

        Parameters with empty values are left out.
        """
        values = {key: val for key, val in params.items() if val is not None and str(val) != ""}
        if not values:
            return uri
        return f"{uri}?{urlencode(values)}"

    def send(
        self,
        method: str,
        path: str,
        data: Any = None,
        auth: Optional[requests.auth.AuthBase] = None
    ) -> Tuple[int, bytes]:
        """
        Send one request to the appliance.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            path: Path below the appliance address, starting with "/"
            data: JSON-serializable payload, or None for no body
            auth: requests auth object supplied by the session

        Returns:
            Tuple of (status_code, raw_body)

        Raises:
            NefConnectionError: If no response was received
        """
        request_id = self.next_request_id()
        url = f"{self.address}{path}"
        logger.debug(f"[{self.address} #{request_id}] {method} {url}")

        request_kwargs = {'timeout': self.timeout}
        if auth is not None:
            request_kwargs['auth'] = auth
        if data is not None:
            request_kwargs['json'] = data
            logger.debug(f"[{self.address} #{request_id}] json: {data}")

        try:
            response = self.http.request(method, url, **request_kwargs)
        except requests.exceptions.RequestException as e:
            logger.debug(f"[{self.address} #{request_id}] request error: {e}")
            raise NefConnectionError(f"Request '{method} {url}' failed: {e}") from e

        logger.debug(
            f"[{self.address} #{request_id}] response {response.status_code}: {response.content!r}"
        )
        return response.status_code, response.content

    def close(self):
        """Close pooled connections."""
        self.http.close()
