"""
Request Executor

Every appliance call goes through RequestExecutor.execute(), which:
- Sends the request with the session's current credentials
- Re-authenticates and resends once when the session has expired
- Turns 202 Accepted into an AsyncJob handle
- Raises a classified NefError for any other non-2xx response

Only session expiry triggers a resend. Other failures are never retried,
since resending mutating calls could duplicate their side effects.
"""

import json
import logging
from typing import Any, NamedTuple, Optional, Tuple

from .errors import NefDecodeError, NefRemoteError, classify, is_auth_error
from .jobs import DEFAULT_POLL_INTERVAL, DEFAULT_TIMEOUT, AsyncJob, parse_monitor_href
from .rest import RestClient
from .session import ApplianceSession

logger = logging.getLogger(__name__)


class ApplianceResponse(NamedTuple):
    """Successful (2xx) appliance response."""
    status_code: int
    body: bytes
    job: Optional[AsyncJob] = None


class RequestExecutor:
    """Executes logical requests against one appliance session."""

    def __init__(
        self,
        session: ApplianceSession,
        job_poll_interval: float = DEFAULT_POLL_INTERVAL,
        job_timeout: float = DEFAULT_TIMEOUT
    ):
        self.session = session
        self.job_poll_interval = job_poll_interval
        self.job_timeout = job_timeout

    @property
    def rest_client(self) -> RestClient:
        return self.session.rest_client

    def _send(self, method: str, path: str, data: Any) -> Tuple[int, bytes]:
        return self.rest_client.send(method, path, data, auth=self.session.auth())

    def execute(self, method: str, path: str, data: Any = None) -> ApplianceResponse:
        """
        Execute one logical request.

        Args:
            method: HTTP method
            path: Appliance path
            data: JSON-serializable payload or None

        Returns:
            ApplianceResponse; job is set when the appliance accepted an async job

        Raises:
            NefAuthError: If the session is still rejected after one re-login
            NefError: Classified appliance error for any other non-2xx status
        """
        status_code, body = self._send(method, path, data)

        # log in again if the session expired, then resend the same request once
        if status_code == 401 and is_auth_error(classify(body, status_code)):
            logger.info(f"session on '{self.rest_client}' expired, re-authenticating for {method} {path}")
            self.session.invalidate()
            status_code, body = self._send(method, path, data)

        if status_code == 202:
            href = parse_monitor_href(body)
            job = AsyncJob(self, href, poll_interval=self.job_poll_interval, timeout=self.job_timeout)
            logger.debug(f"{method} {path} accepted as async job {href}")
            return ApplianceResponse(status_code, body, job)

        if status_code >= 300:
            error = classify(body, status_code)
            if error is not None:
                raise error
            raise NefRemoteError(
                f"Request '{method} {path}' returned {status_code} code, "
                f"but response body doesn't contain explanation: {body!r}",
                status_code=status_code,
                body=body,
            )

        return ApplianceResponse(status_code, body)

    def execute_json(self, method: str, path: str, data: Any = None) -> Any:
        """
        Execute a request whose response must carry a JSON document.

        Raises:
            NefDecodeError: If the body is empty or not valid JSON
        """
        response = self.execute(method, path, data)

        if not response.body:
            raise NefDecodeError(
                f"Request '{method} {path}' responded with empty body",
                status_code=response.status_code,
            )

        try:
            return json.loads(response.body)
        except ValueError as e:
            raise NefDecodeError(
                f"Request '{method} {path}' responded with invalid JSON: {response.body!r}: {e}",
                status_code=response.status_code,
            ) from e
