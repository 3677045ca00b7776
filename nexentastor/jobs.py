"""
Asynchronous appliance jobs.

NEF answers long-running requests with 202 Accepted and a "monitor" link.
Polling the link keeps returning 202 until the job finishes; the final poll
returns 2xx, or an error body if the job failed.
"""

import json
import logging
import time
from typing import Any, Union

from .errors import NefDecodeError, NefJobTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 3
DEFAULT_TIMEOUT = 60


def parse_monitor_href(body: Union[bytes, str, None]) -> str:
    """
    Extract the job monitor link from a 202 response body.

    Raises:
        NefDecodeError: If the body has no usable monitor link
    """
    try:
        response = json.loads(body) if body else None
    except ValueError:
        response = None

    links = response.get('links', []) if isinstance(response, dict) else []
    for link in links:
        if isinstance(link, dict) and link.get('rel') == 'monitor' and link.get('href'):
            return link['href']

    raise NefDecodeError(
        f"Request returned an async job, but response doesn't contain a monitor link: {body!r}",
        status_code=202,
    )


class AsyncJob:
    """Handle for polling one accepted appliance job."""

    def __init__(
        self,
        executor: Any,
        href: str,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT
    ):
        """
        Args:
            executor: RequestExecutor used for the poll requests
            href: Monitor path returned by the appliance
            poll_interval: Seconds between polls
            timeout: Maximum wait time in seconds, independent of the request timeout
        """
        self.executor = executor
        self.href = href
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.done = False

    def __repr__(self):
        return f"AsyncJob({self.href!r}, done={self.done})"

    def poll(self) -> bool:
        """
        Check the job once.

        Returns:
            True once the job has finished successfully

        Raises:
            NefError: If the job finished with an error
        """
        response = self.executor.execute('GET', self.href)
        self.done = response.status_code != 202
        return self.done

    def wait(self) -> 'AsyncJob':
        """
        Poll until the job finishes or the timeout expires.

        Raises:
            NefJobTimeoutError: If the job is still running after the timeout
            NefError: If the job finished with an error
        """
        start_time = time.monotonic()

        while not self.poll():
            if time.monotonic() - start_time + self.poll_interval > self.timeout:
                raise NefJobTimeoutError(self.href, self.timeout)
            logger.debug(f"job {self.href} still running, next check in {self.poll_interval}s")
            time.sleep(self.poll_interval)

        logger.debug(f"job {self.href} completed")
        return self
