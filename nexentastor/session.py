"""
Appliance authentication sessions.

A session is an explicit value owned by one RequestExecutor, so clients bound
to different appliances never share or race on credentials.

- TokenSession: NEF login (POST /auth/login) and bearer token
- BasicAuthSession: HTTP basic credentials sent with every zebi call
"""

import json
import logging
from typing import Optional

import requests

from . import endpoints
from .errors import NefDecodeError, NefRemoteError, classify
from .rest import RestClient

logger = logging.getLogger(__name__)


class BearerAuth(requests.auth.AuthBase):
    """Attach a NEF bearer token to a request"""

    def __init__(self, token: str):
        self.token = token

    def __call__(self, request):
        request.headers['Authorization'] = f"Bearer {self.token}"
        return request


class ApplianceSession:
    """Credentials for one appliance and whatever login state they produce."""

    def __init__(self, rest_client: RestClient, username: str, password: str):
        self.rest_client = rest_client
        self.username = username
        self.password = password

    def auth(self) -> requests.auth.AuthBase:
        """Return the auth object for the next request, logging in if needed."""
        raise NotImplementedError

    def invalidate(self):
        """Forget login state so the next auth() call establishes a new one."""
        raise NotImplementedError


class BasicAuthSession(ApplianceSession):
    """
    Stateless session: credentials travel with every request.

    Invalidating is a no-op, a resend simply carries the credentials again.
    """

    def auth(self) -> requests.auth.AuthBase:
        return requests.auth.HTTPBasicAuth(self.username, self.password)

    def invalidate(self):
        logger.debug(f"basic auth session for '{self.rest_client}' has no state to reset")


class TokenSession(ApplianceSession):
    """
    Lazily logs in and caches the bearer token until invalidated.

    Two callers that observe an expired token at the same time both log in;
    the later token simply replaces the earlier one.
    """

    LOGIN_PATH = endpoints.NEF_AUTH_LOGIN

    def __init__(self, rest_client: RestClient, username: str, password: str):
        super().__init__(rest_client, username, password)
        self._token: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return self._token

    def auth(self) -> requests.auth.AuthBase:
        token = self._token
        if token is None:
            token = self.login()
        return BearerAuth(token)

    def invalidate(self):
        self._token = None

    def login(self) -> str:
        """
        Log in and store the new token.

        Raises:
            NefAuthError: If the appliance rejects the credentials
            NefDecodeError: If the login response has no token
        """
        logger.info(f"log in as '{self.username}' on '{self.rest_client}'...")
        status_code, body = self.rest_client.send(
            'POST',
            self.LOGIN_PATH,
            {'username': self.username, 'password': self.password},
        )

        if status_code >= 300:
            error = classify(body, status_code, prefix="Login failed")
            if error is not None:
                raise error
            raise NefRemoteError(
                f"Login returned {status_code} code, but response body doesn't contain explanation: {body!r}",
                status_code=status_code,
                body=body,
            )

        try:
            token = json.loads(body).get('token') if body else None
        except (ValueError, AttributeError):
            token = None
        if not token:
            raise NefDecodeError(f"Login response has no token: {body!r}", status_code=status_code)

        self._token = token
        return token
