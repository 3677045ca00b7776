"""
NexentaStor Error Classification

Parses appliance error bodies into typed exceptions and provides the
predicates callers branch on. Classification is by exact error code only;
message text is carried for diagnosis but never inspected.
"""

import json
from typing import Any, Optional, Union


class NefError(Exception):
    """Base exception for NexentaStor client operations"""

    def __init__(self, message: str, code: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message
        self.code = code or ""
        self.status_code = status_code
        super().__init__(self.message)


class NefValidationError(NefError):
    """Caller input rejected before anything was sent to the appliance"""

    def __init__(self, message: str):
        super().__init__(message, code="EINVAL")


class NefAuthError(NefError):
    """Session is missing or expired (EAUTH)"""


class NefNotFoundError(NefError):
    """Requested resource does not exist (ENOENT)"""


class NefAlreadyExistsError(NefError):
    """Resource already exists (EEXIST)"""


class NefInUseError(NefError):
    """Resource has dependents and cannot be changed (EBUSY)"""


class NefRemoteError(NefError):
    """
    Appliance returned an error that has no specific classification.

    Keeps the raw response body so the failure can be diagnosed.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Optional[bytes] = None
    ):
        super().__init__(message, code=code, status_code=status_code)
        self.body = body


class NefDecodeError(NefError):
    """Response body was empty or not valid JSON where data was expected"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, code="EDECODE", status_code=status_code)


class NefConnectionError(NefError):
    """Request never got a response (DNS, TLS, timeout, refused connection)"""

    def __init__(self, message: str):
        super().__init__(message, code="ECONN")


class NefJobTimeoutError(NefError):
    """Asynchronous appliance job did not finish within the poll timeout"""

    def __init__(self, href: str, timeout: float):
        message = f"Job '{href}' did not finish in {timeout} seconds"
        super().__init__(message, code="ETIMEDOUT")
        self.href = href


class NefErrorCodes:
    """
    Appliance error codes the client makes decisions on.
    Reference: NexentaStor REST API error object ("code" field)
    """

    AUTH = "EAUTH"
    NOT_FOUND = "ENOENT"
    ALREADY_EXISTS = "EEXIST"
    IN_USE = "EBUSY"


ERROR_CLASSES = {
    NefErrorCodes.AUTH: NefAuthError,
    NefErrorCodes.NOT_FOUND: NefNotFoundError,
    NefErrorCodes.ALREADY_EXISTS: NefAlreadyExistsError,
    NefErrorCodes.IN_USE: NefInUseError,
}


def classify(
    body: Union[bytes, str, None],
    status_code: Optional[int] = None,
    prefix: str = "Request error"
) -> Optional[NefError]:
    """
    Build a typed error from an appliance error body.

    Args:
        body: Raw response body, expected to be {"code": ..., "message": ...}
        status_code: HTTP status of the response, kept on the error
        prefix: Text prepended to the appliance message

    Returns:
        NefError subclass picked by code, or None if the body carries no message
    """
    if not body:
        return None

    try:
        response = json.loads(body)
    except ValueError:
        return None

    if not isinstance(response, dict):
        return None

    code = response.get("code") or ""
    message = response.get("message") or ""
    if not isinstance(code, str) or not isinstance(message, str) or not message:
        return None

    error_class = ERROR_CLASSES.get(code)
    if error_class is None:
        return NefRemoteError(f"{prefix}: {message}", code=code, status_code=status_code, body=body)
    return error_class(f"{prefix}: {message}", code=code, status_code=status_code)


def _has_code(error: Any, code: str) -> bool:
    return getattr(error, "code", None) == code


def is_auth_error(error: Any) -> bool:
    """True if the error says the session is missing or expired"""
    return _has_code(error, NefErrorCodes.AUTH)


def is_not_found(error: Any) -> bool:
    """True if the error says the resource does not exist"""
    return _has_code(error, NefErrorCodes.NOT_FOUND)


def is_already_exists(error: Any) -> bool:
    """True if the error says the resource already exists"""
    return _has_code(error, NefErrorCodes.ALREADY_EXISTS)


def is_in_use(error: Any) -> bool:
    """True if the error says the resource has dependents"""
    return _has_code(error, NefErrorCodes.IN_USE)
