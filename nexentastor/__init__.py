"""
NexentaStor client

Manages filesystems, volumes, snapshots, shares and iSCSI objects on
NexentaStor (NEF REST) and IntelliFlash (zebi RPC) appliances.
"""

__version__ = "1.0.0"

from .config import Settings, configure_logging, settings
from .errors import (
    NefAlreadyExistsError,
    NefAuthError,
    NefConnectionError,
    NefDecodeError,
    NefError,
    NefInUseError,
    NefJobTimeoutError,
    NefNotFoundError,
    NefRemoteError,
    NefValidationError,
    is_already_exists,
    is_auth_error,
    is_in_use,
    is_not_found,
)
from .providers import NefProvider, Provider, ZebiProvider, create_provider
from .resolver import Resolver

__all__ = [
    'NefAlreadyExistsError',
    'NefAuthError',
    'NefConnectionError',
    'NefDecodeError',
    'NefError',
    'NefInUseError',
    'NefJobTimeoutError',
    'NefNotFoundError',
    'NefProvider',
    'NefRemoteError',
    'NefValidationError',
    'Provider',
    'Resolver',
    'Settings',
    'ZebiProvider',
    'configure_logging',
    'create_provider',
    'is_already_exists',
    'is_auth_error',
    'is_in_use',
    'is_not_found',
    'settings',
]
