"""
Path to appliance resolution.

Given several configured appliances, finds the one that serves a filesystem.
"""

import logging
from typing import List, Optional, Sequence

from .config import Settings, settings as default_settings
from .errors import NefNotFoundError, NefValidationError
from .providers import Provider, create_provider

logger = logging.getLogger(__name__)


class Resolver:
    """Picks the provider that holds a given filesystem path."""

    def __init__(self, providers: Sequence[Provider]):
        if not providers:
            raise NefValidationError("Resolver needs at least one provider")
        self.providers: List[Provider] = list(providers)

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> 'Resolver':
        """One provider per address in the comma separated address setting."""
        config = config or default_settings
        addresses = config.addresses()
        if not addresses:
            raise NefValidationError("No appliance address configured")
        return cls([create_provider(address=address, config=config) for address in addresses])

    def resolve(self, path: str) -> Provider:
        """
        Return the first provider on which the filesystem exists.

        Raises:
            NefNotFoundError: If no provider has the filesystem
            NefError: Any other provider error, unchanged
        """
        if not path:
            raise NefValidationError("Filesystem path is required")

        for provider in self.providers:
            try:
                provider.get_filesystem(path)
            except NefNotFoundError:
                logger.debug(f"'{path}' not found on '{provider}'")
                continue
            logger.debug(f"'{path}' resolved to '{provider}'")
            return provider

        raise NefNotFoundError(
            f"No appliance found for filesystem '{path}', "
            f"checked: {', '.join(str(p) for p in self.providers)}",
            code="ENOENT",
        )

    def close(self):
        for provider in self.providers:
            provider.close()
