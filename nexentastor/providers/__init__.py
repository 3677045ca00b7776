"""
Appliance providers.

create_provider() assembles the transport, session, executor and dialect
provider for one appliance. Explicit arguments override the settings.
"""

import logging
from typing import Dict, Optional, Type

from ..config import API_VARIANT_NEF, API_VARIANT_ZEBI, Settings, settings as default_settings
from ..errors import NefValidationError
from ..executor import RequestExecutor
from ..rest import RestClient
from .base import Provider
from .nef import NefProvider
from .zebi import ZebiProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: Dict[str, Type[Provider]] = {
    API_VARIANT_NEF: NefProvider,
    API_VARIANT_ZEBI: ZebiProvider,
}


def create_provider(
    address: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    api_variant: Optional[str] = None,
    insecure_skip_verify: Optional[bool] = None,
    config: Optional[Settings] = None,
    rest_client: Optional[RestClient] = None
) -> Provider:
    """
    Build a provider for one appliance.

    Args:
        address: Appliance base URL, e.g. https://10.3.1.1:8443
        username: Appliance user
        password: Appliance password
        api_variant: "nef" or "zebi"
        insecure_skip_verify: Skip TLS verification
        config: Settings to read defaults from, the module settings if omitted
        rest_client: Prebuilt transport; address and TLS options are then ignored

    Raises:
        NefValidationError: If no address is given or the variant is unknown
    """
    config = config or default_settings
    api_variant = (api_variant or config.api_variant).lower()

    provider_class = PROVIDER_CLASSES.get(api_variant)
    if provider_class is None:
        raise NefValidationError(
            f"Unknown api_variant {api_variant!r}, expected one of: {', '.join(sorted(PROVIDER_CLASSES))}"
        )

    if rest_client is None:
        address = address if address is not None else config.address
        if not address:
            raise NefValidationError("Appliance address is required")
        if insecure_skip_verify is None:
            insecure_skip_verify = config.insecure_skip_verify
        rest_client = RestClient(
            address,
            insecure_skip_verify=insecure_skip_verify,
            timeout=config.request_timeout_seconds,
        )

    session = provider_class.session_class(
        rest_client,
        username if username is not None else config.username,
        password if password is not None else config.password,
    )
    executor = RequestExecutor(
        session,
        job_poll_interval=config.job_poll_interval_seconds,
        job_timeout=config.job_timeout_seconds,
    )

    logger.debug(f"created {provider_class.__name__} for '{rest_client}'")
    return provider_class(
        executor,
        page_limit=config.page_limit,
        wait_for_async_jobs=config.wait_for_async_jobs,
    )


__all__ = [
    'PROVIDER_CLASSES',
    'NefProvider',
    'Provider',
    'ZebiProvider',
    'create_provider',
]
