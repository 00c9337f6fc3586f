"""Cloud account availability check."""

import logging

from cloud_dir_monitor.core.interfaces import IIdentityProvider

logger = logging.getLogger(__name__)


class DirectoryAvailabilityProbe:
    """Reports whether a cloud account is currently signed in and usable."""

    def __init__(self, identity_provider: IIdentityProvider):
        self.identity_provider = identity_provider

    def is_available(self) -> bool:
        """
        Check cloud availability.

        The identity token is looked up on every call so that sign-in and
        sign-out are reflected immediately.

        Returns:
            True if a non-empty identity token is present
        """
        available = bool(self.identity_provider.ubiquity_identity_token())
        logger.debug("Cloud availability: %s", available)
        return available
