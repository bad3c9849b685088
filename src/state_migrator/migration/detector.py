"""Schema version detection.

The explicit marker is the fast path. Installs that predate the marker
are classified by sentinel keys, each of which is removed by the step
that migrates away from its version, so at most one sentinel can match.
"""

from state_migrator.constants import FRESH_INSTALL_VERSION
from state_migrator.logger import get_logger
from state_migrator.migration.context import MigrationContext
from state_migrator.migration.keys import V1Keys, V2Keys
from state_migrator.storage import Store

logger = get_logger(__name__)


class VersionDetector:
    """Determine the schema version of persisted data."""

    def __init__(self, context: MigrationContext) -> None:
        self.context = context

    async def detect(self) -> int:
        """Return the schema version of the data on the device.

        Returns:
            The stored marker, 1 or 2 for marker-less legacy data, or 0
            for a fresh install.

        """
        version = await self.context.get_state_version()
        if version is not None:
            return version

        # environmentUrls still in the document store (never moved to prefs)
        v1_env_urls = await self.context.get_value(
            Store.DOCUMENT, V1Keys.ENVIRONMENT_URLS
        )
        if v1_env_urls is not None:
            logger.debug("No version marker, v1 sentinel found")
            return 1

        # standalone userId still exists (never moved into an Account)
        v2_user_id = await self.context.get_value(
            Store.DOCUMENT, V2Keys.USER_ID
        )
        if v2_user_id is not None:
            logger.debug("No version marker, v2 sentinel found")
            return 2

        return FRESH_INSTALL_VERSION
