"""Migration orchestrator run once at application startup."""

import asyncio
import weakref
from collections.abc import Sequence
from dataclasses import dataclass, field

from state_migrator.constants import FRESH_INSTALL_VERSION, STATE_VERSION
from state_migrator.exceptions import MigrationError, UnsupportedVersionError
from state_migrator.logger import get_logger
from state_migrator.migration.context import MigrationContext
from state_migrator.migration.detector import VersionDetector
from state_migrator.migration.steps import MIGRATION_STEPS, MigrationStep
from state_migrator.storage import StorageService
from state_migrator.token import TokenService

logger = get_logger(__name__)

# asyncio primitives are bound to one event loop, so the lock is kept per loop
_run_locks: weakref.WeakKeyDictionary[
    asyncio.AbstractEventLoop, asyncio.Lock
] = weakref.WeakKeyDictionary()


def run_lock() -> asyncio.Lock:
    """Return the process-wide migration lock for the running event loop.

    Every StateMigrationService shares it, so at most one run is in
    flight no matter how many services were created.
    """
    loop = asyncio.get_running_loop()
    lock = _run_locks.get(loop)
    if lock is None:
        lock = asyncio.Lock()
        _run_locks[loop] = lock
    return lock


@dataclass(frozen=True)
class MigrationResult:
    """Outcome of one ``migrate_if_needed`` call."""

    from_version: int
    to_version: int
    applied_steps: tuple[str, ...] = field(default_factory=tuple)
    fresh_install: bool = False

    @property
    def migrated(self) -> bool:
        """True if at least one step ran."""
        return bool(self.applied_steps)


def validate_chain(steps: Sequence[MigrationStep], latest: int) -> None:
    """Check that ``steps`` covers 1 -> ``latest`` without gaps.

    Raises:
        ValueError: If a step is out of order, skips a version, or the
            chain does not end at ``latest``

    """
    expected = 1
    for step in steps:
        if step.from_version != expected or step.to_version != expected + 1:
            msg = (
                f"Step {step.name} out of order, expected "
                f"v{expected}->v{expected + 1}"
            )
            raise ValueError(msg)
        expected += 1

    if expected != latest:
        msg = f"Step chain ends at v{expected}, latest is v{latest}"
        raise ValueError(msg)


class StateMigrationService:
    """Bring persisted state up to the latest schema version.

    Only one run is in flight per process at any time: concurrent callers,
    from this or any other service, wait on the shared run lock and then
    see the already migrated marker.

    Usage:
        service = StateMigrationService(document, preferences, secure)
        await service.migrate_if_needed()
    """

    def __init__(
        self,
        document: StorageService,
        preferences: StorageService,
        secure: StorageService,
        token_service: TokenService | None = None,
        steps: Sequence[MigrationStep] = MIGRATION_STEPS,
        latest_version: int = STATE_VERSION,
    ) -> None:
        """Initialize the migration service.

        Args:
            document: General purpose document store
            preferences: Preference store holding the version marker
            secure: Secure/encrypted store
            token_service: Resolves identity claims during the v2->v3 step
            steps: Ordered step chain, one step per version
            latest_version: Version the chain migrates to

        Raises:
            ValueError: If ``steps`` does not form a contiguous chain

        """
        validate_chain(steps, latest_version)
        self.context = MigrationContext(
            document, preferences, secure, token_service
        )
        self.detector = VersionDetector(self.context)
        self.steps = tuple(steps)
        self.latest_version = latest_version

    async def migrate_if_needed(self) -> MigrationResult:
        """Detect the stored version and run every pending step.

        Returns:
            What was done. ``from_version`` is 0 for a fresh install.

        Raises:
            MissingKeyError: If a step finds its mandatory data missing
            UnsupportedVersionError: If data was written by a newer schema
            MigrationError: If a step did not advance the version marker
            StorageError: If a backend fails

        """
        async with run_lock():
            current_version = await self.detector.detect()

            if current_version == FRESH_INSTALL_VERSION:
                # no prior data, record the latest schema directly
                await self.context.set_state_version(self.latest_version)
                logger.debug(
                    "Fresh install, state version set to %d",
                    self.latest_version,
                )
                return MigrationResult(
                    from_version=FRESH_INSTALL_VERSION,
                    to_version=self.latest_version,
                    fresh_install=True,
                )

            if current_version > self.latest_version:
                msg = (
                    f"stored v{current_version} is newer than "
                    f"v{self.latest_version}"
                )
                raise UnsupportedVersionError(msg)

            if current_version == self.latest_version:
                return MigrationResult(
                    from_version=current_version,
                    to_version=current_version,
                )

            applied = await self._run_steps(current_version)
            logger.info(
                "Migrated local state from v%d to v%d",
                current_version,
                self.latest_version,
            )
            return MigrationResult(
                from_version=current_version,
                to_version=self.latest_version,
                applied_steps=applied,
            )

    async def _run_steps(self, current_version: int) -> tuple[str, ...]:
        """Run the chain from ``current_version`` to the latest version."""
        if current_version < 1:
            msg = f"invalid stored version v{current_version}"
            raise MigrationError(msg)

        applied: list[str] = []
        for step in self.steps[current_version - 1 :]:
            logger.debug("Running migration step %s", step.name)
            try:
                await step.apply(self.context)
            except Exception:
                logger.exception("Migration step %s failed", step.name)
                raise

            stored_version = await self.context.get_state_version()
            if stored_version != step.to_version:
                msg = (
                    f"version marker is {stored_version}, "
                    f"expected {step.to_version}"
                )
                raise MigrationError(msg, target=step.name)
            applied.append(step.name)

        return tuple(applied)
