"""Tests for the migration orchestrator."""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from state_migrator.exceptions import (
    MigrationError,
    MissingKeyError,
    UnsupportedVersionError,
)
from state_migrator.migration import (
    MigrationContext,
    MigrationStep,
    StateMigrationService,
    validate_chain,
)
from state_migrator.migration.service import run_lock
from state_migrator.storage import MemoryStorage, Store
from tests.migration.data import (
    ENVIRONMENT_URLS,
    USER_ID,
    seed,
    v1_document,
    v2_document,
    v2_preferences,
    v2_secure,
    v3_account,
)


def _recording_step(from_version: int, calls: list[int]) -> MigrationStep:
    """Step that records its run, yields once, then advances the marker."""

    async def func(context: MigrationContext) -> None:
        calls.append(from_version)
        await asyncio.sleep(0)
        await context.set_state_version(from_version + 1)

    return MigrationStep(from_version, from_version + 1, func)


def _snapshot(*stores: MemoryStorage) -> list[dict]:
    return [store.snapshot() for store in stores]


class TestFreshInstall:
    """No marker and no sentinel."""

    @pytest.mark.asyncio
    async def test_writes_latest_version_only(
        self,
        service: StateMigrationService,
        document: MemoryStorage,
        preferences: MemoryStorage,
        secure: MemoryStorage,
    ) -> None:
        """Only the marker is written."""
        result = await service.migrate_if_needed()

        assert result.fresh_install is True
        assert result.migrated is False
        assert (result.from_version, result.to_version) == (0, 4)
        assert preferences.snapshot() == {"stateVersion": 4}
        assert len(document) == 0
        assert len(secure) == 0


class TestFullMigration:
    """End-to-end runs over legacy data."""

    @pytest.mark.asyncio
    async def test_v2_to_v4(
        self,
        service: StateMigrationService,
        document: MemoryStorage,
        preferences: MemoryStorage,
        secure: MemoryStorage,
    ) -> None:
        """Every superseded key is gone and the new keys are populated."""
        await seed(document, v2_document())
        await seed(preferences, v2_preferences())
        await seed(secure, v2_secure())

        result = await service.migrate_if_needed()

        assert result.from_version == 2
        assert result.applied_steps == ("v2->v3", "v3->v4")
        assert preferences.snapshot() == {
            "preAuthEnvironmentUrls": ENVIRONMENT_URLS,
            "stateVersion": 4,
        }
        assert secure.snapshot() == {f"key_{USER_ID}": "user-key"}

        assert await document.get(f"vaultTimeout_{USER_ID}") == 15
        assert await document.get(f"vaultTimeoutAction_{USER_ID}") == 1
        assert f"screenCaptureAllowed_{USER_ID}" not in document
        assert await document.get("theme") == "dark"
        assert await document.get("disableFavicon") is True
        assert f"theme_{USER_ID}" not in document
        assert f"disableFavicon_{USER_ID}" not in document

        unsuffixed = set(v2_document()) & set(document.keys())
        assert unsuffixed == set()

    @pytest.mark.asyncio
    async def test_v1_to_v4(
        self,
        service: StateMigrationService,
        document: MemoryStorage,
        preferences: MemoryStorage,
    ) -> None:
        """Schema 1 data runs through all three steps."""
        await seed(document, {**v1_document(), "userId": USER_ID})

        result = await service.migrate_if_needed()

        assert result.from_version == 1
        assert result.applied_steps == ("v1->v2", "v2->v3", "v3->v4")
        assert "environmentUrls" not in document
        assert await preferences.get("preAuthEnvironmentUrls") == (
            ENVIRONMENT_URLS
        )
        state = await document.get("state")
        settings = state["accounts"][USER_ID]["settings"]
        assert settings["environmentUrls"] == ENVIRONMENT_URLS
        assert await document.get(f"vaultTimeoutAction_{USER_ID}") == 0

    @pytest.mark.asyncio
    async def test_v3_to_v4(
        self,
        service: StateMigrationService,
        document: MemoryStorage,
        preferences: MemoryStorage,
    ) -> None:
        """Only the last step runs when the marker says 3."""
        await preferences.save("stateVersion", 3)
        await seed(
            document,
            {
                "state": {"accounts": {"u1": v3_account("u1", 5, 1, True)}},
                "theme_u1": "light",
            },
        )

        result = await service.migrate_if_needed()

        assert result.applied_steps == ("v3->v4",)
        assert await document.get("vaultTimeout_u1") == 5
        assert await document.get("screenCaptureAllowed_u1") is True
        assert await document.get("theme") == "light"

    @pytest.mark.asyncio
    async def test_logs_completed_migration(
        self,
        service: StateMigrationService,
        document: MemoryStorage,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A successful run is logged at INFO."""
        await document.save("userId", USER_ID)

        with caplog.at_level(logging.INFO, logger="state_migrator"):
            await service.migrate_if_needed()

        assert "Migrated local state from v2 to v4" in caplog.text


class TestIdempotence:
    """A second run never changes anything."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start", ["fresh", "v1", "v2", "v3"])
    async def test_second_run_is_noop(
        self,
        start: str,
        service: StateMigrationService,
        document: MemoryStorage,
        preferences: MemoryStorage,
        secure: MemoryStorage,
    ) -> None:
        """Stores are identical after the first and second runs."""
        if start == "v1":
            await seed(document, {**v1_document(), "userId": USER_ID})
        elif start == "v2":
            await seed(document, v2_document())
            await seed(preferences, v2_preferences())
            await seed(secure, v2_secure())
        elif start == "v3":
            await preferences.save("stateVersion", 3)
            await document.save(
                "state", {"accounts": {"u1": v3_account("u1")}}
            )

        await service.migrate_if_needed()
        after_first = _snapshot(document, preferences, secure)

        result = await service.migrate_if_needed()

        assert result.migrated is False
        assert result.fresh_install is False
        assert (result.from_version, result.to_version) == (4, 4)
        assert _snapshot(document, preferences, secure) == after_first

    @pytest.mark.asyncio
    async def test_new_service_sees_migrated_state(
        self,
        document: MemoryStorage,
        preferences: MemoryStorage,
        secure: MemoryStorage,
        token_service: AsyncMock,
    ) -> None:
        """The marker persists across service instances."""
        await document.save("userId", USER_ID)
        first = StateMigrationService(document, preferences, secure)
        await first.migrate_if_needed()

        second = StateMigrationService(
            document, preferences, secure, token_service
        )
        result = await second.migrate_if_needed()

        assert result.migrated is False
        token_service.resolve_identity.assert_not_awaited()


class TestInterruptedRun:
    """A failing step leaves the marker at the last completed step."""

    @pytest.mark.asyncio
    async def test_resumes_from_last_completed_step(
        self,
        service: StateMigrationService,
        document: MemoryStorage,
        preferences: MemoryStorage,
    ) -> None:
        """v1 data without userId stops at v2, then resumes once fixed."""
        await seed(document, v1_document())

        with pytest.raises(MissingKeyError):
            await service.migrate_if_needed()

        assert await preferences.get("stateVersion") == 2
        assert await preferences.get("environmentUrls") == ENVIRONMENT_URLS
        assert "state" not in document

        await document.save("userId", USER_ID)
        result = await service.migrate_if_needed()

        assert result.from_version == 2
        assert result.applied_steps == ("v2->v3", "v3->v4")
        assert await preferences.get("stateVersion") == 4

    @pytest.mark.asyncio
    async def test_failure_is_logged(
        self,
        service: StateMigrationService,
        preferences: MemoryStorage,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """The failing step is named in the error log."""
        await preferences.save("stateVersion", 2)

        with caplog.at_level(logging.ERROR, logger="state_migrator"):
            with pytest.raises(MissingKeyError):
                await service.migrate_if_needed()

        assert "Migration step v2->v3 failed" in caplog.text

    @pytest.mark.asyncio
    async def test_step_without_marker_update_is_rejected(
        self,
        document: MemoryStorage,
        preferences: MemoryStorage,
        secure: MemoryStorage,
    ) -> None:
        """A step must persist its target version."""

        async def forgetful(context: MigrationContext) -> None:
            await context.set_value(Store.DOCUMENT, "touched", True)

        service = StateMigrationService(
            document,
            preferences,
            secure,
            steps=(MigrationStep(1, 2, forgetful),),
            latest_version=2,
        )
        await preferences.save("stateVersion", 1)

        with pytest.raises(MigrationError) as exc_info:
            await service.migrate_if_needed()

        assert exc_info.value.target == "v1->v2"
        assert await preferences.get("stateVersion") == 1


class TestConcurrency:
    """Overlapping calls never run a step twice."""

    @pytest.mark.asyncio
    async def test_concurrent_calls_run_chain_once(
        self,
        document: MemoryStorage,
        preferences: MemoryStorage,
        secure: MemoryStorage,
    ) -> None:
        """The second caller waits and then sees the latest version."""
        calls: list[int] = []
        service = StateMigrationService(
            document,
            preferences,
            secure,
            steps=tuple(_recording_step(v, calls) for v in (1, 2, 3)),
        )
        await preferences.save("stateVersion", 1)

        results = await asyncio.gather(
            service.migrate_if_needed(),
            service.migrate_if_needed(),
            service.migrate_if_needed(),
        )

        assert calls == [1, 2, 3]
        assert [r.migrated for r in results].count(True) == 1
        assert all(r.to_version == 4 for r in results)
        assert await preferences.get("stateVersion") == 4

    @pytest.mark.asyncio
    async def test_separate_services_share_run_lock(
        self,
        document: MemoryStorage,
        preferences: MemoryStorage,
        secure: MemoryStorage,
    ) -> None:
        """Two services over the same stores still run the chain once."""
        calls: list[int] = []
        steps = tuple(_recording_step(v, calls) for v in (1, 2, 3))
        first = StateMigrationService(
            document, preferences, secure, steps=steps
        )
        second = StateMigrationService(
            document, preferences, secure, steps=steps
        )
        await preferences.save("stateVersion", 1)

        results = await asyncio.gather(
            first.migrate_if_needed(),
            second.migrate_if_needed(),
        )

        assert calls == [1, 2, 3]
        assert sum(len(r.applied_steps) for r in results) == 3
        assert await preferences.get("stateVersion") == 4

    @pytest.mark.asyncio
    async def test_run_lock_is_shared(self) -> None:
        """Every caller on the running loop gets the same lock."""
        assert run_lock() is run_lock()


class TestVersionErrors:
    """Markers the chain cannot handle."""

    @pytest.mark.asyncio
    async def test_newer_version_is_rejected(
        self,
        service: StateMigrationService,
        document: MemoryStorage,
        preferences: MemoryStorage,
    ) -> None:
        """Data from a newer schema is left untouched."""
        await preferences.save("stateVersion", 5)
        await document.save("theme", "dark")

        with pytest.raises(UnsupportedVersionError):
            await service.migrate_if_needed()

        assert preferences.snapshot() == {"stateVersion": 5}
        assert document.snapshot() == {"theme": "dark"}

    @pytest.mark.asyncio
    async def test_negative_version_is_rejected(
        self,
        service: StateMigrationService,
        preferences: MemoryStorage,
    ) -> None:
        """A negative marker matches no step."""
        await preferences.save("stateVersion", -1)

        with pytest.raises(MigrationError, match="invalid stored version"):
            await service.migrate_if_needed()

    @pytest.mark.asyncio
    async def test_non_integer_marker_is_rejected(
        self,
        service: StateMigrationService,
        preferences: MemoryStorage,
    ) -> None:
        """Markers are stored as integers."""
        await preferences.save("stateVersion", "3")

        with pytest.raises(MigrationError, match="stateVersion"):
            await service.migrate_if_needed()


class TestValidateChain:
    """Step chain sanity checks."""

    def test_default_chain_is_valid(self) -> None:
        """The shipped chain covers v1 to v4."""
        service = StateMigrationService(
            MemoryStorage(), MemoryStorage(), MemoryStorage()
        )

        assert [step.name for step in service.steps] == [
            "v1->v2",
            "v2->v3",
            "v3->v4",
        ]
        assert service.latest_version == 4

    def test_gap_is_rejected(self) -> None:
        """Steps must be contiguous."""
        calls: list[int] = []
        steps = (_recording_step(1, calls), _recording_step(3, calls))

        with pytest.raises(ValueError, match="out of order"):
            validate_chain(steps, 4)

    def test_short_chain_is_rejected(self) -> None:
        """The chain must end at the latest version."""
        calls: list[int] = []
        steps = (_recording_step(1, calls), _recording_step(2, calls))

        with pytest.raises(ValueError, match="ends at v3"):
            validate_chain(steps, 4)

    def test_service_validates_on_construction(self) -> None:
        """A broken chain fails before any data is touched."""
        with pytest.raises(ValueError):
            StateMigrationService(
                MemoryStorage(),
                MemoryStorage(),
                MemoryStorage(),
                steps=(),
            )
