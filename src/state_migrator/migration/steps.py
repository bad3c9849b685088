"""Migration step chain.

Every step moves data from schema N to N+1 in four phases:

1. read the keys of schema N (mandatory keys raise MissingKeyError)
2. write the relocated or restructured values
3. persist the new version marker
4. remove every superseded key

Removal is not optional: the version detector relies on it to tell
marker-less installs apart, and the rest of the application must never
see stale keys.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Final

from state_migrator.constants import STATE_KEY
from state_migrator.exceptions import MissingKeyError
from state_migrator.logger import get_logger
from state_migrator.migration.context import MigrationContext
from state_migrator.migration.keys import V1Keys, V2Keys, V3Keys, V4Keys
from state_migrator.models import (
    Account,
    AccountProfile,
    AccountSettings,
    AccountTokens,
    EnvironmentUrlData,
    KdfType,
    State,
    VaultTimeoutAction,
)
from state_migrator.schemas import validate_state_v3
from state_migrator.storage import Store

logger = get_logger(__name__)

StepFunc = Callable[[MigrationContext], Awaitable[None]]


@dataclass(frozen=True)
class MigrationStep:
    """One link of the chain, taking data from ``from_version`` to the next."""

    from_version: int
    to_version: int
    func: StepFunc

    @property
    def name(self) -> str:
        return f"v{self.from_version}->v{self.to_version}"

    async def apply(self, context: MigrationContext) -> None:
        await self.func(context)


@dataclass(frozen=True)
class Relocation:
    """A v2 loose key that becomes a per-user v3 key."""

    source_store: Store
    source_key: str
    target_store: Store
    target_key: Callable[[str], str]


# ---------------------------------------------------------------------------
# v1 -> v2
# ---------------------------------------------------------------------------


async def migrate_1_to_2(context: MigrationContext) -> None:
    """Move environment URLs from the document store to preferences."""
    environment_urls = await context.get_value(
        Store.DOCUMENT, V1Keys.ENVIRONMENT_URLS
    )
    if environment_urls is None:
        msg = "must be in the document store during migration from 1 to 2"
        raise MissingKeyError(msg, target=V1Keys.ENVIRONMENT_URLS)

    await context.set_value(
        Store.PREFERENCES, V2Keys.ENVIRONMENT_URLS, environment_urls
    )

    await context.set_state_version(2)

    await context.remove_value(Store.DOCUMENT, V1Keys.ENVIRONMENT_URLS)


# ---------------------------------------------------------------------------
# v2 -> v3
# ---------------------------------------------------------------------------

V2_TO_V3_RELOCATIONS: Final[tuple[Relocation, ...]] = (
    Relocation(
        Store.DOCUMENT,
        V2Keys.SYNC_ON_REFRESH,
        Store.DOCUMENT,
        V3Keys.sync_on_refresh,
    ),
    Relocation(
        Store.PREFERENCES,
        V2Keys.LAST_ACTIVE_TIME,
        Store.DOCUMENT,
        V3Keys.last_active_time,
    ),
    Relocation(
        Store.DOCUMENT,
        V2Keys.BIOMETRIC_UNLOCK,
        Store.DOCUMENT,
        V3Keys.biometric_unlock,
    ),
    Relocation(
        Store.DOCUMENT,
        V2Keys.PROTECTED_PIN,
        Store.DOCUMENT,
        V3Keys.protected_pin,
    ),
    Relocation(
        Store.DOCUMENT,
        V2Keys.PIN_PROTECTED_KEY,
        Store.DOCUMENT,
        V3Keys.pin_protected_key,
    ),
    Relocation(
        Store.PREFERENCES,
        V2Keys.DEFAULT_URI_MATCH,
        Store.DOCUMENT,
        V3Keys.default_uri_match,
    ),
    Relocation(
        Store.PREFERENCES,
        V2Keys.DISABLE_AUTO_TOTP_COPY,
        Store.DOCUMENT,
        V3Keys.disable_auto_totp_copy,
    ),
    Relocation(
        Store.PREFERENCES,
        V2Keys.AUTOFILL_DISABLE_SAVE_PROMPT,
        Store.DOCUMENT,
        V3Keys.autofill_disable_save_prompt,
    ),
    Relocation(
        Store.DOCUMENT,
        V2Keys.AUTOFILL_BLACKLISTED_URIS,
        Store.DOCUMENT,
        V3Keys.autofill_blacklisted_uris,
    ),
    Relocation(
        Store.PREFERENCES,
        V2Keys.DISABLE_FAVICON,
        Store.DOCUMENT,
        V3Keys.disable_favicon,
    ),
    Relocation(
        Store.PREFERENCES,
        V2Keys.THEME,
        Store.DOCUMENT,
        V3Keys.theme,
    ),
    Relocation(
        Store.PREFERENCES,
        V2Keys.CLEAR_CLIPBOARD,
        Store.DOCUMENT,
        V3Keys.clear_clipboard,
    ),
    Relocation(
        Store.DOCUMENT,
        V2Keys.PREVIOUS_PAGE,
        Store.DOCUMENT,
        V3Keys.previous_page,
    ),
    Relocation(
        Store.PREFERENCES,
        V2Keys.INLINE_AUTOFILL_ENABLED,
        Store.DOCUMENT,
        V3Keys.inline_autofill_enabled,
    ),
    Relocation(
        Store.PREFERENCES,
        V2Keys.INVALID_UNLOCK_ATTEMPTS,
        Store.DOCUMENT,
        V3Keys.invalid_unlock_attempts,
    ),
    Relocation(
        Store.DOCUMENT,
        V2Keys.PASSWORD_REPROMPT_AUTOFILL,
        Store.DOCUMENT,
        V3Keys.password_reprompt_autofill,
    ),
    Relocation(
        Store.DOCUMENT,
        V2Keys.PASSWORD_VERIFIED_AUTOFILL,
        Store.DOCUMENT,
        V3Keys.password_verified_autofill,
    ),
    Relocation(
        Store.DOCUMENT,
        V2Keys.LOCAL_DATA,
        Store.DOCUMENT,
        V3Keys.local_data,
    ),
    Relocation(
        Store.DOCUMENT,
        V2Keys.NEVER_DOMAINS,
        Store.DOCUMENT,
        V3Keys.never_domains,
    ),
    Relocation(Store.SECURE, V2Keys.KEY, Store.SECURE, V3Keys.key),
    Relocation(
        Store.DOCUMENT,
        V2Keys.ENC_ORG_KEYS,
        Store.DOCUMENT,
        V3Keys.enc_org_keys,
    ),
    Relocation(
        Store.DOCUMENT,
        V2Keys.ENC_PRIVATE_KEY,
        Store.DOCUMENT,
        V3Keys.enc_private_key,
    ),
    Relocation(
        Store.DOCUMENT,
        V2Keys.ENC_KEY,
        Store.DOCUMENT,
        V3Keys.enc_key,
    ),
    Relocation(
        Store.DOCUMENT,
        V2Keys.KEY_HASH,
        Store.DOCUMENT,
        V3Keys.key_hash,
    ),
    Relocation(
        Store.DOCUMENT,
        V2Keys.USES_KEY_CONNECTOR,
        Store.DOCUMENT,
        V3Keys.uses_key_connector,
    ),
    Relocation(
        Store.DOCUMENT,
        V2Keys.PASS_GEN_OPTIONS,
        Store.DOCUMENT,
        V3Keys.pass_gen_options,
    ),
    Relocation(
        Store.DOCUMENT,
        V2Keys.PASS_GEN_HISTORY,
        Store.DOCUMENT,
        V3Keys.pass_gen_history,
    ),
)

# Keys folded into the Account or dropped outright in schema 3
V2_OBSOLETE_KEYS: Final[tuple[tuple[Store, str], ...]] = (
    (Store.DOCUMENT, V2Keys.USER_ID),
    (Store.DOCUMENT, V2Keys.USER_EMAIL),
    (Store.DOCUMENT, V2Keys.ACCESS_TOKEN),
    (Store.DOCUMENT, V2Keys.REFRESH_TOKEN),
    (Store.DOCUMENT, V2Keys.KDF),
    (Store.DOCUMENT, V2Keys.KDF_ITERATIONS),
    (Store.DOCUMENT, V2Keys.STAMP),
    (Store.DOCUMENT, V2Keys.EMAIL_VERIFIED),
    (Store.DOCUMENT, V2Keys.FORCE_PASSWORD_RESET),
    (Store.PREFERENCES, V2Keys.ENVIRONMENT_URLS),
    (Store.PREFERENCES, V2Keys.VAULT_TIMEOUT),
    (Store.PREFERENCES, V2Keys.VAULT_TIMEOUT_ACTION),
    (Store.PREFERENCES, V2Keys.MIGRATED_FROM_V1),
    (Store.PREFERENCES, V2Keys.MIGRATED_FROM_V1_AUTOFILL_PROMPT_SHOWN),
    (Store.PREFERENCES, V2Keys.TRIED_V1_RESYNC),
)


def _has_text(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


async def _build_v2_account(
    context: MigrationContext,
) -> tuple[str, Account]:
    """Assemble an Account from the loose v2 identity and settings keys.

    Returns:
        The resolved user id and the new Account

    Raises:
        MissingKeyError: If no user id can be found, even after asking the
            token service.

    """
    user_id = await context.get_value(Store.DOCUMENT, V2Keys.USER_ID)
    email = await context.get_value(Store.DOCUMENT, V2Keys.USER_EMAIL)
    name = None
    has_premium_personally = False

    access_token = await context.get_value(Store.DOCUMENT, V2Keys.ACCESS_TOKEN)
    if _has_text(access_token):
        if context.token_service is None:
            logger.warning(
                "Access token present but no token service configured; "
                "identity claims will not be backfilled"
            )
        else:
            identity = await context.token_service.resolve_identity(
                access_token
            )
            if not _has_text(user_id):
                user_id = identity.user_id
            if not _has_text(email):
                email = identity.email
            name = identity.name
            has_premium_personally = identity.premium

    if not _has_text(user_id):
        msg = "must be in the document store during migration from 2 to 3"
        raise MissingKeyError(msg, target=V2Keys.USER_ID)

    kdf_type = await context.get_value(Store.DOCUMENT, V2Keys.KDF)
    kdf_iterations = await context.get_value(
        Store.DOCUMENT, V2Keys.KDF_ITERATIONS
    )
    stamp = await context.get_value(Store.DOCUMENT, V2Keys.STAMP)
    email_verified = await context.get_value(
        Store.DOCUMENT, V2Keys.EMAIL_VERIFIED
    )
    refresh_token = await context.get_value(
        Store.DOCUMENT, V2Keys.REFRESH_TOKEN
    )

    environment_urls = await context.get_value(
        Store.PREFERENCES, V2Keys.ENVIRONMENT_URLS
    )
    vault_timeout = await context.get_value(
        Store.PREFERENCES, V2Keys.VAULT_TIMEOUT
    )
    vault_timeout_action = await context.get_value(
        Store.PREFERENCES, V2Keys.VAULT_TIMEOUT_ACTION
    )

    return user_id, Account(
        profile=AccountProfile(
            user_id=user_id,
            email=email,
            name=name,
            stamp=stamp,
            kdf_type=(
                KdfType.from_stored(kdf_type)
                if kdf_type is not None
                else None
            ),
            kdf_iterations=kdf_iterations,
            email_verified=email_verified,
            has_premium_personally=has_premium_personally,
        ),
        tokens=AccountTokens(
            access_token=access_token,
            refresh_token=refresh_token,
        ),
        settings=AccountSettings(
            environment_urls=(
                EnvironmentUrlData.from_dict(environment_urls)
                if isinstance(environment_urls, dict)
                else None
            ),
            vault_timeout=vault_timeout,
            vault_timeout_action=VaultTimeoutAction.from_legacy(
                vault_timeout_action
            ),
        ),
    )


async def migrate_2_to_3(context: MigrationContext) -> None:
    """Group loose v2 keys into a State aggregate and per-user keys."""
    user_id, account = await _build_v2_account(context)

    state = State(accounts={user_id: account}, active_user_id=user_id)
    await context.set_value(Store.DOCUMENT, STATE_KEY, state.to_dict())

    for relocation in V2_TO_V3_RELOCATIONS:
        value = await context.get_value(
            relocation.source_store, relocation.source_key
        )
        await context.set_value(
            relocation.target_store, relocation.target_key(user_id), value
        )

    environment_urls = await context.get_value(
        Store.PREFERENCES, V2Keys.ENVIRONMENT_URLS
    )
    await context.set_value(
        Store.PREFERENCES, V3Keys.PRE_AUTH_ENVIRONMENT_URLS, environment_urls
    )

    await context.set_state_version(3)

    for store, key in V2_OBSOLETE_KEYS:
        await context.remove_value(store, key)
    for relocation in V2_TO_V3_RELOCATIONS:
        await context.remove_value(
            relocation.source_store, relocation.source_key
        )


# ---------------------------------------------------------------------------
# v3 -> v4
# ---------------------------------------------------------------------------


async def migrate_3_to_4(context: MigrationContext) -> None:
    """Move per-account settings out of the State aggregate.

    Vault timeout settings become standalone per-user keys. Theme and
    favicon settings become global, seeded from the first account in the
    stored ``accounts`` order.

    Raises:
        SchemaValidationError: If the stored state document is malformed

    """
    raw_state = await context.get_value(Store.DOCUMENT, STATE_KEY)
    if raw_state is not None:
        validate_state_v3(raw_state)
    state = State.from_dict(raw_state) if raw_state is not None else None
    if state is None or state.accounts is None:
        logger.debug("No accounts in state, nothing to move")
        await context.set_state_version(4)
        return

    user_ids = [
        account.user_id
        for account in state.accounts.values()
        if account is not None and account.user_id is not None
    ]

    for account in state.accounts.values():
        if account is None or account.user_id is None:
            continue
        user_id = account.user_id
        settings = account.settings or AccountSettings()

        await context.set_value(
            Store.DOCUMENT,
            V4Keys.vault_timeout(user_id),
            settings.vault_timeout,
        )
        await context.set_value(
            Store.DOCUMENT,
            V4Keys.vault_timeout_action(user_id),
            (
                int(settings.vault_timeout_action)
                if settings.vault_timeout_action is not None
                else None
            ),
        )
        await context.set_value(
            Store.DOCUMENT,
            V4Keys.screen_capture_allowed(user_id),
            settings.screen_capture_allowed,
        )

    if user_ids:
        first_user_id = user_ids[0]
        for per_user_key, global_key in (
            (V3Keys.theme(first_user_id), V4Keys.THEME),
            (V3Keys.auto_dark_theme(first_user_id), V4Keys.AUTO_DARK_THEME),
            (V3Keys.disable_favicon(first_user_id), V4Keys.DISABLE_FAVICON),
        ):
            value = await context.get_value(Store.DOCUMENT, per_user_key)
            await context.set_value(Store.DOCUMENT, global_key, value)

    await context.set_state_version(4)

    for user_id in user_ids:
        await context.remove_value(Store.DOCUMENT, V3Keys.theme(user_id))
        await context.remove_value(
            Store.DOCUMENT, V3Keys.auto_dark_theme(user_id)
        )
        await context.remove_value(
            Store.DOCUMENT, V3Keys.disable_favicon(user_id)
        )

    # The State aggregate itself is rebuilt by the application on next save


MIGRATION_STEPS: Final[tuple[MigrationStep, ...]] = (
    MigrationStep(1, 2, migrate_1_to_2),
    MigrationStep(2, 3, migrate_2_to_3),
    MigrationStep(3, 4, migrate_3_to_4),
)
