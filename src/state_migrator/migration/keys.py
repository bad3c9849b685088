"""Storage key tables, one per schema version.

Key strings must match what is already on devices byte for byte. Per-user
keys follow ``<fieldName>_<userId>``.
"""

from typing import Final

from state_migrator.constants import USER_KEY_SEPARATOR


def user_key(field_name: str, user_id: str) -> str:
    """Build a per-user key, e.g. ``theme_<userId>``."""
    return f"{field_name}{USER_KEY_SEPARATOR}{user_id}"


class V1Keys:
    """Keys that only exist in schema 1."""

    ENVIRONMENT_URLS: Final[str] = "environmentUrls"


class V2Keys:
    """Loose, ungrouped keys of schema 2."""

    SYNC_ON_REFRESH: Final[str] = "syncOnRefresh"
    VAULT_TIMEOUT: Final[str] = "lockOption"
    VAULT_TIMEOUT_ACTION: Final[str] = "vaultTimeoutAction"
    LAST_ACTIVE_TIME: Final[str] = "lastActiveTime"
    BIOMETRIC_UNLOCK: Final[str] = "fingerprintUnlock"
    PROTECTED_PIN: Final[str] = "protectedPin"
    PIN_PROTECTED_KEY: Final[str] = "pinProtectedKey"
    DEFAULT_URI_MATCH: Final[str] = "defaultUriMatch"
    DISABLE_AUTO_TOTP_COPY: Final[str] = "disableAutoTotpCopy"
    ENVIRONMENT_URLS: Final[str] = "environmentUrls"
    AUTOFILL_DISABLE_SAVE_PROMPT: Final[str] = "autofillDisableSavePrompt"
    AUTOFILL_BLACKLISTED_URIS: Final[str] = "autofillBlacklistedUris"
    DISABLE_FAVICON: Final[str] = "disableFavicon"
    THEME: Final[str] = "theme"
    CLEAR_CLIPBOARD: Final[str] = "clearClipboard"
    PREVIOUS_PAGE: Final[str] = "previousPage"
    INLINE_AUTOFILL_ENABLED: Final[str] = "inlineAutofillEnabled"
    INVALID_UNLOCK_ATTEMPTS: Final[str] = "invalidUnlockAttempts"
    PASSWORD_REPROMPT_AUTOFILL: Final[str] = "passwordRepromptAutofillKey"
    PASSWORD_VERIFIED_AUTOFILL: Final[str] = "passwordVerifiedAutofillKey"
    MIGRATED_FROM_V1: Final[str] = "migratedFromV1"
    MIGRATED_FROM_V1_AUTOFILL_PROMPT_SHOWN: Final[str] = (
        "migratedV1AutofillPromptShown"
    )
    TRIED_V1_RESYNC: Final[str] = "triedV1Resync"
    USER_ID: Final[str] = "userId"
    USER_EMAIL: Final[str] = "userEmail"
    STAMP: Final[str] = "securityStamp"
    KDF: Final[str] = "kdf"
    KDF_ITERATIONS: Final[str] = "kdfIterations"
    EMAIL_VERIFIED: Final[str] = "emailVerified"
    FORCE_PASSWORD_RESET: Final[str] = "forcePasswordReset"
    ACCESS_TOKEN: Final[str] = "accessToken"
    REFRESH_TOKEN: Final[str] = "refreshToken"
    LOCAL_DATA: Final[str] = "ciphersLocalData"
    NEVER_DOMAINS: Final[str] = "neverDomains"
    KEY: Final[str] = "key"
    ENC_ORG_KEYS: Final[str] = "encOrgKeys"
    ENC_PRIVATE_KEY: Final[str] = "encPrivateKey"
    ENC_KEY: Final[str] = "encKey"
    KEY_HASH: Final[str] = "keyHash"
    USES_KEY_CONNECTOR: Final[str] = "usesKeyConnector"
    PASS_GEN_OPTIONS: Final[str] = "passwordGenerationOptions"
    PASS_GEN_HISTORY: Final[str] = "generatedPasswordHistory"


class V3Keys:
    """Global keys and per-user key builders of schema 3."""

    PRE_AUTH_ENVIRONMENT_URLS: Final[str] = "preAuthEnvironmentUrls"

    @staticmethod
    def local_data(user_id: str) -> str:
        return user_key("ciphersLocalData", user_id)

    @staticmethod
    def never_domains(user_id: str) -> str:
        return user_key("neverDomains", user_id)

    @staticmethod
    def key(user_id: str) -> str:
        return user_key("key", user_id)

    @staticmethod
    def enc_org_keys(user_id: str) -> str:
        return user_key("encOrgKeys", user_id)

    @staticmethod
    def enc_private_key(user_id: str) -> str:
        return user_key("encPrivateKey", user_id)

    @staticmethod
    def enc_key(user_id: str) -> str:
        return user_key("encKey", user_id)

    @staticmethod
    def key_hash(user_id: str) -> str:
        return user_key("keyHash", user_id)

    @staticmethod
    def pin_protected_key(user_id: str) -> str:
        return user_key("pinProtectedKey", user_id)

    @staticmethod
    def pass_gen_options(user_id: str) -> str:
        return user_key("passwordGenerationOptions", user_id)

    @staticmethod
    def pass_gen_history(user_id: str) -> str:
        return user_key("generatedPasswordHistory", user_id)

    @staticmethod
    def last_active_time(user_id: str) -> str:
        return user_key("lastActiveTime", user_id)

    @staticmethod
    def invalid_unlock_attempts(user_id: str) -> str:
        return user_key("invalidUnlockAttempts", user_id)

    @staticmethod
    def inline_autofill_enabled(user_id: str) -> str:
        return user_key("inlineAutofillEnabled", user_id)

    @staticmethod
    def autofill_disable_save_prompt(user_id: str) -> str:
        return user_key("autofillDisableSavePrompt", user_id)

    @staticmethod
    def autofill_blacklisted_uris(user_id: str) -> str:
        return user_key("autofillBlacklistedUris", user_id)

    @staticmethod
    def clear_clipboard(user_id: str) -> str:
        return user_key("clearClipboard", user_id)

    @staticmethod
    def sync_on_refresh(user_id: str) -> str:
        return user_key("syncOnRefresh", user_id)

    @staticmethod
    def default_uri_match(user_id: str) -> str:
        return user_key("defaultUriMatch", user_id)

    @staticmethod
    def disable_auto_totp_copy(user_id: str) -> str:
        return user_key("disableAutoTotpCopy", user_id)

    @staticmethod
    def previous_page(user_id: str) -> str:
        return user_key("previousPage", user_id)

    @staticmethod
    def password_reprompt_autofill(user_id: str) -> str:
        return user_key("passwordRepromptAutofillKey", user_id)

    @staticmethod
    def password_verified_autofill(user_id: str) -> str:
        return user_key("passwordVerifiedAutofillKey", user_id)

    @staticmethod
    def uses_key_connector(user_id: str) -> str:
        return user_key("usesKeyConnector", user_id)

    @staticmethod
    def protected_pin(user_id: str) -> str:
        return user_key("protectedPin", user_id)

    @staticmethod
    def biometric_unlock(user_id: str) -> str:
        return user_key("biometricUnlock", user_id)

    @staticmethod
    def theme(user_id: str) -> str:
        return user_key("theme", user_id)

    @staticmethod
    def auto_dark_theme(user_id: str) -> str:
        return user_key("autoDarkTheme", user_id)

    @staticmethod
    def disable_favicon(user_id: str) -> str:
        return user_key("disableFavicon", user_id)


class V4Keys:
    """Keys introduced by schema 4."""

    THEME: Final[str] = "theme"
    AUTO_DARK_THEME: Final[str] = "autoDarkTheme"
    DISABLE_FAVICON: Final[str] = "disableFavicon"

    @staticmethod
    def vault_timeout(user_id: str) -> str:
        return user_key("vaultTimeout", user_id)

    @staticmethod
    def vault_timeout_action(user_id: str) -> str:
        return user_key("vaultTimeoutAction", user_id)

    @staticmethod
    def screen_capture_allowed(user_id: str) -> str:
        return user_key("screenCaptureAllowed", user_id)
