"""Domain types for persisted account state.

These mirror the JSON documents the client application keeps in its
document store. Serialized form uses camelCase field names and omits
fields whose value is None.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop None values from a serialized mapping."""
    return {key: value for key, value in data.items() if value is not None}


class KdfType(IntEnum):
    """Key derivation function used for the master password."""

    PBKDF2_SHA256 = 0
    ARGON2ID = 1

    @classmethod
    def from_stored(cls, value: int) -> "KdfType | int":
        """Return the member for ``value``, or the raw int if it is unknown.

        Newer clients may store algorithms this build has no member for;
        those are carried through unchanged.
        """
        try:
            return cls(value)
        except ValueError:
            return value


class VaultTimeoutAction(IntEnum):
    """What happens to the vault when the timeout elapses."""

    LOCK = 0
    LOGOUT = 1

    @classmethod
    def from_legacy(cls, value: str | None) -> "VaultTimeoutAction":
        """Map the v2 string preference to an action.

        Only the literal ``"logout"`` selects LOGOUT; anything else,
        including an absent value, locks.
        """
        return cls.LOGOUT if value == "logout" else cls.LOCK


@dataclass
class EnvironmentUrlData:
    """Self-hosted server URLs."""

    base: str | None = None
    api: str | None = None
    identity: str | None = None
    icons: str | None = None
    notifications: str | None = None
    events: str | None = None
    web_vault: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EnvironmentUrlData":
        """Build from a stored mapping, ignoring unknown fields."""
        return cls(
            base=data.get("base"),
            api=data.get("api"),
            identity=data.get("identity"),
            icons=data.get("icons"),
            notifications=data.get("notifications"),
            events=data.get("events"),
            web_vault=data.get("webVault"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored mapping."""
        return _compact(
            {
                "base": self.base,
                "api": self.api,
                "identity": self.identity,
                "icons": self.icons,
                "notifications": self.notifications,
                "events": self.events,
                "webVault": self.web_vault,
            }
        )


@dataclass
class AccountProfile:
    """Identity and key derivation settings of one user."""

    user_id: str | None = None
    email: str | None = None
    name: str | None = None
    stamp: str | None = None
    kdf_type: KdfType | int | None = None
    kdf_iterations: int | None = None
    email_verified: bool | None = None
    has_premium_personally: bool | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AccountProfile":
        """Build from a stored mapping."""
        kdf_type = data.get("kdfType")
        return cls(
            user_id=data.get("userId"),
            email=data.get("email"),
            name=data.get("name"),
            stamp=data.get("stamp"),
            kdf_type=(
                KdfType.from_stored(kdf_type)
                if kdf_type is not None
                else None
            ),
            kdf_iterations=data.get("kdfIterations"),
            email_verified=data.get("emailVerified"),
            has_premium_personally=data.get("hasPremiumPersonally"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored mapping."""
        return _compact(
            {
                "userId": self.user_id,
                "email": self.email,
                "name": self.name,
                "stamp": self.stamp,
                "kdfType": (
                    int(self.kdf_type) if self.kdf_type is not None else None
                ),
                "kdfIterations": self.kdf_iterations,
                "emailVerified": self.email_verified,
                "hasPremiumPersonally": self.has_premium_personally,
            }
        )


@dataclass
class AccountTokens:
    """Authentication tokens of one user."""

    access_token: str | None = None
    refresh_token: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AccountTokens":
        """Build from a stored mapping."""
        return cls(
            access_token=data.get("accessToken"),
            refresh_token=data.get("refreshToken"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored mapping."""
        return _compact(
            {
                "accessToken": self.access_token,
                "refreshToken": self.refresh_token,
            }
        )


@dataclass
class AccountSettings:
    """Per-user settings kept inside the State aggregate."""

    environment_urls: EnvironmentUrlData | None = None
    vault_timeout: int | None = None
    vault_timeout_action: VaultTimeoutAction | None = None
    screen_capture_allowed: bool | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AccountSettings":
        """Build from a stored mapping."""
        env_urls = data.get("environmentUrls")
        action = data.get("vaultTimeoutAction")
        return cls(
            environment_urls=(
                EnvironmentUrlData.from_dict(env_urls)
                if isinstance(env_urls, dict)
                else None
            ),
            vault_timeout=data.get("vaultTimeout"),
            vault_timeout_action=(
                VaultTimeoutAction(action) if action is not None else None
            ),
            screen_capture_allowed=data.get("screenCaptureAllowed"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored mapping."""
        return _compact(
            {
                "environmentUrls": (
                    self.environment_urls.to_dict()
                    if self.environment_urls is not None
                    else None
                ),
                "vaultTimeout": self.vault_timeout,
                "vaultTimeoutAction": (
                    int(self.vault_timeout_action)
                    if self.vault_timeout_action is not None
                    else None
                ),
                "screenCaptureAllowed": self.screen_capture_allowed,
            }
        )


@dataclass
class Account:
    """Aggregate of one authenticated user's profile, tokens and settings."""

    profile: AccountProfile | None = None
    tokens: AccountTokens | None = None
    settings: AccountSettings | None = None

    @property
    def user_id(self) -> str | None:
        """Return the profile's user id, if any."""
        return self.profile.user_id if self.profile is not None else None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Account":
        """Build from a stored mapping."""
        profile = data.get("profile")
        tokens = data.get("tokens")
        settings = data.get("settings")
        return cls(
            profile=(
                AccountProfile.from_dict(profile)
                if isinstance(profile, dict)
                else None
            ),
            tokens=(
                AccountTokens.from_dict(tokens)
                if isinstance(tokens, dict)
                else None
            ),
            settings=(
                AccountSettings.from_dict(settings)
                if isinstance(settings, dict)
                else None
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored mapping."""
        return _compact(
            {
                "profile": (
                    self.profile.to_dict()
                    if self.profile is not None
                    else None
                ),
                "tokens": (
                    self.tokens.to_dict() if self.tokens is not None else None
                ),
                "settings": (
                    self.settings.to_dict()
                    if self.settings is not None
                    else None
                ),
            }
        )


@dataclass
class State:
    """Container of all accounts on the device plus the active user pointer.

    ``accounts`` keeps the order in which entries were stored; code that
    needs "the first account" relies on that order.
    """

    accounts: dict[str, Account | None] | None = field(default=None)
    active_user_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "State":
        """Build from a stored mapping.

        Account entries stored as null are kept as None so callers can
        still see (and skip) them.
        """
        raw_accounts = data.get("accounts")
        accounts: dict[str, Account | None] | None = None
        if isinstance(raw_accounts, dict):
            accounts = {
                user_id: (
                    Account.from_dict(raw) if isinstance(raw, dict) else None
                )
                for user_id, raw in raw_accounts.items()
            }
        return cls(accounts=accounts, active_user_id=data.get("activeUserId"))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored mapping."""
        accounts = None
        if self.accounts is not None:
            accounts = {
                user_id: account.to_dict() if account is not None else None
                for user_id, account in self.accounts.items()
            }
        return _compact(
            {"accounts": accounts, "activeUserId": self.active_user_id}
        )
