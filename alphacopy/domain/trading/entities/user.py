"""User Entity - subscriber whose custody wallet copies alpha wallets."""

from datetime import datetime, timezone
from typing import Any

from alphacopy.domain.shared import Entity

from ..value_objects import UserSettings


class User(Entity):
    """User entity (id = Telegram user id).

    Example:
        >>> user = User(id=7, settings=UserSettings(auto_trading_enabled=True))
        >>> user.update_settings(trade_amount=Decimal("0.05"))
        >>> user.has_wallet
        False
    """

    def __init__(
        self,
        *,
        id: int,
        wallet_public_key: str | None = None,
        encrypted_secret: str | None = None,
        settings: UserSettings | None = None,
        created_at: datetime | None = None,
    ) -> None:
        super().__init__(id=id)
        self.wallet_public_key = wallet_public_key
        self.encrypted_secret = encrypted_secret
        self.settings = settings or UserSettings()
        self.created_at = created_at or datetime.now(timezone.utc)

    @property
    def id(self) -> int:
        return self._id  # type: ignore[return-value]

    @property
    def has_wallet(self) -> bool:
        """True when a custody wallet (public key + encrypted secret) is linked."""
        return bool(self.wallet_public_key and self.encrypted_secret)

    def link_wallet(self, public_key: str, encrypted_secret: str) -> None:
        self.wallet_public_key = public_key
        self.encrypted_secret = encrypted_secret

    def unlink_wallet(self) -> None:
        self.wallet_public_key = None
        self.encrypted_secret = None

    def update_settings(self, **changes: Any) -> UserSettings:
        """Apply a partial settings update.

        Raises:
            InvalidSettingsError: If the update violates a settings rule.
        """
        self.settings = self.settings.with_updates(**changes)
        return self.settings
