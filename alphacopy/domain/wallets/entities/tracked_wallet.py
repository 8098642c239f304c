"""TrackedWallet - alpha wallet whose swaps are copied."""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

_BASE58_ADDRESS = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def is_valid_address(address: str) -> bool:
    """Check that address looks like a base58 Solana public key."""
    return bool(_BASE58_ADDRESS.match(address or ""))


@dataclass(frozen=True)
class TrackedWallet:
    """Alpha wallet, identified by its address.

    Deactivated on removal, never hard-deleted, so trade history keeps
    pointing at a real row. Immutable so registry snapshots can be shared
    between readers without copying.
    """

    address: str
    label: str = ""
    is_active: bool = True
    added_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def id(self) -> str:
        return self.address

    def deactivated(self) -> "TrackedWallet":
        return replace(self, is_active=False)

    def reactivated(self, label: str | None = None) -> "TrackedWallet":
        return replace(
            self,
            is_active=True,
            label=self.label if label is None else label,
        )
