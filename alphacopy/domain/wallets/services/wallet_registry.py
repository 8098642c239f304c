"""WalletRegistry - in-memory mirror of tracked wallets and subscriptions.

Source of truth for "who is watching whom" during runtime. Readers (the
pipeline fan-out, status queries) read the current snapshot without
locking; writers build a complete new snapshot and swap it in with a single
assignment, so a reader never observes a half-applied change.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Iterable, Mapping

from ..entities import TrackedWallet, is_valid_address
from ..exceptions import InvalidWalletAddressError, WalletNotTrackedError

logger = logging.getLogger(__name__)


def _frozen_map(data: dict) -> Mapping:
    return MappingProxyType(dict(data))


@dataclass(frozen=True)
class RegistrySnapshot:
    """Immutable view of the registry at one instant."""

    wallets: Mapping[str, TrackedWallet] = field(default_factory=lambda: _frozen_map({}))
    subscribers: Mapping[str, frozenset[int]] = field(default_factory=lambda: _frozen_map({}))

    @property
    def active_addresses(self) -> frozenset[str]:
        return frozenset(a for a, w in self.wallets.items() if w.is_active)


class WalletRegistry:
    """Tracked wallets + per-user subscriptions, replace-then-swap.

    Writes are serialized by an asyncio.Lock (read-copy-update), reads
    take no lock.

    Example:
        >>> registry = WalletRegistry()
        >>> await registry.register("Alpha111...", label="whale #1")
        >>> await registry.subscribe(user_id=7, address="Alpha111...")
        >>> registry.subscribers_of("Alpha111...")
        frozenset({7})
    """

    def __init__(self) -> None:
        self._snapshot = RegistrySnapshot()
        self._write_lock = asyncio.Lock()

    # ==================== Reads ====================

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self._snapshot

    def get(self, address: str) -> TrackedWallet | None:
        return self._snapshot.wallets.get(address)

    def is_active(self, address: str) -> bool:
        wallet = self._snapshot.wallets.get(address)
        return wallet is not None and wallet.is_active

    def active_addresses(self) -> frozenset[str]:
        return self._snapshot.active_addresses

    @property
    def tracked_wallet_count(self) -> int:
        """Number of active tracked wallets."""
        return len(self._snapshot.active_addresses)

    def subscribers_of(self, address: str) -> frozenset[int]:
        """Users subscribed to an address. Empty while the wallet is inactive."""
        snapshot = self._snapshot
        wallet = snapshot.wallets.get(address)
        if wallet is None or not wallet.is_active:
            return frozenset()
        return snapshot.subscribers.get(address, frozenset())

    def wallets_of(self, user_id: int) -> frozenset[str]:
        """Active addresses a user is subscribed to."""
        snapshot = self._snapshot
        return frozenset(
            address
            for address, users in snapshot.subscribers.items()
            if user_id in users and address in snapshot.wallets
            and snapshot.wallets[address].is_active
        )

    # ==================== Writes ====================

    def load(
        self,
        wallets: Iterable[TrackedWallet],
        subscriptions: Iterable[tuple[int, str]],
    ) -> None:
        """Replace the whole registry with persisted state (startup).

        Subscriptions pointing at unknown wallets are ignored.
        """
        wallet_map = {w.address: w for w in wallets}
        subscribers: dict[str, set[int]] = {}
        for user_id, address in subscriptions:
            if address in wallet_map:
                subscribers.setdefault(address, set()).add(user_id)

        self._snapshot = RegistrySnapshot(
            wallets=_frozen_map(wallet_map),
            subscribers=_frozen_map({a: frozenset(u) for a, u in subscribers.items()}),
        )
        logger.info(
            "wallet_registry.loaded",
            extra={
                "wallets": len(wallet_map),
                "active": len(self._snapshot.active_addresses),
                "subscriptions": sum(len(u) for u in subscribers.values()),
            },
        )

    async def register(
        self,
        address: str,
        label: str = "",
        now: datetime | None = None,
    ) -> TrackedWallet:
        """Register a new wallet or reactivate a deactivated one.

        Raises:
            InvalidWalletAddressError: If address is not base58.
        """
        if not is_valid_address(address):
            raise InvalidWalletAddressError(address)

        async with self._write_lock:
            current = self._snapshot
            existing = current.wallets.get(address)
            if existing is None:
                wallet = TrackedWallet(
                    address=address,
                    label=label,
                    added_at=now or datetime.now(timezone.utc),
                )
            elif existing.is_active and (not label or label == existing.label):
                return existing
            else:
                wallet = existing.reactivated(label or None)

            wallets = dict(current.wallets)
            wallets[address] = wallet
            self._snapshot = RegistrySnapshot(
                wallets=_frozen_map(wallets),
                subscribers=current.subscribers,
            )

        logger.info(
            "wallet_registry.registered",
            extra={"address": address, "label": wallet.label},
        )
        return wallet

    async def deactivate(self, address: str) -> TrackedWallet:
        """Deactivate a wallet. Subscriptions are kept but stop fanning out.

        Raises:
            WalletNotTrackedError: If address was never registered.
        """
        async with self._write_lock:
            current = self._snapshot
            existing = current.wallets.get(address)
            if existing is None:
                raise WalletNotTrackedError(address)
            if not existing.is_active:
                return existing

            wallet = existing.deactivated()
            wallets = dict(current.wallets)
            wallets[address] = wallet
            self._snapshot = RegistrySnapshot(
                wallets=_frozen_map(wallets),
                subscribers=current.subscribers,
            )

        logger.info("wallet_registry.deactivated", extra={"address": address})
        return wallet

    async def subscribe(self, user_id: int, address: str) -> bool:
        """Subscribe user to an active wallet.

        Returns:
            False if the subscription already existed.

        Raises:
            WalletNotTrackedError: If wallet is unknown or inactive.
        """
        async with self._write_lock:
            current = self._snapshot
            wallet = current.wallets.get(address)
            if wallet is None or not wallet.is_active:
                raise WalletNotTrackedError(address)

            users = current.subscribers.get(address, frozenset())
            if user_id in users:
                return False

            subscribers = dict(current.subscribers)
            subscribers[address] = users | {user_id}
            self._snapshot = RegistrySnapshot(
                wallets=current.wallets,
                subscribers=_frozen_map(subscribers),
            )

        logger.info(
            "wallet_registry.subscribed",
            extra={"user_id": user_id, "address": address},
        )
        return True

    async def unsubscribe(self, user_id: int, address: str) -> bool:
        """Remove a subscription.

        Returns:
            False if the user was not subscribed.
        """
        async with self._write_lock:
            current = self._snapshot
            users = current.subscribers.get(address, frozenset())
            if user_id not in users:
                return False

            subscribers = dict(current.subscribers)
            remaining = users - {user_id}
            if remaining:
                subscribers[address] = remaining
            else:
                del subscribers[address]
            self._snapshot = RegistrySnapshot(
                wallets=current.wallets,
                subscribers=_frozen_map(subscribers),
            )

        logger.info(
            "wallet_registry.unsubscribed",
            extra={"user_id": user_id, "address": address},
        )
        return True
