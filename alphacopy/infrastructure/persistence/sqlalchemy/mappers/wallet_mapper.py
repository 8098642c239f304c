"""TrackedWallet Mapper."""

from alphacopy.domain.wallets.entities import TrackedWallet
from alphacopy.infrastructure.persistence.sqlalchemy.models import TrackedWalletModel

from ._time import as_utc


class TrackedWalletMapper:
    """Mapper для TrackedWallet ↔ TrackedWalletModel ORM."""

    def to_entity(self, model: TrackedWalletModel) -> TrackedWallet:
        return TrackedWallet(
            address=model.address,
            label=model.label or "",
            is_active=model.is_active,
            added_at=as_utc(model.added_at),
        )

    def to_model(self, entity: TrackedWallet) -> TrackedWalletModel:
        return TrackedWalletModel(
            address=entity.address,
            label=entity.label,
            is_active=entity.is_active,
            added_at=entity.added_at,
        )

    def update_model_from_entity(
        self, model: TrackedWalletModel, entity: TrackedWallet
    ) -> TrackedWalletModel:
        model.label = entity.label
        model.is_active = entity.is_active
        return model
