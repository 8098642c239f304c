"""User Mapper - converts between User entity and UserModel ORM."""

from datetime import datetime, timezone

from alphacopy.domain.trading.entities import User
from alphacopy.domain.trading.value_objects import UserSettings
from alphacopy.infrastructure.persistence.sqlalchemy.models import UserModel

from ._time import as_utc


class UserMapper:
    """Mapper для User entity ↔ UserModel ORM."""

    def to_entity(self, model: UserModel) -> User:
        return User(
            id=model.id,
            wallet_public_key=model.wallet_public_key,
            encrypted_secret=model.encrypted_secret,
            settings=UserSettings.from_dict(model.settings),
            created_at=as_utc(model.created_at),
        )

    def to_model(self, entity: User) -> UserModel:
        return UserModel(
            id=entity.id,
            wallet_public_key=entity.wallet_public_key,
            encrypted_secret=entity.encrypted_secret,
            settings=entity.settings.to_dict(),
            created_at=entity.created_at,
        )

    def update_model_from_entity(self, model: UserModel, entity: User) -> UserModel:
        model.wallet_public_key = entity.wallet_public_key
        model.encrypted_secret = entity.encrypted_secret
        model.settings = entity.settings.to_dict()
        model.updated_at = datetime.now(timezone.utc)
        return model
