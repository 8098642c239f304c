"""TradeRecord Mapper - converts between TradeRecord and TradeRecordModel ORM."""

from decimal import Decimal

from alphacopy.domain.signals.value_objects import SwapDirection
from alphacopy.domain.trading.entities import TradeRecord
from alphacopy.domain.trading.value_objects import AttemptState
from alphacopy.infrastructure.persistence.sqlalchemy.models import TradeRecordModel

from ._time import as_utc


class TradeRecordMapper:
    """Mapper для TradeRecord ↔ TradeRecordModel ORM.

    Example:
        >>> mapper = TradeRecordMapper()
        >>> model = mapper.to_model(attempt.record)  # Domain → ORM
        >>> record = mapper.to_entity(model)  # ORM → Domain
    """

    def to_entity(self, model: TradeRecordModel) -> TradeRecord:
        return TradeRecord(
            id=model.id,
            user_id=model.user_id,
            source_wallet=model.source_wallet,
            tx_signature_in=model.tx_signature_in,
            tx_signature_out=model.tx_signature_out,
            input_asset=model.input_asset,
            output_asset=model.output_asset,
            amount_in=Decimal(model.amount_in),
            amount_out=Decimal(model.amount_out),
            direction=SwapDirection(model.direction),
            status=AttemptState(model.status),
            error=model.error,
            created_at=as_utc(model.created_at),
        )

    def to_model(self, entity: TradeRecord) -> TradeRecordModel:
        return TradeRecordModel(
            id=entity.id,
            user_id=entity.user_id,
            source_wallet=entity.source_wallet,
            tx_signature_in=entity.tx_signature_in,
            tx_signature_out=entity.tx_signature_out,
            input_asset=entity.input_asset,
            output_asset=entity.output_asset,
            amount_in=entity.amount_in,
            amount_out=entity.amount_out,
            direction=entity.direction.value,
            status=entity.status.value,
            error=entity.error,
            created_at=entity.created_at,
        )
