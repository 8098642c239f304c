"""RawTransaction - candidate transaction emitted by a ChainActivitySource."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class RawTransaction:
    """Undecoded transaction touching a tracked wallet.

    Attributes:
        signature: Transaction signature (base58).
        source_wallet: Tracked address whose activity surfaced this tx.
        payload: `getTransaction` result in jsonParsed encoding.
        slot: Slot the transaction landed in, if known.
        received_at: When the source observed it.
    """

    signature: str
    source_wallet: str
    payload: dict[str, Any]
    slot: int | None = None
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
