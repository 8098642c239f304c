"""Trading ports - interfaces to external collaborators."""

from .aggregator_port import AggregatorPort
from .custody_port import CustodyPort, SignerHandle
from .notification_port import NotificationSink

__all__ = ["AggregatorPort", "CustodyPort", "SignerHandle", "NotificationSink"]
