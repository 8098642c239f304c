"""Copy trading use cases."""

from .copy_trading_service import CopyTradingService
from .execution_queue import ExecutionQueue

__all__ = ["CopyTradingService", "ExecutionQueue"]
