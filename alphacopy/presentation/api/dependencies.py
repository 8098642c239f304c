"""Dependency injection for FastAPI.

Provides the CopyTradingService to API routes. Initialized from the
application lifespan in main.py.
"""

from fastapi import HTTPException, status

from alphacopy.application.trading import CopyTradingService

# ============================================================================
# GLOBAL DEPENDENCIES (будуть initialized в main.py)
# ============================================================================

_service: CopyTradingService | None = None


def init_dependencies(service: CopyTradingService | None) -> None:
    """Install (or clear, with None) the service used by routes."""
    global _service
    _service = service


def get_copy_trading_service() -> CopyTradingService:
    """Get the running CopyTradingService.

    Raises:
        HTTPException: 503 while the service is not initialized.
    """
    if _service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Copy trading service not initialized",
        )
    return _service
