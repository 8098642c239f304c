"""Liquidity aggregator adapters."""

from .jupiter_client import JupiterClient, JupiterTransportError

__all__ = ["JupiterClient", "JupiterTransportError"]
