"""Signal ports."""

from .token_metadata_port import TokenMetadataPort

__all__ = ["TokenMetadataPort"]
