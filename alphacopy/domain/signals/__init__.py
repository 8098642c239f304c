"""Signals bounded context - detected alpha wallet swaps."""
