"""Wallets bounded context - tracked alpha wallets and user subscriptions."""
