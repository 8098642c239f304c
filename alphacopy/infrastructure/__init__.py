"""Infrastructure layer - adapters for chain, aggregator, custody, storage."""
