"""Trading bounded context - copy trade decisions and execution state."""
