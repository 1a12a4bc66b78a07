"""Transport-facing adapters."""
