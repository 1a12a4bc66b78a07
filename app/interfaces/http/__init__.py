"""HTTP adapters for the skin store (dependencies and error mapping)."""
