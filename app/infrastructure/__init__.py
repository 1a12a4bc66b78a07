"""Infrastructure adapters: database and file storage."""
