"""Password hashing helpers."""
