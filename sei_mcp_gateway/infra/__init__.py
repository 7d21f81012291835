"""Process-local rate limiting, caching and retry helpers."""
