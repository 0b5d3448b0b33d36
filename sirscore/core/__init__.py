"""Core utilities: exception hierarchy and logger setup."""
