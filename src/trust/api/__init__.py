"""Trust API package."""
