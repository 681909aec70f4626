"""MultiVend HTTP API package."""
