"""Request-to-process pipeline stages."""
