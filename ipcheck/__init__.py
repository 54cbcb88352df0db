"""IP geolocation lookup service and Flask HTTP API with caching and round-robin providers."""

__version__ = "1.0.0"