"""School directory backend: REST API, record store and API client."""

__version__ = "1.0.0"
