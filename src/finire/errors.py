"""Error types shared across adapters and workflows."""


class StoreError(Exception):
    """Raised when a record store call fails."""

    pass


class ConfigError(Exception):
    """Raised when required configuration is missing."""

    pass


class TransportError(Exception):
    """Raised when a mail transport cannot complete a request."""

    pass
