"""Exception hierarchy for the price relay.

Startup errors (``BindError``, ``ConfigError``, ``ResolutionError``) propagate
to the command-line entry point. Everything else is raised inside a single
connection, feeder or asset task and is caught and logged at that boundary.
"""


class RelayError(Exception):
    """Base exception for price relay errors."""

    pass


class BindError(RelayError):
    """Raised when the relay cannot bind its listening socket."""

    pass


class RelayConnectionError(RelayError):
    """Raised when a single WebSocket connection fails (handshake, read or write)."""

    pass


class ConfigError(RelayError):
    """Raised when configuration or the token list cannot be loaded."""

    pass


class AddressLookupError(RelayError):
    """Raised when the lookup service call itself fails (transport or parse)."""

    pass


class ResolutionError(RelayError):
    """Raised when building the feeder pool hits a failing lookup service."""

    pass


class FetchError(RelayError):
    """Raised when the pricing service cannot be reached or answers non-200."""

    pass


class FormatError(RelayError):
    """Raised when a pricing payload is missing fields or is malformed."""

    pass
