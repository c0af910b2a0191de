"""Exceptions raised by the sync client.

Callers usually map these onto three outcomes: reconnect required
(``NotConnectedError``, ``AuthenticationError``), transient failure worth a
retry (``NetworkError``, ``TransferError``) and bad input
(``NotFoundError``). ``ProtocolError`` means the remote answered with
something this client does not understand.
"""


class SyncError(Exception):
    """Base exception for sync client errors."""

    pass


class ConfigError(SyncError):
    """Raised when the credential file cannot be loaded or saved."""

    pass


class NotConnectedError(SyncError):
    """Raised when no credential exists for the user."""

    pass


class AuthenticationError(SyncError):
    """Raised when device registration or token exchange is rejected."""

    pass


class NetworkError(SyncError):
    """Raised on transport failures and timeouts."""

    pass


class NotFoundError(SyncError):
    """Raised when a document or folder is unknown to the remote."""

    pass


class TransferError(SyncError):
    """Raised when a data-moving call returns a non-success status."""

    pass


class ProtocolError(SyncError):
    """Raised when a response has an unexpected shape."""

    pass
