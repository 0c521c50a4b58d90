"""Custom exceptions for node session control."""


class NodeError(Exception):
    """Base class for node-session errors."""


class NoIdentityError(NodeError):
    """Raised when a node has no identity to bind the session to."""
