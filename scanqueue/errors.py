"""Exceptions raised by the scan queue."""


class ScanQueueError(Exception):
    """Base exception for scan queue failures."""


class ConfigError(ScanQueueError, ValueError):
    """Raised when configuration is missing or invalid."""


class InvalidTransition(ScanQueueError):
    """Raised when a queue item is moved backwards or out of a terminal state."""


class RepositoryError(ScanQueueError):
    """Raised by repository adapters when the backing store cannot be reached."""
