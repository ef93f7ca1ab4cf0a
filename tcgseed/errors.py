"""
TCGSEED exception hierarchy
"""
from typing import Optional


class TcgSeedError(Exception):
    """
    Base class for every error the pipeline raises on purpose
    """


class BulkInputError(TcgSeedError):
    """
    The bulk input stream could not be decoded
    """


class MissingPrerequisiteError(TcgSeedError):
    """
    A file produced by an earlier stage (bulk file, index) is missing
    """


class GameNotFoundError(TcgSeedError):
    """
    The configured TCG slug does not exist in the sink
    """


class SetNotFoundError(TcgSeedError):
    """
    The requested set is not part of the split index
    """


class SinkError(TcgSeedError):
    """
    The sink refused or failed a write
    """


class RemoteError(TcgSeedError):
    """
    A remote call failed with a meaningful HTTP status
    """

    status: Optional[int]

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class NotFoundError(RemoteError):
    """
    The remote resource does not exist (HTTP 404)
    """

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message, 404)


class RateLimitedError(RemoteError):
    """
    The remote service asked us to slow down (HTTP 429)
    """

    def __init__(self, message: str = "Rate limited") -> None:
        super().__init__(message, 429)
