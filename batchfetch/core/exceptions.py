"""
Unified exception definitions
"""
from typing import Optional


class BatchFetchError(Exception):
    """Base exception class"""
    pass


class ConfigError(BatchFetchError):
    """Configuration error"""
    pass


class ListFileError(BatchFetchError):
    """File list could not be read"""
    pass


class SessionError(BatchFetchError):
    """Transport session error"""
    pass


class SessionEstablishmentError(SessionError):
    """Authentication, reachability or protocol negotiation failure"""
    pass


class SessionClosedError(SessionError):
    """Fetch attempted on a session that was already torn down"""
    pass


class FetchFailure(BatchFetchError):
    """Single file fetch failed"""

    def __init__(
        self,
        message: str,
        remote_path: Optional[str] = None,
        code: Optional[int] = None,
    ):
        super().__init__(message)
        self.remote_path = remote_path
        self.code = code


class ResourceCreationError(FetchFailure):
    """Local destination directory could not be created"""
    pass
