"""
Core interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from typing import Any, Optional


class ConnectionFactory(ABC):
    """SSH connection factory interface"""

    @abstractmethod
    def create(self, params: Any, secret: Optional[str] = None) -> Any:
        """
        Create and connect an SSH client.

        The returned object exposes open_sftp(), is_active() and close().
        Implementations raise SessionEstablishmentError on failure.
        """
        pass


class PromptProvider(ABC):
    """User prompt interface"""

    @abstractmethod
    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Prompt user for input"""
        pass

    @abstractmethod
    def confirm(self, message: str, default: bool = False) -> bool:
        """Prompt user for confirmation"""
        pass
