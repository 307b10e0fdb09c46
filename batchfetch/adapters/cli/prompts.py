"""
Rich-based user prompts
"""
from typing import Optional
from rich.console import Console
from rich.prompt import Prompt, Confirm

from ...core.interfaces import PromptProvider
from ...core.logging import get_stderr_console
from ...domain.fetch.credential import Credential


class RichPromptProvider(PromptProvider):
    """Rich-based prompt provider; prompts go to stderr so stdout stays clean"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_stderr_console()

    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        if password:
            return Prompt.ask(message, password=True, console=self.console)
        return Prompt.ask(message, default=default, console=self.console)

    def confirm(self, message: str, default: bool = False) -> bool:
        return Confirm.ask(message, default=default, console=self.console)

    def credential(self, message: str) -> Credential:
        """Ask for a secret and wrap it right away"""
        return Credential.from_string(self.prompt(message, password=True))
