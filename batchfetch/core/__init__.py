"""
Core infrastructure layer
"""
from .client import RemoteClient, ClientConfig, AuthMethod
from .constants import *
from .exceptions import *
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .interfaces import ConnectionFactory, PromptProvider
from .telemetry import Telemetry, get_telemetry
from .utils import load_ssh_config, format_size

__all__ = [
    "RemoteClient",
    "ClientConfig",
    "AuthMethod",
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "ConnectionFactory",
    "PromptProvider",
    "Telemetry",
    "get_telemetry",
    "load_ssh_config",
    "format_size",
]
