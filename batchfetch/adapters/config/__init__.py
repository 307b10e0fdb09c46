"""
Configuration adapters
"""
from .loader import ConfigLoader, resolve_connection_params, resolve_fetch_config

__all__ = [
    "ConfigLoader",
    "resolve_connection_params",
    "resolve_fetch_config",
]
