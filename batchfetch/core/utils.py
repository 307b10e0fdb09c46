"""
Core utility functions
"""
import paramiko
from pathlib import Path
from typing import Dict, Any, Optional

from .constants import SSH_CONFIG_PATH, DEFAULT_SSH_PORT
from .exceptions import ConfigError


# ============================================================
# SSH Config Management
# ============================================================

def load_ssh_config(hostname: str, config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration for specified Host from ~/.ssh/config.

    Args:
        hostname: Host name or alias in SSH configuration
        config_path: Alternative ssh config file

    Returns:
        Dictionary containing host, user, port, key_file

    Raises:
        ConfigError: If the ssh config file doesn't exist
    """
    path = Path(config_path or SSH_CONFIG_PATH).expanduser()
    if not path.exists():
        raise ConfigError(f"{path} does not exist")

    ssh_config = paramiko.SSHConfig.from_path(str(path))
    entry = ssh_config.lookup(hostname)

    return {
        "host": entry.get("hostname", hostname),
        "user": entry.get("user", None),
        "port": int(entry.get("port", DEFAULT_SSH_PORT)),
        "key_file": entry.get("identityfile", [None])[0],
    }


# ============================================================
# Size Formatting
# ============================================================

def format_size(num_bytes: float) -> str:
    """Human readable byte count (1.5 MB)"""
    for unit in ("B", "KB", "MB", "GB"):
        if abs(num_bytes) < 1024 or unit == "GB":
            if unit == "B":
                return f"{int(num_bytes)} B"
            return f"{num_bytes:.1f} {unit}"
        num_bytes /= 1024
