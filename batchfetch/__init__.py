"""
batchfetch - batch remote file retrieval over SSH

Fetches a list of remote files through one authenticated SSH/SFTP session:
- Single shared session per batch (password, key or agent authentication)
- Sequential, failure-isolated transfers with per-file outcomes
- Optional remote directory layout preservation under a per-run output root
- Credentials held in a zeroable buffer and discarded at teardown
"""

__version__ = "0.1.0"

from .core import RemoteClient, ClientConfig, load_ssh_config
from .domain.fetch import (
    BatchOrchestrator,
    BatchReport,
    CancelToken,
    ConnectionParams,
    Credential,
    DestinationResolver,
    FetchConfig,
    FetchService,
    SessionState,
    TransferOutcome,
    TransferRequest,
    TransferSession,
    TransferSessionManager,
    read_file_list,
)

__all__ = [
    # Version
    "__version__",
    # Client
    "RemoteClient",
    "ClientConfig",
    "load_ssh_config",
    # Session and orchestration
    "TransferSession",
    "TransferSessionManager",
    "BatchOrchestrator",
    "FetchService",
    # Models
    "BatchReport",
    "CancelToken",
    "ConnectionParams",
    "Credential",
    "FetchConfig",
    "SessionState",
    "TransferOutcome",
    "TransferRequest",
    # Collaborators
    "DestinationResolver",
    "read_file_list",
]
