"""
Batch fetch domain module
"""
from .models import (
    SessionState,
    TransferRequest,
    TransferOutcome,
    BatchReport,
    ConnectionParams,
    FetchConfig,
    CancelToken,
)
from .credential import Credential
from .session import TransferSession, TransferSessionManager, FetchCancelled
from .listing import read_file_list, parse_file_list
from .destination import DestinationResolver, synthesize_output_root
from .orchestrator import BatchOrchestrator
from .service import FetchService

__all__ = [
    "SessionState",
    "TransferRequest",
    "TransferOutcome",
    "BatchReport",
    "ConnectionParams",
    "FetchConfig",
    "CancelToken",
    "Credential",
    "TransferSession",
    "TransferSessionManager",
    "FetchCancelled",
    "read_file_list",
    "parse_file_list",
    "DestinationResolver",
    "synthesize_output_root",
    "BatchOrchestrator",
    "FetchService",
]
