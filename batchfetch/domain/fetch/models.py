"""
Fetch data models
"""
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...core.client import AuthMethod
from ...core.constants import DEFAULT_SSH_PORT, DEFAULT_SSH_TIMEOUT


class SessionState(str, Enum):
    """Transport session lifecycle"""
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass(frozen=True)
class TransferRequest:
    """One remote file and where it lands locally"""
    remote_path: str
    local_path: str


@dataclass(frozen=True)
class TransferOutcome:
    """Result of one fetch attempt"""
    request: TransferRequest
    succeeded: bool
    error_detail: Optional[str] = None
    exit_signal: Optional[int] = None
    bytes_transferred: int = 0
    duration: float = 0.0
    via_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "remote_path": self.request.remote_path,
            "local_path": self.request.local_path,
            "succeeded": self.succeeded,
            "error_detail": self.error_detail,
            "exit_signal": self.exit_signal,
            "bytes_transferred": self.bytes_transferred,
            "duration": self.duration,
            "via_fallback": self.via_fallback,
        }


@dataclass
class BatchReport:
    """Aggregated outcomes of one batch, in input order"""
    total: int = 0
    succeeded: int = 0
    outcomes: List[TransferOutcome] = field(default_factory=list)
    output_root: Optional[Path] = None

    def add(self, outcome: TransferOutcome) -> None:
        self.outcomes.append(outcome)

    def finalize(self) -> "BatchReport":
        """Recompute counters from the accumulated outcomes"""
        self.total = len(self.outcomes)
        self.succeeded = sum(1 for o in self.outcomes if o.succeeded)
        return self

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def all_succeeded(self) -> bool:
        return self.succeeded == self.total

    @property
    def bytes_transferred(self) -> int:
        return sum(o.bytes_transferred for o in self.outcomes)

    def failures(self) -> List[TransferOutcome]:
        return [o for o in self.outcomes if not o.succeeded]


@dataclass
class ConnectionParams:
    """Where and how to connect"""
    host: str
    user: str
    port: int = DEFAULT_SSH_PORT
    auth: AuthMethod = "password"
    key_file: Optional[str] = None
    timeout: float = DEFAULT_SSH_TIMEOUT

    @property
    def identity(self) -> str:
        """Key addressing the reusable channel for this (user, host)"""
        return f"{self.user}@{self.host}:{self.port}"


@dataclass
class FetchConfig:
    """Batch behaviour switches"""
    output_dir: Optional[Path] = None
    preserve_structure: bool = True
    verify_size: bool = True
    fallback_per_request: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FetchConfig":
        valid_fields = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if valid_fields.get("output_dir") is not None:
            valid_fields["output_dir"] = Path(valid_fields["output_dir"]).expanduser()
        return cls(**valid_fields)


class CancelToken:
    """Externally settable abort flag, checked between and during fetches"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
