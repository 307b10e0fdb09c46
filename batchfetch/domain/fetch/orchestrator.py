"""
Batch transfer orchestration
"""
from typing import Callable, Optional, Sequence

from ...core.constants import CANCELLED_DETAIL
from ...core.exceptions import FetchFailure
from ...core.logging import get_logger
from ...core.telemetry import Telemetry, get_telemetry
from .models import BatchReport, CancelToken, TransferOutcome, TransferRequest
from .session import TransferSession, TransferSessionManager

logger = get_logger(__name__)

OutcomeCallback = Callable[[int, TransferOutcome], None]


class BatchOrchestrator:
    """
    Sequentially fetch a list of remote paths through one session.

    Every input path yields exactly one outcome, in input order; a failed
    file never stops the batch.
    """

    def __init__(
        self,
        session_manager: TransferSessionManager,
        telemetry: Optional[Telemetry] = None,
    ):
        self.session_manager = session_manager
        self.telemetry = telemetry or get_telemetry()

    def run_batch(
        self,
        paths: Sequence[str],
        session: Optional[TransferSession],
        resolve_local_path: Callable[[str], str],
        on_outcome: Optional[OutcomeCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> BatchReport:
        """
        Fetch every path and aggregate the outcomes.

        Args:
            paths: Remote paths in processing order (duplicates are kept)
            session: Established session; may be None only for an empty batch
            resolve_local_path: Maps a remote path to its local destination
            on_outcome: Called with (index, outcome) before the next path starts
            cancel: Token that stops the batch; remaining paths are recorded
                as cancelled

        Returns:
            Finalized BatchReport
        """
        report = BatchReport()

        for index, remote_path in enumerate(paths):
            if cancel is not None and cancel.cancelled:
                outcome = self._cancelled(remote_path, resolve_local_path)
            else:
                outcome = self._fetch_one(remote_path, session, resolve_local_path, cancel)

            report.add(outcome)
            self._record(outcome)
            if on_outcome is not None:
                on_outcome(index, outcome)

        report.finalize()
        logger.info(f"Batch finished: {report.succeeded}/{report.total} succeeded")
        return report

    def _fetch_one(
        self,
        remote_path: str,
        session: Optional[TransferSession],
        resolve_local_path: Callable[[str], str],
        cancel: Optional[CancelToken],
    ) -> TransferOutcome:
        try:
            local_path = resolve_local_path(remote_path)
        except (ValueError, FetchFailure) as e:
            logger.warning(f"Cannot map {remote_path} to a local path: {e}")
            return TransferOutcome(
                request=TransferRequest(remote_path=remote_path, local_path=""),
                succeeded=False,
                error_detail=str(e),
                exit_signal=getattr(e, "code", None),
            )

        return self.session_manager.fetch(session, remote_path, local_path, cancel=cancel)

    def _cancelled(self, remote_path: str, resolve_local_path: Callable[[str], str]) -> TransferOutcome:
        try:
            local_path = resolve_local_path(remote_path)
        except (ValueError, FetchFailure):
            local_path = ""
        return TransferOutcome(
            request=TransferRequest(remote_path=remote_path, local_path=local_path),
            succeeded=False,
            error_detail=CANCELLED_DETAIL,
        )

    def _record(self, outcome: TransferOutcome) -> None:
        status = "ok" if outcome.succeeded else "failed"
        self.telemetry.record_event("fetch", outcome.to_dict())
        self.telemetry.record_metric("fetch.duration", outcome.duration, {"status": status})
        if outcome.succeeded:
            self.telemetry.record_metric("fetch.bytes", outcome.bytes_transferred)
