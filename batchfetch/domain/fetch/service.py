"""
Fetch service - one batch invocation end to end
"""
from typing import Optional, Sequence

from ...core.interfaces import ConnectionFactory
from ...core.logging import get_logger
from ...core.telemetry import Telemetry
from .credential import Credential
from .destination import DestinationResolver, synthesize_output_root
from .models import BatchReport, CancelToken, ConnectionParams, FetchConfig
from .orchestrator import BatchOrchestrator, OutcomeCallback
from .session import TransferSession, TransferSessionManager

logger = get_logger(__name__)


class FetchService:
    """
    Prepare the output root, establish one session, run the batch and tear
    the session down on every exit path.
    """

    def __init__(
        self,
        connection_factory: ConnectionFactory,
        config: Optional[FetchConfig] = None,
        telemetry: Optional[Telemetry] = None,
    ):
        self.config = config or FetchConfig()
        self.session_manager = TransferSessionManager(
            connection_factory,
            verify_size=self.config.verify_size,
            fallback_per_request=self.config.fallback_per_request,
        )
        self.orchestrator = BatchOrchestrator(self.session_manager, telemetry)

    def resolver(self) -> DestinationResolver:
        root = self.config.output_dir or synthesize_output_root()
        return DestinationResolver(root, preserve_structure=self.config.preserve_structure)

    def run(
        self,
        paths: Sequence[str],
        params: ConnectionParams,
        credential: Optional[Credential] = None,
        on_outcome: Optional[OutcomeCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> BatchReport:
        """
        Fetch all paths from params.host.

        An empty list never connects. The credential is discarded before
        returning, whatever happens.

        Raises:
            SessionEstablishmentError: No session could be opened; nothing was fetched
            ResourceCreationError: The output root could not be created
        """
        if not paths:
            logger.info("File list is empty, nothing to fetch")
            if credential is not None:
                credential.discard()
            return BatchReport().finalize()

        resolver = self.resolver()
        session: Optional[TransferSession] = None
        try:
            resolver.prepare()
            session = self.session_manager.establish(
                params.user,
                params.host,
                credential,
                port=params.port,
                auth=params.auth,
                key_file=params.key_file,
                timeout=params.timeout,
            )
            report = self.orchestrator.run_batch(
                paths,
                session,
                resolver.resolve,
                on_outcome=on_outcome,
                cancel=cancel,
            )
        finally:
            if session is not None:
                self.session_manager.teardown(session)
            elif credential is not None:
                credential.discard()

        report.output_root = resolver.root
        return report
