"""
Transport session management

One authenticated SSH connection per (user, host), reused by every fetch
of a batch and released by teardown().
"""
import stat
import time
from pathlib import Path
from typing import Optional, Union

import paramiko

from ...core.client import AuthMethod
from ...core.constants import (
    DEFAULT_SSH_PORT,
    DEFAULT_SSH_TIMEOUT,
    PARTIAL_SUFFIX,
    CANCELLED_DETAIL,
)
from ...core.exceptions import (
    FetchFailure,
    ResourceCreationError,
    SessionError,
    SessionClosedError,
    SessionEstablishmentError,
)
from ...core.interfaces import ConnectionFactory
from ...core.logging import get_logger
from .credential import Credential
from .models import (
    CancelToken,
    ConnectionParams,
    SessionState,
    TransferOutcome,
    TransferRequest,
)

logger = get_logger(__name__)

# Errors that mean "this file failed", not "the program is wrong"
_TRANSPORT_ERRORS = (OSError, EOFError, paramiko.SSHException)


class FetchCancelled(Exception):
    """Raised from the SFTP progress callback when the batch is cancelled"""
    pass


class TransferSession:
    """A reusable authenticated channel to one (user, host)"""

    def __init__(self, params: ConnectionParams, credential: Optional[Credential] = None):
        self.params = params
        self.credential = credential
        self.state = SessionState.UNINITIALIZED
        self.client = None
        self.establish_count = 0

    @property
    def identity(self) -> str:
        return self.params.identity

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    def __repr__(self) -> str:
        return f"TransferSession({self.identity}, {self.state.value})"


class TransferSessionManager:
    """
    Establish, reuse and tear down transport sessions.

    Remote-side problems during fetch() are reported through the returned
    TransferOutcome; only precondition violations raise.
    """

    def __init__(
        self,
        connection_factory: ConnectionFactory,
        verify_size: bool = True,
        fallback_per_request: bool = False,
    ):
        """
        Args:
            connection_factory: Opens authenticated SSH clients
            verify_size: Compare the local size with the remote stat after each fetch
            fallback_per_request: Serve a fetch over a one-off connection when the
                shared channel has dropped
        """
        self.connection_factory = connection_factory
        self.verify_size = verify_size
        self.fallback_per_request = fallback_per_request

    # --------------------
    # Establish
    # --------------------
    def establish(
        self,
        user: str,
        host: str,
        credential: Optional[Credential] = None,
        port: int = DEFAULT_SSH_PORT,
        auth: AuthMethod = "password",
        key_file: Optional[str] = None,
        timeout: float = DEFAULT_SSH_TIMEOUT,
    ) -> TransferSession:
        """
        Open the shared channel.

        The credential is consumed: from here on it belongs to the returned
        session, and it is discarded if establishment fails.

        Raises:
            SessionEstablishmentError: Invalid parameters, authentication or
                network failure
        """
        params = ConnectionParams(
            host=host,
            user=user,
            port=port,
            auth=auth,
            key_file=key_file,
            timeout=timeout,
        )
        session = TransferSession(params)

        try:
            secret = self._validate(params, credential)
        except SessionEstablishmentError:
            if credential is not None and not credential.is_consumed:
                credential.discard()
            raise

        credential_owned = credential is not None
        if credential_owned:
            credential.consume()
            session.credential = credential

        try:
            session.client = self.connection_factory.create(params, secret)
        except Exception as e:
            if credential_owned:
                credential.discard()
            session.credential = None
            if isinstance(e, SessionEstablishmentError):
                raise
            raise SessionEstablishmentError(f"Failed to connect to {params.identity}: {e}") from e

        session.establish_count += 1
        session.state = SessionState.ACTIVE
        logger.info(f"Session established: {session.identity} ({auth} auth)")
        return session

    def _validate(self, params: ConnectionParams, credential: Optional[Credential]) -> Optional[str]:
        if not params.user or not params.user.strip():
            raise SessionEstablishmentError("Remote user must not be empty")
        if not params.host or not params.host.strip():
            raise SessionEstablishmentError("Remote host must not be empty")
        if params.auth not in ("password", "key", "agent"):
            raise SessionEstablishmentError(f"Unsupported auth method: {params.auth}")
        if params.auth == "key" and not params.key_file:
            raise SessionEstablishmentError("Key authentication requires a key file")

        if credential is None:
            if params.auth == "password":
                raise SessionEstablishmentError("Password authentication requires a credential")
            return None

        if credential.is_consumed:
            raise SessionEstablishmentError("Credential was already used to establish a session")
        if credential.is_discarded or credential.is_empty:
            raise SessionEstablishmentError("Credential is empty")
        if credential.is_expired:
            raise SessionEstablishmentError("Credential has expired")
        try:
            return credential.reveal()
        except UnicodeDecodeError as e:
            raise SessionEstablishmentError("Credential is not valid UTF-8") from e

    # --------------------
    # Fetch
    # --------------------
    def fetch(
        self,
        session: TransferSession,
        remote_path: str,
        local_path: Union[str, Path],
        cancel: Optional[CancelToken] = None,
    ) -> TransferOutcome:
        """
        Download one remote file through the session.

        Args:
            session: Active session
            remote_path: File path on the remote host
            local_path: Destination file; parent directories are created
            cancel: Optional token aborting the transfer mid-flight

        Returns:
            TransferOutcome (succeeded=False on any remote or local I/O failure)

        Raises:
            ValueError: session is None
            SessionClosedError: session was torn down
            SessionError: session was never established
        """
        if session is None:
            raise ValueError("fetch requires a session")
        if session.state is SessionState.CLOSED:
            raise SessionClosedError(
                f"Session {session.identity} is closed; cannot fetch {remote_path}"
            )
        if session.state is not SessionState.ACTIVE:
            raise SessionError(f"Session {session.identity} was never established")

        request = TransferRequest(remote_path=remote_path, local_path=str(local_path))
        started = time.monotonic()

        if cancel is not None and cancel.cancelled:
            return TransferOutcome(request=request, succeeded=False, error_detail=CANCELLED_DETAIL)

        via_fallback = False
        try:
            local = Path(local_path)
            self._ensure_parent(local, remote_path)

            if session.client.is_active():
                size = self._download(session.client.open_sftp(), remote_path, local, cancel)
            elif self.fallback_per_request:
                via_fallback = True
                size = self._fetch_via_fallback(session, remote_path, local, cancel)
            else:
                raise FetchFailure(
                    f"Shared session {session.identity} is no longer connected",
                    remote_path,
                )
        except FetchCancelled:
            logger.warning(f"Cancelled: {remote_path}")
            return TransferOutcome(
                request=request,
                succeeded=False,
                error_detail=CANCELLED_DETAIL,
                duration=time.monotonic() - started,
                via_fallback=via_fallback,
            )
        except FetchFailure as e:
            return self._failed(request, str(e), e.code, started, via_fallback)
        except _TRANSPORT_ERRORS as e:
            return self._failed(request, _describe(e), getattr(e, "errno", None), started, via_fallback)

        logger.debug(f"Fetched {remote_path} -> {local} ({size} bytes)")
        return TransferOutcome(
            request=request,
            succeeded=True,
            bytes_transferred=size,
            duration=time.monotonic() - started,
            via_fallback=via_fallback,
        )

    def _failed(
        self,
        request: TransferRequest,
        detail: str,
        code: Optional[int],
        started: float,
        via_fallback: bool,
    ) -> TransferOutcome:
        logger.warning(f"Fetch failed: {request.remote_path}: {detail}")
        return TransferOutcome(
            request=request,
            succeeded=False,
            error_detail=detail or "unknown error",
            exit_signal=code,
            duration=time.monotonic() - started,
            via_fallback=via_fallback,
        )

    def _ensure_parent(self, local: Path, remote_path: str) -> None:
        try:
            local.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ResourceCreationError(
                f"Cannot create local directory {local.parent}: {_describe(e)}",
                remote_path,
                e.errno,
            ) from e

    def _download(self, sftp, remote_path: str, local: Path, cancel: Optional[CancelToken]) -> int:
        """Fetch into <name>.part and rename on success"""
        attrs = sftp.stat(remote_path)
        if attrs.st_mode is not None and stat.S_ISDIR(attrs.st_mode):
            raise FetchFailure(f"{remote_path} is a directory", remote_path)

        def on_progress(transferred: int, total: int) -> None:
            if cancel is not None and cancel.cancelled:
                raise FetchCancelled(remote_path)

        part = local.with_name(local.name + PARTIAL_SUFFIX)
        completed = False
        try:
            sftp.get(remote_path, str(part), callback=on_progress)
            size = part.stat().st_size
            if self.verify_size and attrs.st_size is not None and size != attrs.st_size:
                raise FetchFailure(
                    f"Size mismatch: expected {attrs.st_size} bytes, got {size}",
                    remote_path,
                )
            part.replace(local)
            completed = True
        finally:
            if not completed:
                part.unlink(missing_ok=True)
        return size

    def _fetch_via_fallback(
        self,
        session: TransferSession,
        remote_path: str,
        local: Path,
        cancel: Optional[CancelToken],
    ) -> int:
        logger.warning(f"Shared channel to {session.identity} dropped; using a one-off connection")
        secret = None
        if session.credential is not None and session.credential.usable():
            secret = session.credential.reveal()
        try:
            client = self.connection_factory.create(session.params, secret)
        except SessionEstablishmentError as e:
            raise FetchFailure(f"Fallback connection failed: {e}", remote_path) from e

        try:
            return self._download(client.open_sftp(), remote_path, local, cancel)
        finally:
            client.close()

    # --------------------
    # Teardown
    # --------------------
    def teardown(self, session: Optional[TransferSession]) -> None:
        """Close the channel and zero the credential; safe to call repeatedly"""
        if session is None or session.state is SessionState.CLOSED:
            return

        try:
            if session.client is not None:
                session.client.close()
        except _TRANSPORT_ERRORS as e:
            logger.warning(f"Error closing session {session.identity}: {e}")
        finally:
            session.client = None
            if session.credential is not None:
                session.credential.discard()
            session.state = SessionState.CLOSED
            logger.debug(f"Session closed: {session.identity}")


def _describe(error: BaseException) -> str:
    """Readable cause for transport errors (paramiko often leaves args sparse)"""
    if isinstance(error, OSError) and error.strerror:
        return error.strerror
    text = str(error)
    return text or error.__class__.__name__
