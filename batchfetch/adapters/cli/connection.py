"""
Connection factory implementation
"""
import socket
from typing import Optional

import paramiko

from ...core.interfaces import ConnectionFactory
from ...core.client import RemoteClient
from ...core.exceptions import SessionEstablishmentError
from ...core.logging import get_logger
from ...domain.fetch.models import ConnectionParams

logger = get_logger(__name__)


class RemoteConnectionFactory(ConnectionFactory):
    """Opens paramiko-backed RemoteClient connections"""

    def create(self, params: ConnectionParams, secret: Optional[str] = None) -> RemoteClient:
        """
        Create and connect an SSH client.

        Args:
            params: Connection parameters
            secret: Password or key passphrase

        Returns:
            Connected RemoteClient instance

        Raises:
            SessionEstablishmentError: Authentication, DNS or network failure
        """
        client = RemoteClient(
            host=params.host,
            user=params.user,
            port=params.port,
            auth_method=params.auth,
            key_path=params.key_file,
            timeout=params.timeout,
        )

        logger.debug(f"Connecting to {params.identity} ({params.auth} auth)")
        try:
            client.connect(secret)
        except paramiko.AuthenticationException as e:
            client.close()
            raise SessionEstablishmentError(f"Authentication failed for {params.identity}: {e}") from e
        except (paramiko.SSHException, socket.error, EOFError, ValueError) as e:
            client.close()
            raise SessionEstablishmentError(f"Failed to connect to {params.identity}: {e}") from e

        return client
