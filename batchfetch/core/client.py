from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Literal
import paramiko
from pathlib import Path

from .constants import DEFAULT_SSH_PORT, DEFAULT_SSH_TIMEOUT


AuthMethod = Literal["password", "key", "agent"]


@dataclass
class ClientConfig:
    host: str
    user: str
    port: int = DEFAULT_SSH_PORT
    auth_method: AuthMethod = "password"
    key_path: Optional[str] = None
    timeout: float = DEFAULT_SSH_TIMEOUT


class RemoteClient:
    """
    Thin wrapper around paramiko.SSHClient:
    - keeps host / user / port explicitly
    - password, private key and agent authentication
    - loads Ed25519 / ECDSA / RSA private keys
    - caches one SFTP channel on the authenticated transport
    - usable as a context manager

    Secrets are passed to connect() and never stored on the instance.
    """
    def __init__(
        self,
        host: str,
        user: str,
        port: int = DEFAULT_SSH_PORT,
        auth_method: AuthMethod = "password",
        key_path: Optional[str] = None,
        timeout: float = DEFAULT_SSH_TIMEOUT,
    ) -> None:
        self.config = ClientConfig(
            host=host,
            user=user,
            port=port,
            auth_method=auth_method,
            key_path=key_path,
            timeout=timeout,
        )

        self.client = paramiko.SSHClient()
        self.client.load_system_host_keys()
        self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        self._sftp: Optional[paramiko.SFTPClient] = None

    # --------------------
    # Connection management
    # --------------------
    def connect(self, secret: Optional[str] = None) -> None:
        """
        Open the SSH connection.

        Args:
            secret: Password for password auth, key passphrase for key auth,
                ignored for agent auth
        """
        cfg = self.config
        common = dict(
            hostname=cfg.host,
            port=cfg.port,
            username=cfg.user,
            timeout=cfg.timeout,
            banner_timeout=cfg.timeout,
            auth_timeout=cfg.timeout,
        )

        if cfg.auth_method == "password":
            self.client.connect(
                password=secret,
                allow_agent=False,
                look_for_keys=False,
                **common,
            )

        elif cfg.auth_method == "key":
            key = self._load_private_key(cfg.key_path, secret)
            self.client.connect(
                pkey=key,
                allow_agent=False,
                look_for_keys=False,
                **common,
            )

        elif cfg.auth_method == "agent":
            self.client.connect(
                allow_agent=True,
                look_for_keys=True,
                **common,
            )

        else:
            raise ValueError(f"Unsupported auth method: {cfg.auth_method}")

    def is_active(self) -> bool:
        """True while the underlying transport is connected"""
        transport = self.client.get_transport()
        return transport is not None and transport.is_active()

    # --------------------
    # Load private key
    # --------------------
    def _load_private_key(self, path: Optional[str], passphrase: Optional[str]) -> paramiko.PKey:
        """Try Ed25519, ECDSA and RSA in that order"""
        if not path:
            raise ValueError("Key authentication requires a key file")
        p = Path(path).expanduser()

        last_error: Optional[Exception] = None
        for key_cls in (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey):
            try:
                return key_cls.from_private_key_file(str(p), password=passphrase)
            except (paramiko.SSHException, ValueError) as e:
                last_error = e
        raise paramiko.SSHException(f"Failed to load private key at {p}: {last_error}")

    # --------------------
    # SFTP
    # --------------------
    def open_sftp(self) -> paramiko.SFTPClient:
        """Return the SFTP client, reusing the open channel"""
        if self._sftp is None or self._sftp.get_channel() is None or self._sftp.get_channel().closed:
            self._sftp = self.client.open_sftp()
        return self._sftp

    def close(self) -> None:
        if self._sftp is not None:
            try:
                self._sftp.close()
            except (OSError, EOFError, paramiko.SSHException):
                pass
            self._sftp = None
        self.client.close()

    # --------------------
    # Context manager
    # --------------------
    def __enter__(self) -> RemoteClient:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
