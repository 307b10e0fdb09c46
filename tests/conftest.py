from __future__ import annotations

import errno
import stat
from types import SimpleNamespace

import pytest

from batchfetch.core.exceptions import SessionEstablishmentError
from batchfetch.core.interfaces import ConnectionFactory
from batchfetch.core.telemetry import Telemetry
from batchfetch.domain.fetch import Credential, TransferSessionManager


class FakeSFTP:
    """In-memory stand-in for paramiko.SFTPClient"""

    def __init__(self, remote):
        self.remote = remote
        self.get_calls = []
        self.closed = False

    def stat(self, path):
        if path in self.remote.denied:
            raise PermissionError(errno.EACCES, "Permission denied")
        if path in self.remote.dirs:
            return SimpleNamespace(st_size=4096, st_mode=stat.S_IFDIR | 0o755)
        if path not in self.remote.files:
            raise FileNotFoundError(errno.ENOENT, "No such file")
        return SimpleNamespace(st_size=len(self.remote.files[path]), st_mode=stat.S_IFREG | 0o644)

    def get(self, remotepath, localpath, callback=None):
        self.get_calls.append(remotepath)
        data = self.remote.files[remotepath]
        if remotepath in self.remote.truncated:
            data = data[:-1]
        half = len(data) // 2
        with open(localpath, "wb") as f:
            f.write(data[:half])
            if self.remote.mid_transfer_hook is not None:
                self.remote.mid_transfer_hook(remotepath)
            if callback:
                callback(half, len(data))
            f.write(data[half:])
            if callback:
                callback(len(data), len(data))

    def close(self):
        self.closed = True


class FakeClient:
    """In-memory stand-in for RemoteClient"""

    def __init__(self, remote):
        self.sftp = FakeSFTP(remote)
        self.active = True
        self.closed = False
        self.sftp_opens = 0

    def open_sftp(self):
        self.sftp_opens += 1
        return self.sftp

    def is_active(self):
        return self.active and not self.closed

    def close(self):
        self.closed = True


class FakeConnectionFactory(ConnectionFactory):
    """Counts connection attempts and serves files from a dict"""

    def __init__(self, files=None, password=None):
        self.files = dict(files or {})
        self.denied = set()
        self.dirs = set()
        self.truncated = set()
        self.mid_transfer_hook = None
        self.password = password
        self.fail_with = None
        self.calls = []
        self.clients = []

    def create(self, params, secret=None):
        self.calls.append((params, secret))
        if self.fail_with is not None:
            raise self.fail_with
        if self.password is not None and secret != self.password:
            raise SessionEstablishmentError(f"Authentication failed for {params.identity}")
        client = FakeClient(self)
        self.clients.append(client)
        return client

    @property
    def create_count(self):
        return len(self.calls)


@pytest.fixture
def remote_files():
    return {
        "/home/u/a.txt": b"alpha contents\n",
        "/home/u/b.txt": b"bravo contents, a little longer\n",
        "/var/log/app/c.log": b"line 1\nline 2\n",
    }


@pytest.fixture
def factory(remote_files):
    return FakeConnectionFactory(remote_files, password="s3cret")


@pytest.fixture
def manager(factory):
    return TransferSessionManager(factory)


@pytest.fixture
def credential():
    return Credential.from_string("s3cret")


@pytest.fixture
def telemetry():
    return Telemetry()
