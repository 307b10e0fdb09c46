"""
Credential value object

The secret lives in a mutable bytearray so it can be overwritten in place
once the session that owns it is torn down.
"""
import time
from typing import Optional


class Credential:
    """Opaque secret (password or key passphrase) with an explicit discard()"""

    def __init__(self, secret: bytes, expires_at: Optional[float] = None):
        self._buffer = bytearray(secret)
        self.expires_at = expires_at
        self._consumed = False
        self._discarded = False

    @classmethod
    def from_string(cls, secret: str, ttl: Optional[float] = None) -> "Credential":
        expires_at = time.time() + ttl if ttl is not None else None
        return cls(secret.encode("utf-8"), expires_at=expires_at)

    # --------------------
    # State
    # --------------------
    @property
    def is_empty(self) -> bool:
        return len(self._buffer) == 0 or not any(self._buffer)

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and time.time() >= self.expires_at

    @property
    def is_consumed(self) -> bool:
        return self._consumed

    @property
    def is_discarded(self) -> bool:
        return self._discarded

    def usable(self) -> bool:
        return not (self._discarded or self.is_empty or self.is_expired)

    def consume(self) -> None:
        """Mark as handed over to a session; a credential backs one session"""
        self._consumed = True

    # --------------------
    # Access
    # --------------------
    def reveal(self) -> str:
        """Decoded secret for the transport call; callers must not keep it"""
        if self._discarded:
            raise ValueError("Credential has been discarded")
        return self._buffer.decode("utf-8")

    def discard(self) -> None:
        """Overwrite the backing buffer with zeros"""
        for i in range(len(self._buffer)):
            self._buffer[i] = 0
        self._discarded = True

    def raw(self) -> bytes:
        """Copy of the backing buffer (zeros after discard)"""
        return bytes(self._buffer)

    def __repr__(self) -> str:
        state = "discarded" if self._discarded else "set"
        return f"Credential(<{state}>)"
