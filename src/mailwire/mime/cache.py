# =============================================================================
# Encoded Payload Cache
# =============================================================================
# Remembers the wire form of attachment payloads so sending the same file or
# the same HTML body again (resending a mail, the same logo on every
# newsletter) doesn't base64-encode it again.
#
# Keys are strings built by the encoder:
#   - "file:<path>"      for files on disk
#   - "data:<sha256>"    for in-memory bytes
#   - "html:<sha256>"    for HTML text
#   - "pgp:<sha256>"     for PGP text
#
# A value is a pure function of its key, so entries never go stale and a
# race between two senders only means one of them encodes twice.
# =============================================================================

import threading
from collections import OrderedDict


class EncodedPayloadCache:
    """
    Thread-safe LRU cache of encoded payloads, bounded by total size.

    One instance can be shared by every writer in the process; all access
    goes through a single lock.

    Usage:
        >>> cache = EncodedPayloadCache(max_mb=32)
        >>> cache.set("data:abc", b"YWJj")
        >>> cache.get("data:abc")
        b'YWJj'

    Attributes:
        enabled: When False every lookup misses and nothing is stored.
    """

    def __init__(self, max_mb: float = 64, enabled: bool = True) -> None:
        """
        Initialize the cache.

        Args:
            max_mb: Maximum total size of cached values in megabytes.
            enabled: Whether the cache stores anything at all.
        """
        self.enabled = enabled
        self._max_bytes = int(max_mb * 1024 * 1024)
        self._entries: OrderedDict[str, bytes] = OrderedDict()
        self._current_bytes = 0
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | None:
        """
        Look up an encoded payload.

        Returns:
            The cached bytes, or None on a miss.
        """
        if not self.enabled:
            return None

        with self._lock:
            value = self._entries.get(key)
            if value is not None:
                self._entries.move_to_end(key)
            return value

    def set(self, key: str, value: bytes) -> None:
        """
        Store an encoded payload, evicting least recently used entries
        until it fits. Values bigger than the whole budget are not stored.
        """
        if not self.enabled:
            return

        size = len(value)
        if size > self._max_bytes:
            return

        with self._lock:
            if key in self._entries:
                self._remove(key)

            while self._entries and self._current_bytes + size > self._max_bytes:
                oldest = next(iter(self._entries))
                self._remove(oldest)

            self._entries[key] = value
            self._current_bytes += size

    def _remove(self, key: str) -> None:
        # Caller holds the lock
        value = self._entries.pop(key)
        self._current_bytes -= len(value)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
            self._current_bytes = 0

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    @property
    def size_bytes(self) -> int:
        """Current total size of cached values in bytes."""
        return self._current_bytes

    @property
    def entry_count(self) -> int:
        """Number of cached entries."""
        return len(self._entries)
