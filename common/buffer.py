"""Bounded pending-byte buffer for stdio-relay.

A PendingBuffer holds bytes that have been read from a producer but not yet
forwarded. Bytes only ever leave through the front:

    [ retained | unscanned ]
      ^ release(n) / discard(n) take from here

- release(n): remove and return the first n bytes (they are forwarded)
- discard(n): drop the first n bytes (inbound control bytes only)
- retain(n): move n unscanned bytes into the retained prefix so a matcher
  does not scan them again

Every byte appended is counted, so the buffer can always prove that
total_in == total_released + total_discarded + len(buffer).
"""


class BufferOverflowError(ValueError):
    """Raised when appending would exceed the buffer capacity."""

    pass


class PendingBuffer:
    """Owned, bounded byte buffer with explicit release/retain/discard."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"Buffer capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._data = bytearray()
        self._retained = 0
        self.total_in = 0
        self.total_released = 0
        self.total_discarded = 0

    def __len__(self) -> int:
        return len(self._data)

    def __bool__(self) -> bool:
        return bool(self._data)

    @property
    def free(self) -> int:
        """Bytes that can still be appended."""
        return self.capacity - len(self._data)

    @property
    def data(self) -> bytes:
        return bytes(self._data)

    @property
    def retained(self) -> int:
        return self._retained

    @property
    def unscanned(self) -> bytes:
        """Bytes after the retained prefix."""
        return bytes(self._data[self._retained :])

    def append(self, chunk: bytes) -> None:
        if len(chunk) > self.free:
            raise BufferOverflowError(
                f"Cannot append {len(chunk)} bytes: {self.free} of {self.capacity} free"
            )
        self._data += chunk
        self.total_in += len(chunk)

    def release(self, n: int) -> bytes:
        """Remove and return the first n bytes."""
        self._check_count(n, len(self._data))
        out = bytes(self._data[:n])
        del self._data[:n]
        self._retained = max(0, self._retained - n)
        self.total_released += n
        return out

    def discard(self, n: int) -> None:
        """Drop the first n bytes. Not allowed while bytes are retained."""
        if self._retained and n:
            raise ValueError(f"Cannot discard with {self._retained} bytes retained")
        self._check_count(n, len(self._data))
        del self._data[:n]
        self.total_discarded += n

    def retain(self, n: int) -> None:
        """Mark the next n unscanned bytes as retained."""
        self._check_count(n, len(self._data) - self._retained)
        self._retained += n

    def clear(self) -> None:
        """Discard everything, retained bytes included."""
        self.total_discarded += len(self._data)
        self._data.clear()
        self._retained = 0

    def is_balanced(self) -> bool:
        """True if every appended byte is released, discarded or still held."""
        return self.total_in == self.total_released + self.total_discarded + len(self._data)

    @staticmethod
    def _check_count(n: int, available: int) -> None:
        if n < 0 or n > available:
            raise ValueError(f"Byte count {n} out of range (0..{available})")
