"""Incremental literal token matcher for stdio-relay.

Finds a literal token in a buffer that may end part-way through the token.
The result tells the caller how many leading bytes can never be part of the
token and are safe to forward:

    buffer:  b"log line\\nready n"      token: b"ready now"
    result:  PARTIAL at offset 9       -> forward b"log line\\n", keep b"ready n"

Comparison at each offset is truncated to the bytes available, so a token
split across any number of reads is still found once its last byte arrives.
The leftmost candidate wins.
"""

from dataclasses import dataclass
from enum import Enum

from common.config import ConfigInvalid


class MatchKind(Enum):
    """Outcome of scanning a buffer for the token."""

    SEARCHING = "searching"  # no candidate, every byte is releasable
    PARTIAL = "partial"  # buffer ends with a proper prefix of the token
    FULL = "full"  # complete token found


@dataclass(frozen=True)
class MatchState:
    """Result of TokenMatcher.scan().

    offset: Start of the candidate match (len(buffer) when SEARCHING). Bytes
        before it are safe to release.
    length: Number of candidate bytes present in the buffer.
    """

    kind: MatchKind
    offset: int
    length: int = 0

    @property
    def end(self) -> int:
        return self.offset + self.length


class TokenMatcher:
    """Matches a single literal token. An empty token disables matching."""

    def __init__(self, token: bytes, capacity: int | None = None) -> None:
        if capacity is not None and len(token) > capacity:
            raise ConfigInvalid(
                f"Token ({len(token)} bytes) exceeds buffer capacity ({capacity})"
            )
        self._token = bytes(token)

    @property
    def token(self) -> bytes:
        return self._token

    @property
    def enabled(self) -> bool:
        return bool(self._token)

    def __len__(self) -> int:
        return len(self._token)

    def scan(self, data: bytes) -> MatchState:
        """Locate the leftmost full or partial occurrence of the token in data.

        Pure function of data: the matcher keeps no state between calls.
        """
        size = len(data)
        token_len = len(self._token)
        if token_len == 0:
            return MatchState(MatchKind.SEARCHING, size)

        # A complete occurrence always starts before any tail-only prefix match
        offset = data.find(self._token)
        if offset >= 0:
            return MatchState(MatchKind.FULL, offset, token_len)

        for offset in range(max(0, size - token_len + 1), size):
            remaining = size - offset
            if data.startswith(self._token[:remaining], offset):
                return MatchState(MatchKind.PARTIAL, offset, remaining)

        return MatchState(MatchKind.SEARCHING, size)
