"""pytest configuration and fixtures for stdio-relay tests.

Provides:
- FakeSource: Scripted ByteSource returning fixed chunks
- FakeChannel: Channel recording sends and replaying scripted receives
- MockSerialPort: Single-buffer mock serial port for SerialSource tests
- peer_server: Loopback TCP listener acting as the remote peer
- Markers for unit vs integration tests
"""

import io
import socket
import threading
from collections.abc import Callable, Generator

import pytest


class FakeSource:
    """ByteSource that returns scripted chunks, then end of stream.

    A chunk larger than the requested size is split and the rest returned by
    the next read. An Exception instance in the script is raised when reached.
    """

    def __init__(self, chunks: list[bytes | Exception]) -> None:
        self._chunks = list(chunks)
        self.read_sizes: list[int] = []
        self.closed = False

    def read(self, size: int, /) -> bytes:
        self.read_sizes.append(size)
        if not self._chunks:
            return b""
        chunk = self._chunks.pop(0)
        if isinstance(chunk, Exception):
            raise chunk
        if len(chunk) > size:
            self._chunks.insert(0, chunk[size:])
            chunk = chunk[:size]
        return chunk

    def close(self) -> None:
        self.closed = True


class FakeChannel:
    """Channel that records every send and replays scripted inbound chunks.

    events keeps ("send", bytes) and ("recv", bytes) in call order so tests
    can check what reached the peer before and after a handshake. After the
    script is exhausted recv returns b"" (peer closed).
    """

    def __init__(
        self,
        inbound: list[bytes | Exception] | None = None,
        max_send: int | None = None,
        send_error: Exception | None = None,
        send_error_after: int = 0,
    ) -> None:
        self._inbound = list(inbound or [])
        self._max_send = max_send
        self._send_error = send_error
        self._send_error_after = send_error_after
        self.events: list[tuple[str, bytes]] = []
        self.send_calls = 0
        self.shut_down = False
        self.closed = False

    def send(self, data: bytes, /) -> int:
        self.send_calls += 1
        if self._send_error is not None and self.send_calls > self._send_error_after:
            raise self._send_error
        data = bytes(data)
        if self._max_send is not None:
            data = data[: self._max_send]
        self.events.append(("send", data))
        return len(data)

    def recv(self, size: int, /) -> bytes:
        if not self._inbound:
            return b""
        chunk = self._inbound.pop(0)
        if isinstance(chunk, Exception):
            raise chunk
        if len(chunk) > size:
            self._inbound.insert(0, chunk[size:])
            chunk = chunk[:size]
        self.events.append(("recv", chunk))
        return chunk

    def shutdown_write(self) -> None:
        self.shut_down = True

    def close(self) -> None:
        self.closed = True

    @property
    def sent(self) -> bytes:
        """Everything sent, concatenated."""
        return b"".join(data for kind, data in self.events if kind == "send")

    def sent_before_first_recv(self) -> bytes:
        out = []
        for kind, data in self.events:
            if kind == "recv":
                break
            out.append(data)
        return b"".join(out)

    def sent_after_last_recv(self) -> bytes:
        out: list[bytes] = []
        for kind, data in self.events:
            if kind == "recv":
                out = []
            else:
                out.append(data)
        return b"".join(out)


class MockSerialPort:
    """Mock serial port for unit testing.

    Data injected into the port can be read back. read() returns b"" when
    the buffer is empty.
    """

    def __init__(self) -> None:
        self._buffer = io.BytesIO()
        self._read_pos = 0
        self._lock = threading.Lock()
        self.closed = False

    def read(self, size: int = 1, /) -> bytes:
        with self._lock:
            self._buffer.seek(self._read_pos)
            data = self._buffer.read(size)
            self._read_pos = self._buffer.tell()
            return data

    @property
    def in_waiting(self) -> int:
        with self._lock:
            end_pos = self._buffer.seek(0, 2)
            return max(0, end_pos - self._read_pos)

    def inject(self, data: bytes) -> None:
        """Inject data as if the console produced it."""
        with self._lock:
            self._buffer.seek(0, 2)
            self._buffer.write(data)

    def close(self) -> None:
        self.closed = True


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (spawns processes and sockets)"
    )


@pytest.fixture
def make_source() -> Callable[..., FakeSource]:
    return FakeSource


@pytest.fixture
def make_channel() -> Callable[..., FakeChannel]:
    return FakeChannel


@pytest.fixture
def serial_port() -> MockSerialPort:
    return MockSerialPort()


@pytest.fixture
def console() -> io.BytesIO:
    return io.BytesIO()


class PeerServer:
    """Loopback TCP peer accepting a single connection in a thread.

    The handler runs with the accepted socket; whatever it returns is stored
    in result. Exceptions are stored in error and re-raised by join().
    """

    def __init__(self, handler: Callable[[socket.socket], object]) -> None:
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._listener.bind(("127.0.0.1", 0))
        self._listener.listen(1)
        self._listener.settimeout(10)
        self.port: int = self._listener.getsockname()[1]
        self._handler = handler
        self.result: object = None
        self.error: BaseException | None = None
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        try:
            conn, _ = self._listener.accept()
            with conn:
                conn.settimeout(10)
                self.result = self._handler(conn)
        except BaseException as e:  # surfaced to the test by join()
            self.error = e

    def join(self, timeout: float = 10) -> object:
        self._thread.join(timeout)
        if self.error is not None:
            raise self.error
        return self.result

    def close(self) -> None:
        self._listener.close()


@pytest.fixture
def peer_server() -> Generator[Callable[[Callable[[socket.socket], object]], PeerServer], None, None]:
    """Factory for loopback peers; listeners are closed after the test."""
    servers: list[PeerServer] = []

    def start(handler: Callable[[socket.socket], object]) -> PeerServer:
        server = PeerServer(handler)
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.close()


def recv_until(conn: socket.socket, marker: bytes) -> bytes:
    """Read from conn until marker has been received. Returns everything read."""
    data = b""
    while marker not in data:
        chunk = conn.recv(4096)
        if not chunk:
            raise AssertionError(f"Connection closed before {marker!r}; got {data!r}")
        data += chunk
    return data


def recv_all(conn: socket.socket) -> bytes:
    """Read from conn until the peer half-closes."""
    data = b""
    while True:
        chunk = conn.recv(4096)
        if not chunk:
            return data
        data += chunk


@pytest.fixture
def socket_helpers() -> tuple[Callable[[socket.socket, bytes], bytes], Callable[[socket.socket], bytes]]:
    return recv_until, recv_all
