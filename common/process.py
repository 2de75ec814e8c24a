"""Child process source for stdio-relay.

Contains:
- ProcessSource: Spawns a command and exposes its combined stdout/stderr
  as a ByteSource
"""

import logging
import subprocess

logger = logging.getLogger(__name__)


class ProcessSource:
    """ByteSource over the output pipe of a spawned child process.

    stdout and stderr share one pipe so the relay sees the console exactly as
    the child wrote it. stdin is /dev/null.
    """

    def __init__(self, command: list[str]) -> None:
        if not command:
            raise ValueError("No command given")
        self.command = command
        self._proc = subprocess.Popen(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            bufsize=0,
        )
        logger.info(f"Started {command[0]} (pid={self._proc.pid})")

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def returncode(self) -> int | None:
        return self._proc.poll()

    def read(self, size: int) -> bytes:
        # Unbuffered pipe: returns as soon as any output is available
        assert self._proc.stdout is not None
        return self._proc.stdout.read(size) or b""

    def close(self) -> None:
        """Forcefully terminate the child if still running and close the pipe."""
        if self._proc.poll() is None:
            logger.info(f"Terminating {self.command[0]} (pid={self._proc.pid})")
            self._proc.kill()
        self._proc.wait()
        if self._proc.stdout is not None:
            self._proc.stdout.close()
        logger.debug(f"Child exited with code {self._proc.returncode}")
