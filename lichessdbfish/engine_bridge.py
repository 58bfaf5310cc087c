import subprocess
from typing import Any, Optional, Sequence

from .utils import log, received_text, sending_text

SHUTDOWN_SEQUENCE = ("quit", "exit", "quit")


class EngineStreamError(Exception):
    """The engine's pipes closed or broke underneath the proxy."""


class EngineBridge:
    """Duplex line stream to the wrapped UCI engine.

    The first line the engine prints is read on construction and kept as
    :attr:`banner`.
    """

    def __init__(self, proc: Any, *, debug: bool = False) -> None:
        self._proc = proc
        self.debug = debug
        self.banner: Optional[str] = None
        try:
            self.banner = self.next_line()
        except EngineStreamError:
            self.banner = None

    @classmethod
    def spawn(cls, command: Sequence[str], *, debug: bool = False) -> "EngineBridge":
        proc = subprocess.Popen(
            list(command),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=None,
            text=True,
            bufsize=1,
        )
        return cls(proc, debug=debug)

    def send(self, command: str) -> None:
        if self.debug:
            log(sending_text(command))
        if not self._proc.stdin:
            raise EngineStreamError("engine stdin is closed")
        try:
            self._proc.stdin.write(command + "\n")
            self._proc.stdin.flush()
        except (BrokenPipeError, ValueError) as exc:
            raise EngineStreamError(f"cannot write to engine: {exc}") from exc

    def next_line(self) -> str:
        if not self._proc.stdout:
            raise EngineStreamError("engine stdout is closed")
        try:
            line = self._proc.stdout.readline()
        except (OSError, ValueError) as exc:
            raise EngineStreamError(f"cannot read from engine: {exc}") from exc
        if line == "":
            raise EngineStreamError("engine closed its output")
        line = line.rstrip("\r\n")
        if self.debug:
            log(received_text(line))
        return line

    def shutdown(self) -> Optional[int]:
        # quit is repeated in case the first one lands before a pending
        # handshake has completed.
        for command in SHUTDOWN_SEQUENCE:
            try:
                self.send(command)
            except EngineStreamError:
                break
        if self._proc.stdin:
            try:
                self._proc.stdin.close()
            except (BrokenPipeError, OSError):
                pass
        return self._proc.wait()
