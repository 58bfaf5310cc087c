from typing import Iterable, List, Optional

import pytest

from lichessdbfish.engine_bridge import EngineBridge


class RecordingPipe:
    """Stands in for the engine's stdin and remembers every write."""

    def __init__(self, broken: bool = False) -> None:
        self.broken = broken
        self.closed = False
        self.data = ""
        self.flushes = 0

    def write(self, text: str) -> int:
        if self.broken:
            raise BrokenPipeError("engine went away")
        self.data += text
        return len(text)

    def flush(self) -> None:
        self.flushes += 1

    def close(self) -> None:
        self.closed = True

    @property
    def lines(self) -> List[str]:
        return self.data.splitlines()


class ScriptedOutput:
    """Engine stdout that replays a fixed script, then reports EOF."""

    def __init__(self, lines: Iterable[str]) -> None:
        self._lines = [f"{line}\n" for line in lines]
        self.error: Optional[Exception] = None

    def readline(self) -> str:
        if self.error is not None:
            raise self.error
        if not self._lines:
            return ""
        return self._lines.pop(0)

    @property
    def remaining(self) -> List[str]:
        return [line.rstrip("\n") for line in self._lines]


class FakeEngineProcess:
    def __init__(self, lines: Iterable[str], *, broken_stdin: bool = False, exit_code: int = 0) -> None:
        self.stdin = RecordingPipe(broken=broken_stdin)
        self.stdout = ScriptedOutput(lines)
        self.exit_code = exit_code
        self.waited = False

    def wait(self) -> int:
        self.waited = True
        return self.exit_code


@pytest.fixture()
def make_bridge():
    def factory(lines: Iterable[str] = (), *, banner: Optional[str] = "Stockfish 16 by the Stockfish developers", **kwargs):
        script = list(lines)
        if banner is not None:
            script.insert(0, banner)
        proc = FakeEngineProcess(script, **kwargs)
        return EngineBridge(proc), proc

    return factory
