"""UCI session that sits between a GUI and a native engine.

Commands from the GUI are decoded once into a :class:`Command` and routed
through a dispatch table. Everything the engine should see goes through the
:class:`~engine_bridge.EngineBridge`; search requests additionally consult the
opening explorer and may answer with a book move instead of the engine's.
"""

from __future__ import annotations

import random
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, TextIO, Tuple

import chess

from .book import BookMove, select_book_move
from .engine_bridge import EngineBridge, EngineStreamError
from .explorer import StatisticsCache
from .options import BookOptions, advertise_options, apply_option, find_option
from .search_relay import relay_search
from .utils import debug_text, ensure_line_buffered_stdout, info_text, log

PROXY_NAME = "lichessdbfish"


class CommandKind(Enum):
    UCI = "uci"
    SETOPTION = "setoption"
    ISREADY = "isready"
    POSITION = "position"
    GO = "go"
    STOP = "stop"
    QUIT = "quit"
    NEWGAME = "ucinewgame"
    UNKNOWN = "unknown"


COMMAND_TOKENS: Dict[str, CommandKind] = {
    "uci": CommandKind.UCI,
    "setoption": CommandKind.SETOPTION,
    "isready": CommandKind.ISREADY,
    "position": CommandKind.POSITION,
    "go": CommandKind.GO,
    "stop": CommandKind.STOP,
    "quit": CommandKind.QUIT,
    "exit": CommandKind.QUIT,
    "ucinewgame": CommandKind.NEWGAME,
}


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    name: str
    args: Tuple[str, ...]
    raw: str


def decode_command(line: str) -> Optional[Command]:
    """Decode one GUI line; blank lines decode to ``None``."""
    raw = line.strip()
    tokens = raw.split()
    if not tokens:
        return None
    name = tokens[0]
    kind = COMMAND_TOKENS.get(name, CommandKind.UNKNOWN)
    return Command(kind=kind, name=name, args=tuple(tokens[1:]), raw=raw)


@dataclass(frozen=True)
class Position:
    fen: str = chess.STARTING_FEN
    turn: bool = chess.WHITE

    @classmethod
    def from_args(cls, args: Tuple[str, ...]) -> "Position":
        """Build the position described by ``position`` command arguments.

        Raises ``ValueError`` for malformed FENs, illegal moves or an unknown
        position form.
        """
        if args[0] == "startpos":
            board = chess.Board()
            rest = args[1:]
        elif args[0] == "fen":
            board = chess.Board(" ".join(args[1:7]))
            rest = args[7:]
        else:
            raise ValueError(f"unknown position form '{args[0]}'")

        if rest:
            if rest[0] != "moves":
                raise ValueError(f"unexpected token '{rest[0]}'")
            for move_text in rest[1:]:
                board.push_uci(move_text)

        return cls(fen=board.fen(en_passant="fen"), turn=board.turn)


class ProxySession:
    """All mutable state of one proxy run, plus the command handlers."""

    def __init__(
        self,
        bridge: EngineBridge,
        cache: StatisticsCache,
        *,
        rng: Optional[random.Random] = None,
        debug: bool = False,
        emit: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.bridge = bridge
        self.cache = cache
        self.rng = rng or random.Random()
        self.debug = debug
        self.options = BookOptions()
        # None while the engine holds a position the session could not parse.
        self.position: Optional[Position] = Position()
        self.running = True
        self._emit = emit or print

        self.dispatch_table: Dict[CommandKind, Callable[[Command], None]] = {
            CommandKind.UCI: self.handle_uci,
            CommandKind.SETOPTION: self.handle_setoption,
            CommandKind.ISREADY: self.handle_isready,
            CommandKind.POSITION: self.handle_position,
            CommandKind.GO: self.handle_go,
            CommandKind.STOP: self.handle_stop,
            CommandKind.QUIT: self.handle_quit,
            CommandKind.NEWGAME: self.handle_newgame,
            CommandKind.UNKNOWN: self.handle_unknown,
        }

    def _log_debug(self, message: str) -> None:
        if self.debug:
            log(debug_text(message))

    def start(self, stream: Optional[TextIO] = None) -> Optional[int]:
        """Announce the engine, serve GUI commands, then shut the engine down."""
        ensure_line_buffered_stdout()
        if self.bridge.banner is not None:
            self._emit(f"{PROXY_NAME} over {self.bridge.banner}")
        try:
            self.command_loop(stream or sys.stdin)
        finally:
            exit_code = self.bridge.shutdown()
        self._log_debug(f"engine exited with code {exit_code}")
        return exit_code

    def command_loop(self, stream: TextIO) -> None:
        while self.running:
            line = stream.readline()
            if not line:
                break
            try:
                self.handle_line(line)
            except EngineStreamError as exc:
                log(info_text(f"engine connection lost: {exc}"))
                self.running = False
            finally:
                sys.stdout.flush()

    def handle_line(self, line: str) -> None:
        command = decode_command(line)
        if command is None:
            return
        self.dispatch_table[command.kind](command)

    def handle_uci(self, command: Command) -> None:
        self.bridge.send(command.name)
        while True:
            line = self.bridge.next_line()
            if line.strip() == "uciok":
                break
            self._emit(line)
        for option_line in advertise_options():
            self._emit(option_line)
        self._emit("uciok")

    def handle_setoption(self, command: Command) -> None:
        args = command.args
        if len(args) < 2 or args[0] != "name" or args[1] == "value":
            self._emit(f"No such option: {' '.join(args)}")
            return

        value_index = args.index("value") if "value" in args else len(args)
        name = " ".join(args[1:value_index])
        option = find_option(name)
        if option is None:
            self.bridge.send(command.raw)
            return
        if value_index >= len(args):
            return

        value = " ".join(args[value_index + 1:])
        self.options = apply_option(self.options, option, value)
        self._log_debug(f"{name} -> {getattr(self.options, option.field)}")

    def handle_isready(self, command: Command) -> None:
        self.bridge.send(command.name)
        while True:
            line = self.bridge.next_line()
            self._emit(line)
            if line.strip() == "readyok":
                break

    def handle_position(self, command: Command) -> None:
        if not command.args:
            return
        try:
            self.position = Position.from_args(command.args)
        except ValueError as exc:
            self.position = None
            self._emit(f"info string Invalid position command: {exc}")
        self.bridge.send(command.raw)
        if self.position is not None:
            self._log_debug(f"position {self.position.fen}")

    def handle_go(self, command: Command) -> None:
        self.bridge.send(command.raw)
        book_move = self.choose_book_move()
        if book_move is not None:
            self._log_debug(f"book move {book_move.uci} ({book_move.san}, {book_move.games} games)")
        relay_search(self.bridge, book_move, self._emit)

    def choose_book_move(self) -> Optional[BookMove]:
        if self.position is None:
            return None
        statistics = self.cache.lookup(self.position.fen, self.options)
        if statistics is None:
            return None
        return select_book_move(statistics, self.position.turn, self.options, self.rng)

    def handle_stop(self, command: Command) -> None:
        self.bridge.send(command.name)

    def handle_newgame(self, command: Command) -> None:
        self.bridge.send(command.raw)

    def handle_quit(self, command: Command) -> None:
        self.running = False

    def handle_unknown(self, command: Command) -> None:
        self._emit(f"Unknown command: {command.name}")
