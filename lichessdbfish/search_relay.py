"""Relay of the engine's search output, with book-move substitution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from .book import BookMove
from .engine_bridge import EngineBridge


@dataclass
class Evaluation:
    """Latest depth and score reported by the engine during a search."""

    depth: str = "1"
    seldepth: str = "1"
    score_kind: str = "cp"
    score: str = "0"

    def update(self, line: str) -> None:
        tokens = line.split()
        if not tokens or tokens[0] != "info":
            return
        iterator = iter(tokens[1:])
        for token in iterator:
            if token == "string":
                # Free text runs to the end of the line.
                return
            if token == "depth":
                value = next(iterator, None)
                if value is None:
                    return
                self.depth = value
            elif token == "seldepth":
                value = next(iterator, None)
                if value is None:
                    return
                self.seldepth = value
            elif token == "score":
                kind = next(iterator, None)
                value = next(iterator, None)
                if kind is None or value is None:
                    return
                if kind in ("cp", "mate"):
                    self.score_kind = kind
                    self.score = value


def book_move_report(move: BookMove, evaluation: Evaluation) -> List[str]:
    """Lines announcing ``move`` in place of the engine's own best move."""
    white, draws, black = move.percentages()
    return [
        f"info white {white} draws {draws} black {black} games {move.games} lichessdbmove {move.san}",
        f"info depth {evaluation.depth} seldepth {evaluation.seldepth} multipv 1 "
        f"score {evaluation.score_kind} {evaluation.score} pv {move.uci}",
        f"bestmove {move.uci}",
    ]


def relay_search(
    bridge: EngineBridge,
    book_move: Optional[BookMove],
    emit: Callable[[str], None] = print,
) -> None:
    """Consume engine output up to and including its ``bestmove`` line.

    Without a book move the engine's lines pass through untouched. With one,
    the engine's own output is withheld and only its evaluation is kept for
    the report emitted in place of its ``bestmove``.
    """
    evaluation = Evaluation()
    while True:
        line = bridge.next_line()
        if line.startswith("bestmove"):
            if book_move is None:
                emit(line)
            else:
                for report_line in book_move_report(book_move, evaluation):
                    emit(report_line)
            return
        if book_move is None:
            emit(line)
        else:
            evaluation.update(line)
