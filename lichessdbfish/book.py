"""Book move selection from opening explorer statistics."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import chess

from .explorer import MoveStatistic, PositionStatistics
from .options import BookOptions, SortBy, WeightBy

# The explorer reports castling as king-takes-rook; UCI engines expect the
# two-square king move.
CASTLING_FIXES: Dict[str, str] = {
    "e1h1": "e1g1",
    "e1a1": "e1c1",
    "e8h8": "e8g8",
    "e8a8": "e8c8",
}


@dataclass(frozen=True)
class BookMove:
    uci: str
    san: str
    white: int
    draws: int
    black: int

    @property
    def games(self) -> int:
        return self.white + self.draws + self.black

    def percentages(self) -> Tuple[int, int, int]:
        """White/draw/black shares of this move's games, floored."""
        games = self.games
        return (self.white * 100 // games, self.draws * 100 // games, self.black * 100 // games)


def fix_castle(uci: str) -> str:
    return CASTLING_FIXES.get(uci, uci)


def score_percent(move: MoveStatistic, turn: bool) -> Optional[int]:
    """Score of ``move`` for the side to move, wins counting double.

    Returns ``None`` when the move has no games.
    """
    games = move.games
    if games == 0:
        return None
    wins = move.white if turn == chess.WHITE else move.black
    return (2 * wins + move.draws) * 100 // (2 * games)


def candidate_moves(
    position: PositionStatistics, turn: bool, options: BookOptions
) -> List[MoveStatistic]:
    """Filter, sort and truncate the replies of ``position``."""
    total = position.games
    if total == 0:
        return []

    candidates = []
    for move in position.moves:
        score = score_percent(move, turn)
        if score is None:
            continue
        if move.games < options.games_min:
            continue
        if move.games * 100 // total < options.games_percent_min:
            continue
        if score < options.score_min:
            continue
        candidates.append(move)

    if options.sort_by is SortBy.GAMES:
        candidates.sort(key=lambda move: move.games, reverse=True)
    else:
        candidates.sort(key=lambda move: score_percent(move, turn), reverse=True)

    return candidates[: options.variants]


def _weight_function(options: BookOptions, turn: bool) -> Callable[[MoveStatistic], int]:
    if options.weight_by is WeightBy.GAMES:
        return lambda move: move.games
    if options.weight_by is WeightBy.SCORE:
        return lambda move: score_percent(move, turn) or 0
    return lambda move: 1


def weighted_choice(
    moves: Sequence[MoveStatistic],
    weight: Callable[[MoveStatistic], int],
    rng: random.Random,
) -> Optional[MoveStatistic]:
    weights = [weight(move) for move in moves]
    total_weight = sum(weights)
    if total_weight <= 0:
        return None
    draw = rng.randrange(total_weight)
    accumulated = 0
    for move, move_weight in zip(moves, weights):
        accumulated += move_weight
        if draw < accumulated:
            return move
    return None


def select_book_move(
    position: PositionStatistics,
    turn: bool,
    options: BookOptions,
    rng: Optional[random.Random] = None,
) -> Optional[BookMove]:
    """Pick a book reply for the side to move, or ``None`` if nothing qualifies."""
    candidates = candidate_moves(position, turn, options)
    chosen = weighted_choice(candidates, _weight_function(options, turn), rng or random.Random())
    if chosen is None:
        return None
    return BookMove(
        uci=fix_castle(chosen.uci),
        san=chosen.san,
        white=chosen.white,
        draws=chosen.draws,
        black=chosen.black,
    )
