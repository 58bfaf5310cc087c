"""Lichess Opening Explorer client and the per-session statistics cache."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from .options import BookOptions
from .utils import debug_text, info_text, log

LICHESS_EXPLORER = "https://explorer.lichess.ovh"
MAX_REPLY_MOVES = 50


class ExplorerError(Exception):
    """Raised when position statistics cannot be obtained."""


@dataclass(frozen=True)
class MoveStatistic:
    uci: str
    san: str
    white: int
    draws: int
    black: int

    @property
    def games(self) -> int:
        return self.white + self.draws + self.black


@dataclass(frozen=True)
class PositionStatistics:
    white: int
    draws: int
    black: int
    moves: Tuple[MoveStatistic, ...] = ()

    @property
    def games(self) -> int:
        return self.white + self.draws + self.black


def build_query(fen: str, options: BookOptions) -> Tuple[str, Dict[str, str]]:
    """Return the explorer endpoint path and query parameters for ``fen``."""
    if options.masters:
        return "/masters", {"fen": fen, "moves": str(MAX_REPLY_MOVES)}

    params = {"variant": "standard", "fen": fen, "moves": str(MAX_REPLY_MOVES)}
    # An empty filter means "everything", so the parameter is left out.
    ratings = options.ratings()
    if ratings:
        params["ratings"] = ",".join(ratings)
    speeds = options.speeds()
    if speeds:
        params["speeds"] = ",".join(speeds)
    return "/lichess", params


def _count(record: Dict[str, Any], key: str) -> int:
    value = record.get(key)
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ExplorerError(f"invalid '{key}' count: {value!r}")
    return value


def _text(record: Dict[str, Any], key: str) -> str:
    value = record.get(key)
    if not isinstance(value, str) or not value:
        raise ExplorerError(f"invalid '{key}' field: {value!r}")
    return value


def decode_statistics(payload: Any) -> PositionStatistics:
    """Decode an explorer JSON document into :class:`PositionStatistics`."""
    if not isinstance(payload, dict):
        raise ExplorerError("explorer response is not an object")
    raw_moves = payload.get("moves")
    if not isinstance(raw_moves, list):
        raise ExplorerError("explorer response has no move list")

    moves: List[MoveStatistic] = []
    for raw in raw_moves:
        if not isinstance(raw, dict):
            raise ExplorerError("explorer move entry is not an object")
        moves.append(
            MoveStatistic(
                uci=_text(raw, "uci"),
                san=_text(raw, "san"),
                white=_count(raw, "white"),
                draws=_count(raw, "draws"),
                black=_count(raw, "black"),
            )
        )

    return PositionStatistics(
        white=_count(payload, "white"),
        draws=_count(payload, "draws"),
        black=_count(payload, "black"),
        moves=tuple(moves),
    )


class ExplorerClient:
    """Synchronous client for the opening explorer HTTP API."""

    def __init__(
        self,
        *,
        base_url: str = LICHESS_EXPLORER,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = client or httpx.Client(timeout=timeout)
        self._base_url = base_url.rstrip("/")
        self._headers = headers

    def fetch(self, fen: str, options: BookOptions) -> PositionStatistics:
        path, params = build_query(fen, options)
        try:
            response = self._client.get(
                self._base_url + path, params=params, headers=self._headers or None
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise ExplorerError(f"HTTP {exc.response.status_code} from explorer") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ExplorerError(f"HTTP request error: {exc}") from exc
        except ValueError as exc:
            raise ExplorerError(f"JSON parse error: {exc}") from exc
        return decode_statistics(payload)

    def close(self) -> None:
        self._client.close()


Fetcher = Callable[[str, BookOptions], PositionStatistics]


class StatisticsCache:
    """Process-lifetime cache of explorer statistics keyed by exact FEN.

    Entries are never evicted or refreshed. Failed lookups are not stored, so
    the next query for the same position tries the network again.
    """

    def __init__(self, fetcher: Fetcher, *, debug: bool = False) -> None:
        self._fetcher = fetcher
        self._entries: Dict[str, PositionStatistics] = {}
        self.debug = debug

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fen: object) -> bool:
        return fen in self._entries

    def lookup(self, fen: str, options: BookOptions) -> Optional[PositionStatistics]:
        cached = self._entries.get(fen)
        if cached is not None:
            if self.debug:
                log(debug_text(f"explorer cache hit for {fen}"))
            return cached
        try:
            statistics = self._fetcher(fen, options)
        except ExplorerError as exc:
            log(info_text(f"explorer unavailable for {fen}: {exc}"))
            return None
        self._entries[fen] = statistics
        return statistics
