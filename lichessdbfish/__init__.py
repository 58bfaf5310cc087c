"""Public package interface for the lichessdbfish UCI proxy."""

from .book import BookMove, select_book_move
from .engine_bridge import EngineBridge, EngineStreamError
from .explorer import ExplorerClient, ExplorerError, StatisticsCache
from .options import BookOptions
from .proxy import ProxySession

__all__ = [
    "BookMove",
    "BookOptions",
    "EngineBridge",
    "EngineStreamError",
    "ExplorerClient",
    "ExplorerError",
    "ProxySession",
    "StatisticsCache",
    "select_book_move",
]
