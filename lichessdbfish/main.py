# MAIN
import argparse
import os
import sys
from typing import List, Optional, Sequence

from .engine_bridge import EngineBridge
from .explorer import LICHESS_EXPLORER, ExplorerClient, StatisticsCache
from .proxy import ProxySession
from .utils import info_text, log

DEFAULT_ENGINE = ["stockfish"]


def parse_args(argv: Optional[Sequence[str]] = None):
    parser = argparse.ArgumentParser(
        description="UCI proxy that plays Lichess opening explorer moves before handing over to an engine"
    )
    parser.add_argument(
        "engine",
        nargs="*",
        help="Engine command line; put it after -- if it has flags (default: stockfish)",
    )
    parser.add_argument("-dev", action="store_true", help="Enable debug mode")
    parser.add_argument(
        "--token",
        default=os.environ.get("LICHESS_TOKEN"),
        help="Lichess API token (default: $LICHESS_TOKEN)",
    )
    parser.add_argument(
        "--explorer-url",
        default=LICHESS_EXPLORER,
        help="Opening explorer base URL",
    )
    parser.add_argument(
        "--explorer-timeout",
        type=float,
        default=None,
        help="Seconds to wait for the explorer (default: no timeout)",
    )
    return parser.parse_args(argv)


def engine_command(args) -> List[str]:
    return list(args.engine) if args.engine else list(DEFAULT_ENGINE)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    command = engine_command(args)

    try:
        bridge = EngineBridge.spawn(command, debug=args.dev)
    except OSError as exc:
        log(info_text(f"Cannot start engine {' '.join(command)}: {exc}"))
        return 1

    client = ExplorerClient(
        base_url=args.explorer_url,
        token=args.token,
        timeout=args.explorer_timeout,
    )
    cache = StatisticsCache(client.fetch, debug=args.dev)
    session = ProxySession(bridge, cache, debug=args.dev)
    try:
        session.start()
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
