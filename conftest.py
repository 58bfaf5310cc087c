import os
import sys

import pytest

# Ensure repo-local imports (e.g., `import lichessdbfish`) resolve without extra setup.
src_dir = os.path.abspath(os.path.dirname(__file__))
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "-N",
        "--network",
        action="store_true",
        default=False,
        dest="run_network",
        help="Run tests marked with @pytest.mark.network (queries the live opening explorer)",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers", "network: test talks to the live Lichess opening explorer"
    )


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    if not config.getoption("run_network"):
        skip_network = pytest.mark.skip(reason="use -N/--network to enable live explorer tests")
        for item in items:
            if "network" in item.keywords:
                item.add_marker(skip_network)
