import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
src_root = ROOT / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-shipped-configs",
        action="store_true",
        default=False,
        help="also run simulations against the YAML files under configs/",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "shipped_config: runs a simulation from a YAML file shipped under configs/",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-shipped-configs"):
        return

    skip_marker = pytest.mark.skip(reason="needs --run-shipped-configs")
    for item in items:
        if "shipped_config" in item.keywords:
            item.add_marker(skip_marker)


@pytest.fixture(autouse=True)
def _quiet_simulation_logs(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="aviary")
