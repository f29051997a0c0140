"""
Root conftest.py: registers custom markers.

Markers:
  @pytest.mark.posix   spawns real processes through /bin/sh; skipped when
                       /bin/sh is missing or with --no-spawn / NO_SPAWN_TESTS=1
"""
from __future__ import annotations

import os

import pytest


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "posix: mark test as spawning child processes through /bin/sh",
    )


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--no-spawn",
        action="store_true",
        default=False,
        help="Skip tests marked with @pytest.mark.posix",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip @pytest.mark.posix tests without a usable /bin/sh or when asked to."""
    no_spawn = config.getoption("--no-spawn") or os.environ.get("NO_SPAWN_TESTS", "").lower() in ("1", "true", "yes")
    reason = None
    if no_spawn:
        reason = "spawning disabled (--no-spawn or NO_SPAWN_TESTS=1)"
    elif os.name != "posix" or not os.access("/bin/sh", os.X_OK):
        reason = "needs a POSIX /bin/sh"
    if reason is None:
        return
    skip = pytest.mark.skip(reason=reason)
    for item in items:
        if "posix" in item.keywords:
            item.add_marker(skip)
