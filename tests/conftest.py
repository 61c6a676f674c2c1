"""
Shared fixtures: a fake repository server, a fetcher wired to it, and a
switchable process timezone.
"""

from __future__ import annotations

import os
import time
from datetime import datetime, timezone

import pytest

from cvmfs_status.probe.fetcher import Fetcher
from tests.fakes import RepositoryServer


@pytest.fixture
def server() -> RepositoryServer:
    return RepositoryServer()


@pytest.fixture
def fetcher(server: RepositoryServer):
    with Fetcher(timeout=1.0, transport=server.transport()) as f:
        yield f


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def local_timezone():
    """Switch the process timezone; restored afterwards."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset() not available on this platform")

    saved = os.environ.get("TZ")

    def switch(name: str) -> None:
        os.environ["TZ"] = name
        time.tzset()

    yield switch

    if saved is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = saved
    time.tzset()
