from __future__ import annotations

import io

import pytest

from fakes import FakeChain, FakeWeb3
from state_report import Reporter


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def w3(chain: FakeChain) -> FakeWeb3:
    return FakeWeb3(chain)


@pytest.fixture
def report() -> Reporter:
    return Reporter(stream=io.StringIO(), live=False)

