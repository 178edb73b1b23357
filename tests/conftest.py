"""Shared fixtures."""

from __future__ import annotations

import pytest

from tests.helpers import FakeChannel
from viewkeeper.viewonce.models import HandlerConfig, HandlerConfigHolder


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def temp_dir(tmp_path):
    return tmp_path / "viewonce"


@pytest.fixture
def config_holder(temp_dir) -> HandlerConfigHolder:
    return HandlerConfigHolder(HandlerConfig(temp_dir=str(temp_dir)))
