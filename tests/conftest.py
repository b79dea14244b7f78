"""Pytest fixtures for Tracebar tests."""

import io
import os

import pytest
from rich.console import Console

from tracebar.foundation.config import reset_config
from tracebar.progress import IndicatorLayer
from tracebar.tracing import Tracer


@pytest.fixture
def console() -> Console:
    """Non-terminal console writing to memory."""
    return Console(file=io.StringIO(), width=100, force_terminal=False)


@pytest.fixture
def layer(console: Console):
    """Indicator layer drawing on the in-memory console."""
    layer = IndicatorLayer(console=console)
    yield layer
    layer.multibar.stop()


@pytest.fixture
def tracer(layer: IndicatorLayer) -> Tracer:
    """Tracer dispatching to the indicator layer."""
    return Tracer().with_layer(layer)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate config lookup from the developer's environment."""
    for key in list(os.environ):
        if key.startswith("TRACEBAR_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield tmp_path
    reset_config()
