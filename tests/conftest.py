"""Shared fixtures for warble tests."""

from pathlib import Path

import pytest

from warble.config import RenderConfig
from warble.http.writer import BufferedResponse
from warble.renderer import Renderer

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def response() -> BufferedResponse:
    return BufferedResponse()


@pytest.fixture
def basic_renderer() -> Renderer:
    return Renderer(RenderConfig(directory=FIXTURES / "basic"))
