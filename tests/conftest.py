"""Pytest configuration and fixtures for pyisgweb tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from aioresponses import aioresponses

from pyisgweb.config import IsgConfig
from pyisgweb.store import MemoryStateStore
from pyisgweb.translations import Translator

# Sample ISG pages
SAMPLES_DIR = Path(__file__).parent / "samples"


def load_page(filename: str) -> str:
    """Load a sample ISG page."""
    return (SAMPLES_DIR / filename).read_text(encoding="utf-8")


@pytest.fixture
def values_html() -> str:
    """Value page (system info) HTML."""
    return load_page("values_1_0.html")


@pytest.fixture
def status_html() -> str:
    """Status page HTML."""
    return load_page("status_2_0.html")


@pytest.fixture
def commands_html() -> str:
    """Heating settings page HTML."""
    return load_page("commands_4_0_0.html")


@pytest.fixture
def start_html() -> str:
    """Start page HTML with infographics and operating mode."""
    return load_page("start_0.html")


@pytest.fixture
def login_html() -> str:
    """Login form served for rejected credentials."""
    return load_page("login.html")


@pytest.fixture
def translator() -> Translator:
    """English translator."""
    return Translator("en")


@pytest.fixture
def store() -> MemoryStateStore:
    """Empty in-memory state store."""
    return MemoryStateStore()


@pytest.fixture
def config() -> IsgConfig:
    """Configuration pointing at the mocked ISG."""
    return IsgConfig(
        host="192.168.1.50",
        username="admin",
        password="secret",
        status_paths=["2,0"],
        value_paths=["1,0"],
        command_paths=["4,0,0"],
        request_timeout=5.0,
        command_delay=0.01,
        reboot_delay=0.01,
    )


@pytest.fixture
def mocked_api() -> Generator[aioresponses, None, None]:
    """Mock all aiohttp requests."""
    with aioresponses() as mocked:
        yield mocked
