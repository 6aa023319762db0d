"""Shared fixtures for integration tests."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from dotenv import load_dotenv

from pyisgweb import IsgClient, IsgConfig

# Load .env file before running tests
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

ISG_HOST = os.getenv("ISG_HOST")


@pytest.fixture
def live_config() -> IsgConfig:
    """Configuration taken from the ISG_* environment variables."""
    config = IsgConfig.from_env()
    config.validate()
    return config


@pytest.fixture
async def live_client(live_config: IsgConfig) -> AsyncGenerator[IsgClient, None]:
    """Client talking to the ISG named by ISG_HOST."""
    async with IsgClient(
        live_config.base_url,
        live_config.username,
        live_config.password,
        timeout=live_config.request_timeout,
    ) as client:
        yield client
