# tests/conftest.py

"""Shared pytest fixtures for all scraper tests."""

from collections.abc import Generator
from unittest.mock import AsyncMock, patch

import pytest


@pytest.fixture(autouse=True)
def mock_sleep() -> Generator[None, None, None]:
    """Patch asyncio.sleep globally so settle and poll loops run instantly."""
    with patch("asyncio.sleep", new_callable=AsyncMock):
        yield
