"""Pytest configuration and shared fixtures.

The repository uses a flat `src/` layout; this conftest puts the repository root on `sys.path` so
tests can import from the `src.*` namespace without installing the package. It also provides an
HTTP client wired to the real FastAPI app over an in-memory record store.
"""

from __future__ import annotations

import sys
from collections.abc import AsyncIterator
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

# Ensure `import src...` works when running pytest without installing the package.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.api.main import create_api  # noqa: E402
from src.videos.service import VideoService  # noqa: E402
from tests.fakes import InMemoryVideoStore  # noqa: E402


@pytest.fixture
def memory_store() -> InMemoryVideoStore:
    return InMemoryVideoStore()


@pytest.fixture
def container(memory_store: InMemoryVideoStore) -> Any:
    """Application container stand-in; the pool is never opened because lifespan is not run."""

    return SimpleNamespace(
        settings=SimpleNamespace(app_env="test"),
        pool=None,
        store=memory_store,
        service=VideoService(memory_store),
    )


@pytest.fixture
async def client(container: Any) -> AsyncIterator[AsyncClient]:
    """Async HTTP test client against the real FastAPI app (no lifespan, no database)."""

    transport = ASGITransport(app=create_api(container))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
