"""
Shared pytest fixtures for file-search tests.

Gateway mocking infrastructure lives in helpers.py; fixtures here wire the
common cases and keep tests away from real API keys and config files.
"""

from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock

import pytest

from adapters.services import clear_client_cache
from tests.helpers import fake_gateway, make_document, make_file, make_store
from tools.resolve import NameResolver


@pytest.fixture
def gateway() -> MagicMock:
    """Fake gateway with two stores (duplicate display name), files and documents."""
    return fake_gateway(
        stores=[
            make_store("fileSearchStores/research-1", "Research"),
            make_store("fileSearchStores/notes-1", "Notes"),
            make_store("fileSearchStores/research-2", "Research"),
        ],
        files=[
            make_file("files/abc", "paper.pdf"),
            make_file("files/def", "notes.txt"),
        ],
        documents={
            "fileSearchStores/research-1": [
                make_document("fileSearchStores/research-1/documents/d1", "paper.pdf"),
            ],
        },
    )


@pytest.fixture
def resolver(gateway: MagicMock) -> NameResolver:
    return NameResolver(gateway)


@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[Path, None, None]:
    """No API key in the environment and no config file in home or cwd."""
    for var in ("GOOGLE_API_KEY", "GEMINI_API_KEY", "MCP_TOOLS",
                "COMPLETION_ENABLED", "COMPLETION_CACHE_TTL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    yield tmp_path


@pytest.fixture(autouse=True)
def _clear_client_cache() -> Generator[None, None, None]:
    yield
    clear_client_cache()
