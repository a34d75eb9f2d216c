"""Shared pytest fixtures for Promptforge tests."""

import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from promptforge.api.main import create_app
from promptforge.core.config import PromptforgeConfig
from promptforge.core.errors import GenerationError
from promptforge.core.image_generator import ImageGenerator, PlaceholderImageGenerator
from promptforge.core.orchestrator import RequestOrchestrator
from promptforge.core.prompt_expander import PromptExpander
from promptforge.core.request_store import SQLiteRequestStore


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> PromptforgeConfig:
    """Create a test configuration rooted in the temporary directory.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        PromptforgeConfig instance for testing
    """
    return PromptforgeConfig(
        data_dir=str(temp_dir / "data"),
        image_backend="placeholder",
        _env_file=None,
    )


@pytest.fixture
def request_store(test_config: PromptforgeConfig) -> SQLiteRequestStore:
    """Create an empty SQLite request store in the temporary directory."""
    return SQLiteRequestStore(test_config.database_path)


@pytest.fixture
def failing_generator() -> MagicMock:
    """Create an image generator whose every call fails.

    Returns:
        MagicMock standing in for an ImageGenerator
    """
    generator = MagicMock(spec=ImageGenerator)
    generator.generate.side_effect = GenerationError("Image generation failed: quota exceeded")
    return generator


@pytest.fixture
def orchestrator(request_store: SQLiteRequestStore) -> RequestOrchestrator:
    """Create an orchestrator with the real expander and placeholder generator."""
    return RequestOrchestrator(
        store=request_store,
        expander=PromptExpander(),
        generator=PlaceholderImageGenerator(),
    )


@pytest.fixture
def failing_orchestrator(
    request_store: SQLiteRequestStore, failing_generator: MagicMock
) -> RequestOrchestrator:
    """Create an orchestrator whose image generation always fails."""
    return RequestOrchestrator(
        store=request_store,
        expander=PromptExpander(),
        generator=failing_generator,
    )


@pytest.fixture
def test_client(
    test_config: PromptforgeConfig, orchestrator: RequestOrchestrator
) -> Generator[TestClient, None, None]:
    """Create a FastAPI TestClient backed by the test orchestrator.

    The client is used as a context manager so the application lifespan runs.
    """
    app = create_app(test_config, orchestrator=orchestrator)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def sample_ideas() -> list[str]:
    """Sample user ideas covering each expansion category."""
    return [
        "portrait of a woman",
        "mountain landscape",
        "abstract geometric shapes",
        "wild tiger in jungle",
        "steampunk robot playing violin in Victorian library",
    ]
