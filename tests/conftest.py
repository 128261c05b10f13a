"""Shared pytest fixtures for Image Relay tests."""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from imagerelay.api.main import app
from imagerelay.api.rate_limit import limiter
from imagerelay.core.config import RelayConfig
from imagerelay.core.pipeline import RelayPipeline
from imagerelay.core.placeholder import PlaceholderResponder
from tests.doubles import PLACEHOLDER_BYTES, FakeGenerator, FakeModerator


# ---------------------------------------------------------------------------
# Filesystem and configuration fixtures.
# ---------------------------------------------------------------------------


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
def clean_env(monkeypatch) -> None:
    """Remove every environment variable RelayConfig would read."""
    for name in list(os.environ):
        if name.upper().startswith("IMAGERELAY_") or name.upper() in {"TOGETHER_API_KEY", "PORT"}:
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def static_dir(temp_dir: Path) -> Path:
    """Static directory holding a known placeholder image."""
    path = temp_dir / "static"
    path.mkdir()
    (path / "nonono.gif").write_bytes(PLACEHOLDER_BYTES)
    return path


@pytest.fixture
def test_config(clean_env, static_dir: Path) -> RelayConfig:
    """Create a test configuration with an injected credential.

    Returns:
        RelayConfig isolated from the process environment and .env files
    """
    return RelayConfig(
        _env_file=None,
        api_key="test-key",
        api_base_url="https://provider.test/v1",
        request_timeout=5,
        static_dir=str(static_dir),
    )


@pytest.fixture
def placeholder(test_config: RelayConfig) -> PlaceholderResponder:
    """URL-mode placeholder responder."""
    return PlaceholderResponder(
        response_field="url",
        placeholder_path=test_config.placeholder_path,
        placeholder_url=test_config.placeholder_url,
    )


# ---------------------------------------------------------------------------
# Application fixtures.
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_moderator() -> FakeModerator:
    return FakeModerator()


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def test_client(
    fake_moderator: FakeModerator,
    fake_generator: FakeGenerator,
    placeholder: PlaceholderResponder,
) -> Generator[TestClient, None, None]:
    """TestClient whose pipeline uses the provider doubles.

    The lifespan runs normally, then ``app.state.pipeline`` is swapped for
    one built from the doubles.  The rate limiter is reset so every test
    starts with a fresh window.
    """
    limiter.reset()
    with TestClient(app) as client:
        app.state.pipeline = RelayPipeline(
            moderator=fake_moderator,
            generator=fake_generator,
            placeholder=placeholder,
        )
        yield client
    limiter.reset()
