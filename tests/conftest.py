"""Root fixtures for all tests."""

import os
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Clear SAGCOMP_* env vars and reset config and log singletons before each test."""
    for key in list(os.environ.keys()):
        if key.startswith("SAGCOMP_"):
            monkeypatch.delenv(key, raising=False)

    import sagcomp.env
    import sagcomp.log

    sagcomp.env._config = None
    sagcomp.log._warned.clear()

    yield

    sagcomp.env._config = None
    sagcomp.log._warned.clear()


@pytest.fixture
def cfg():
    """Default configuration."""
    from sagcomp.env import Config

    return Config()


@pytest.fixture
def tmp_state_dir(tmp_path):
    """Create temp directory for persisted learned state."""
    state_dir = tmp_path / "state"
    state_dir.mkdir()
    return state_dir


@pytest.fixture
def tmp_out_dir(tmp_path):
    """Create temp directory for rendered reports."""
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    return out_dir


@pytest.fixture
def configured_env(tmp_state_dir, tmp_out_dir, monkeypatch):
    """Point state and output directories at temp dirs."""
    monkeypatch.setenv("SAGCOMP_STATE_DIR", str(tmp_state_dir))
    monkeypatch.setenv("SAGCOMP_OUT_DIR", str(tmp_out_dir))
    monkeypatch.setenv("SAGCOMP_MODEL_NAME", "Test Quad")
    import sagcomp.env

    sagcomp.env._config = None
    return {"state_dir": tmp_state_dir, "out_dir": tmp_out_dir}


@pytest.fixture
def project_root():
    """Path to the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def src_root(project_root):
    """Path to the src/sagcomp directory."""
    return project_root / "src" / "sagcomp"
