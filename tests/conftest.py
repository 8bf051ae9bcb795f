"""Pytest configuration for idasdk-build tests.

Shared configuration for all test suites. No IDA SDK or compiler is needed:
SDK trees are faked under ``tmp_path`` (see tests/unit/conftest.py).
"""

import logging
import pathlib
import sys

import pytest

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Add project root to path for all tests to ensure imports work
PROJECT_ROOT = pathlib.Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))
sys.path.insert(0, str(PROJECT_ROOT / "tests"))


@pytest.fixture(autouse=True)
def _no_sdk_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's IDASDK_ROOT/IDAUSR from leaking into tests."""
    monkeypatch.delenv("IDASDK_ROOT", raising=False)
    monkeypatch.delenv("IDAUSR", raising=False)


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as running the setuptools commands"
    )
