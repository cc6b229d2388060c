"""Pytest configuration and fixtures for devsetup tests"""
import tempfile
from pathlib import Path

import pytest

from fakes import FakeContext, Machine


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for test files"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_ctx():
    """Context with nothing on PATH and no files"""
    return FakeContext()


@pytest.fixture
def machine():
    """Simulated machine with nothing installed"""
    return Machine()
