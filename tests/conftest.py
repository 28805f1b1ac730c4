"""Shared fixtures for globwatch tests."""
import pytest

from .fakes import MemoryFileSystem


@pytest.fixture
def memory_fs():
    """A small Go-style project tree."""

    return MemoryFileSystem(
        "go.mod",
        "go.sum",
        "cmd/main.go",
        "internal/tool.go",
        "internal/tool_test.go",
    )
