"""Shared fixtures."""

import pytest

from tests.fakes import ScriptedCompletionService


@pytest.fixture
def completion():
    """A completion service with empty queues; script it per test."""
    return ScriptedCompletionService()
