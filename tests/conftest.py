"""Shared fixtures for issue-deps tests."""

from collections.abc import Callable

import pytest

from issue_deps.backends import MemoryBackend
from issue_deps.engine import DependencyEngine
from issue_deps.models import IssueSummary


def _make_issue(
    key: str, status: str = "todo", project_id: str = "proj", estimate: float | None = None
) -> IssueSummary:
    """Build an issue whose ID is the lowercase key and identifier the uppercase one."""
    return IssueSummary(
        id=key.lower(),
        identifier=key.upper(),
        title=f"Issue {key.upper()}",
        status=status,
        priority="medium",
        estimate=estimate,
        project_id=project_id,
    )


@pytest.fixture
def make_issue() -> Callable[..., IssueSummary]:
    """Return the issue builder."""
    return _make_issue


@pytest.fixture
def backend() -> MemoryBackend:
    """Create a memory backend with five active issues a..e in project 'proj'."""
    return MemoryBackend([_make_issue(key) for key in "abcde"])


@pytest.fixture
def engine(backend: MemoryBackend) -> DependencyEngine:
    """Create an engine over the memory backend."""
    return DependencyEngine(edges=backend, issues=backend)
