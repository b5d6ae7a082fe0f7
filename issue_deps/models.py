"""Data models for issue dependency management."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

DEPENDENCY_TYPES: tuple[str, ...] = ("blocks", "relates", "duplicates")

ISSUE_STATUSES: tuple[str, ...] = ("backlog", "todo", "in_progress", "in_review", "done", "cancelled")
ISSUE_PRIORITIES: tuple[str, ...] = ("urgent", "high", "medium", "low", "none")
TERMINAL_STATUSES: frozenset[str] = frozenset({"done", "cancelled"})


def is_active(status: str) -> bool:
    """Return True if the status is not terminal."""
    return status not in TERMINAL_STATUSES


@dataclass
class IssueSummary:
    """Represents the view of an issue the dependency engine consumes."""

    id: str
    identifier: str
    title: str
    status: str = "backlog"
    priority: str = "none"
    estimate: float | None = None
    project_id: str = ""

    @property
    def is_active(self) -> bool:
        return is_active(self.status)


@dataclass(frozen=True)
class DependencyEdge:
    """Represents a typed, directed dependency between two issues."""

    id: str
    source_issue_id: str
    target_issue_id: str
    dependency_type: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class DependencyWithIssue:
    """An edge as seen from one of its endpoints, carrying the other issue."""

    id: str
    dependency_type: str
    issue: IssueSummary


@dataclass
class IssueDependencies:
    """All dependencies of an issue, classified by direction and type."""

    blocks: list[DependencyWithIssue] = field(default_factory=list)
    blocked_by: list[DependencyWithIssue] = field(default_factory=list)
    relates_to: list[DependencyWithIssue] = field(default_factory=list)
    duplicates: list[DependencyWithIssue] = field(default_factory=list)


@dataclass
class BlockerSummary:
    identifier: str
    title: str
    status: str


@dataclass
class BlockedIssue:
    """An active issue together with its currently active blockers."""

    issue: IssueSummary
    blocked_by: list[BlockerSummary] = field(default_factory=list)


@dataclass
class CriticalPath:
    """Longest chain of blocking dependencies in a project."""

    path: list[str] = field(default_factory=list)
    issues: list[IssueSummary] = field(default_factory=list)

    @property
    def total_estimate(self) -> float:
        return sum(issue.estimate for issue in self.issues if issue.estimate is not None)
