"""In-memory backend implementation."""

import structlog

from issue_deps.backend import EdgeStore, IssueLookup
from issue_deps.errors import DuplicateConflict, SelfReferenceError
from issue_deps.models import DependencyEdge, IssueSummary

logger = structlog.get_logger()


class MemoryBackend(EdgeStore, IssueLookup):
    """Dict-backed store of issues and dependency edges, kept in insertion order."""

    def __init__(self, issues: list[IssueSummary] | None = None) -> None:
        self.issues: dict[str, IssueSummary] = {}
        self.edges: dict[str, DependencyEdge] = {}
        for issue in issues or []:
            self.put_issue(issue)
        logger.debug("Memory backend initialized", issue_count=len(self.issues))

    def put_issue(self, issue: IssueSummary) -> IssueSummary:
        """Add or replace an issue."""
        self.issues[issue.id] = issue
        return issue

    def remove_issue(self, issue_id: str) -> None:
        """Remove an issue, leaving any edges that reference it in place."""
        self.issues.pop(issue_id, None)

    def insert(self, edge: DependencyEdge) -> None:
        if edge.source_issue_id == edge.target_issue_id:
            raise SelfReferenceError(edge.source_issue_id)
        for existing in self.edges.values():
            if (existing.source_issue_id, existing.target_issue_id, existing.dependency_type) == (
                edge.source_issue_id,
                edge.target_issue_id,
                edge.dependency_type,
            ):
                raise DuplicateConflict(edge.source_issue_id, edge.target_issue_id, edge.dependency_type)
        self.edges[edge.id] = edge

    def delete_by_id(self, edge_id: str) -> bool:
        return self.edges.pop(edge_id, None) is not None

    def find_by_source(self, issue_id: str) -> list[DependencyEdge]:
        return [edge for edge in self.edges.values() if edge.source_issue_id == issue_id]

    def find_by_target(self, issue_id: str) -> list[DependencyEdge]:
        return [edge for edge in self.edges.values() if edge.target_issue_id == issue_id]

    def find_by_type(self, dependency_type: str) -> list[DependencyEdge]:
        return [edge for edge in self.edges.values() if edge.dependency_type == dependency_type]

    def get_issue_summary(self, issue_id: str) -> IssueSummary | None:
        return self.issues.get(issue_id)

    def list_active_issues_by_project(self, project_id: str | None = None) -> list[IssueSummary]:
        return [
            issue
            for issue in self.issues.values()
            if issue.is_active and (project_id is None or issue.project_id == project_id)
        ]
