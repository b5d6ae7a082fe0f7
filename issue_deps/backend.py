"""Collaborator interfaces consumed by the dependency engine."""

from abc import ABC, abstractmethod

from issue_deps.models import DependencyEdge, IssueSummary


class EdgeStore(ABC):
    """Abstract base class for dependency edge persistence."""

    @abstractmethod
    def insert(self, edge: DependencyEdge) -> None:
        """Persist a new edge."""
        pass

    @abstractmethod
    def delete_by_id(self, edge_id: str) -> bool:
        """Delete an edge by ID.

        Returns:
            True if an edge was deleted, False if no edge had that ID
        """
        pass

    @abstractmethod
    def find_by_source(self, issue_id: str) -> list[DependencyEdge]:
        """Return all edges whose source is the given issue."""
        pass

    @abstractmethod
    def find_by_target(self, issue_id: str) -> list[DependencyEdge]:
        """Return all edges whose target is the given issue."""
        pass

    @abstractmethod
    def find_by_type(self, dependency_type: str) -> list[DependencyEdge]:
        """Return all edges of the given type."""
        pass


class IssueLookup(ABC):
    """Abstract base class for read access to issues."""

    @abstractmethod
    def get_issue_summary(self, issue_id: str) -> IssueSummary | None:
        """Return the issue summary, or None if the issue does not exist."""
        pass

    @abstractmethod
    def list_active_issues_by_project(self, project_id: str | None = None) -> list[IssueSummary]:
        """List non-terminal issues of a project, or of all projects when project_id is None."""
        pass
