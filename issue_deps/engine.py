"""Dependency graph engine: cycle-safe insertion, classification and critical path."""

import uuid
from collections import deque
from datetime import datetime, timezone

import structlog

from issue_deps.backend import EdgeStore, IssueLookup
from issue_deps.errors import CycleConflict, DuplicateConflict, NotFoundError, SelfReferenceError
from issue_deps.models import (
    DEPENDENCY_TYPES,
    BlockedIssue,
    BlockerSummary,
    CriticalPath,
    DependencyEdge,
    DependencyWithIssue,
    IssueDependencies,
    IssueSummary,
)

logger = structlog.get_logger()


def new_edge_id() -> str:
    return uuid.uuid4().hex[:16]


class DependencyEngine:
    """Dependency graph operations over an edge store and an issue lookup.

    The engine holds no state of its own between calls. Every read and write
    goes through the injected collaborators.
    """

    def __init__(self, edges: EdgeStore, issues: IssueLookup) -> None:
        """Initialize the engine.

        Args:
            edges: Store that persists dependency edges
            issues: Read access to issue summaries
        """
        self.edges = edges
        self.issues = issues

    def _require_issue(self, issue_id: str) -> IssueSummary:
        issue = self.issues.get_issue_summary(issue_id)
        if issue is None:
            logger.warning("Issue not found", issue_id=issue_id)
            raise NotFoundError("issue", issue_id)
        return issue

    def would_create_cycle(self, source_id: str, target_id: str) -> bool:
        """Check whether adding source blocks target would close a cycle.

        Walks forward from target along existing blocks edges with an explicit
        stack; each issue is expanded at most once.
        """
        visited: set[str] = set()
        stack = [target_id]

        while stack:
            current = stack.pop()
            if current == source_id:
                return True
            if current in visited:
                continue
            visited.add(current)

            for edge in self.edges.find_by_source(current):
                if edge.dependency_type == "blocks" and edge.target_issue_id not in visited:
                    stack.append(edge.target_issue_id)

        logger.debug("No cycle found", source_id=source_id, target_id=target_id, visited=len(visited))
        return False

    def add_dependency(self, source_id: str, target_id: str, dependency_type: str) -> str:
        """Add a dependency from source to target.

        Args:
            source_id: Issue the edge starts from (the blocker for blocks edges)
            target_id: Issue the edge points to
            dependency_type: One of 'blocks', 'relates', 'duplicates'

        Returns:
            ID of the new edge

        Raises:
            ValueError: If the dependency type is unknown
            SelfReferenceError: If source and target are the same issue
            NotFoundError: If either issue does not exist
            CycleConflict: If a blocks edge would create a circular dependency
            DuplicateConflict: If the same edge already exists
        """
        logger.info("Adding dependency", source_id=source_id, target_id=target_id, dependency_type=dependency_type)

        if dependency_type not in DEPENDENCY_TYPES:
            logger.warning("Unsupported dependency type", dependency_type=dependency_type)
            raise ValueError(
                f"Unsupported dependency type: '{dependency_type}'. Supported types: {', '.join(DEPENDENCY_TYPES)}"
            )

        if source_id == target_id:
            logger.warning("Rejected self dependency", issue_id=source_id)
            raise SelfReferenceError(source_id)

        self._require_issue(source_id)
        self._require_issue(target_id)

        if dependency_type == "blocks" and self.would_create_cycle(source_id, target_id):
            logger.warning("Rejected circular dependency", source_id=source_id, target_id=target_id)
            raise CycleConflict(source_id, target_id)

        for edge in self.edges.find_by_source(source_id):
            if edge.target_issue_id == target_id and edge.dependency_type == dependency_type:
                logger.warning("Rejected duplicate dependency", edge_id=edge.id)
                raise DuplicateConflict(source_id, target_id, dependency_type)

        edge = DependencyEdge(
            id=new_edge_id(),
            source_issue_id=source_id,
            target_issue_id=target_id,
            dependency_type=dependency_type,
            created_at=datetime.now(timezone.utc),
        )
        self.edges.insert(edge)
        logger.info("Dependency added", edge_id=edge.id)
        return edge.id

    def remove_dependency(self, edge_id: str) -> None:
        """Remove a dependency by edge ID. Removing an unknown ID is a no-op."""
        logger.info("Removing dependency", edge_id=edge_id)
        if self.edges.delete_by_id(edge_id):
            logger.info("Dependency removed", edge_id=edge_id)
        else:
            logger.debug("Dependency already absent", edge_id=edge_id)

    def get_dependencies(self, issue_id: str) -> IssueDependencies:
        """Get all dependencies of an issue, from its point of view.

        Relations and duplicates are reported from both ends. Blocks edges are
        split into the issues this one blocks and the issues blocking it.
        Edges whose other endpoint no longer exists are skipped.
        """
        logger.info("Getting dependencies", issue_id=issue_id)
        result = IssueDependencies()

        for edge in self.edges.find_by_source(issue_id):
            other = self.issues.get_issue_summary(edge.target_issue_id)
            if other is None:
                logger.debug("Skipping orphan edge", edge_id=edge.id, missing_issue_id=edge.target_issue_id)
                continue
            item = DependencyWithIssue(id=edge.id, dependency_type=edge.dependency_type, issue=other)
            if edge.dependency_type == "blocks":
                result.blocks.append(item)
            elif edge.dependency_type == "relates":
                result.relates_to.append(item)
            elif edge.dependency_type == "duplicates":
                result.duplicates.append(item)

        for edge in self.edges.find_by_target(issue_id):
            other = self.issues.get_issue_summary(edge.source_issue_id)
            if other is None:
                logger.debug("Skipping orphan edge", edge_id=edge.id, missing_issue_id=edge.source_issue_id)
                continue
            item = DependencyWithIssue(id=edge.id, dependency_type=edge.dependency_type, issue=other)
            if edge.dependency_type == "blocks":
                result.blocked_by.append(item)
            elif edge.dependency_type == "relates":
                result.relates_to.append(item)
            elif edge.dependency_type == "duplicates":
                result.duplicates.append(item)

        logger.debug(
            "Dependencies retrieved",
            issue_id=issue_id,
            blocks_count=len(result.blocks),
            blocked_by_count=len(result.blocked_by),
            relates_to_count=len(result.relates_to),
            duplicates_count=len(result.duplicates),
        )
        return result

    def is_blocked(self, issue_id: str) -> bool:
        """Return True if any active issue blocks the given issue."""
        for edge in self.edges.find_by_target(issue_id):
            if edge.dependency_type != "blocks":
                continue
            blocker = self.issues.get_issue_summary(edge.source_issue_id)
            if blocker is not None and blocker.is_active:
                return True
        return False

    def _blocking_pairs(self) -> list[tuple[str, IssueSummary, IssueSummary | None]]:
        """Resolve every blocks edge with an active blocker.

        Returns (blocked issue ID, blocker, blocked issue or None if missing).
        """
        cache: dict[str, IssueSummary | None] = {}

        def lookup(issue_id: str) -> IssueSummary | None:
            if issue_id not in cache:
                cache[issue_id] = self.issues.get_issue_summary(issue_id)
            return cache[issue_id]

        pairs = []
        for edge in self.edges.find_by_type("blocks"):
            blocker = lookup(edge.source_issue_id)
            if blocker is None or not blocker.is_active:
                continue
            pairs.append((edge.target_issue_id, blocker, lookup(edge.target_issue_id)))
        return pairs

    def get_blocked_issues(self, project_id: str | None = None) -> list[BlockedIssue]:
        """Get active issues that have at least one active blocker.

        Args:
            project_id: Only report blocked issues of this project

        Returns:
            One entry per blocked issue, listing its active blockers
        """
        logger.info("Getting blocked issues", project_id=project_id)
        grouped: dict[str, BlockedIssue] = {}

        for blocked_id, blocker, blocked in self._blocking_pairs():
            if blocked is None or not blocked.is_active:
                continue
            if project_id and blocked.project_id != project_id:
                continue
            entry = grouped.setdefault(blocked_id, BlockedIssue(issue=blocked))
            entry.blocked_by.append(
                BlockerSummary(identifier=blocker.identifier, title=blocker.title, status=blocker.status)
            )

        logger.info("Blocked issues found", count=len(grouped))
        return list(grouped.values())

    def get_actionable_issues(self, project_id: str | None = None, status: str | None = None) -> list[IssueSummary]:
        """Get open issues with no active blocker.

        Blockers are taken from every project, even when results are filtered
        to one.
        """
        logger.info("Getting actionable issues", project_id=project_id, status=status)
        blocked_ids = {blocked_id for blocked_id, _, _ in self._blocking_pairs()}

        issues = self.issues.list_active_issues_by_project(project_id or None)
        actionable = [
            issue
            for issue in issues
            if issue.is_active
            and (not project_id or issue.project_id == project_id)
            and (not status or issue.status == status)
            and issue.id not in blocked_ids
        ]
        logger.info("Actionable issues found", count=len(actionable))
        return actionable

    def get_critical_path(self, project_id: str) -> CriticalPath:
        """Get the longest chain of blocks dependencies among a project's active issues.

        Only edges with both endpoints among those issues are considered. When
        several chains share the maximum length, the one ending at the issue
        that comes first in topological order wins.
        """
        logger.info("Computing critical path", project_id=project_id)
        project_issues = [issue for issue in self.issues.list_active_issues_by_project(project_id) if issue.is_active]
        issue_map = {issue.id: issue for issue in project_issues}

        successors: dict[str, list[str]] = {issue_id: [] for issue_id in issue_map}
        in_degree: dict[str, int] = {issue_id: 0 for issue_id in issue_map}
        for edge in self.edges.find_by_type("blocks"):
            if edge.source_issue_id in issue_map and edge.target_issue_id in issue_map:
                successors[edge.source_issue_id].append(edge.target_issue_id)
                in_degree[edge.target_issue_id] += 1

        order: list[str] = []
        queue = deque(issue_id for issue_id, degree in in_degree.items() if degree == 0)
        while queue:
            current = queue.popleft()
            order.append(current)
            for neighbor in successors[current]:
                in_degree[neighbor] -= 1
                if in_degree[neighbor] == 0:
                    queue.append(neighbor)

        sorted_ids = set(order)
        residue = [issue_id for issue_id in issue_map if issue_id not in sorted_ids]
        if residue:
            logger.warning("Cyclic blocks dependencies in project", project_id=project_id, issue_ids=residue)

        dist = {issue_id: 0 for issue_id in issue_map}
        prev: dict[str, str | None] = {issue_id: None for issue_id in issue_map}
        for u in order:
            for v in successors[u]:
                if v in sorted_ids and dist[v] < dist[u] + 1:
                    dist[v] = dist[u] + 1
                    prev[v] = u

        end: str | None = None
        for issue_id in order + residue:
            if end is None or dist[issue_id] > dist[end]:
                end = issue_id

        path_ids: list[str] = []
        current_id = end
        while current_id is not None:
            path_ids.append(current_id)
            current_id = prev[current_id]
        path_ids.reverse()

        path_issues = [issue_map[issue_id] for issue_id in path_ids]
        result = CriticalPath(path=[issue.identifier for issue in path_issues], issues=path_issues)
        logger.info("Critical path computed", project_id=project_id, length=len(result.path))
        return result
