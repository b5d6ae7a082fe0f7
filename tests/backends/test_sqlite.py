"""Tests for SQLite backend."""

import sqlite3
from pathlib import Path

import pytest

from issue_deps.backends import SQLiteBackend
from issue_deps.engine import DependencyEngine
from issue_deps.errors import CycleConflict, DuplicateConflict, NotFoundError, SelfReferenceError
from issue_deps.models import DependencyEdge


@pytest.fixture
def sqlite_backend() -> SQLiteBackend:
    """Create an in-memory SQLite backend with a small project."""
    backend = SQLiteBackend(":memory:")
    backend.create_issue("PROJ-1", "Design schema", "proj", status="in_progress", estimate=3)
    backend.create_issue("PROJ-2", "Write migrations", "proj", status="todo", estimate=2)
    backend.create_issue("PROJ-3", "Ship API", "proj", status="backlog")
    backend.create_issue("OPS-1", "Provision database", "ops", status="todo", priority="high")
    return backend


def issue_id(backend: SQLiteBackend, identifier: str) -> str:
    resolved = backend.resolve_issue_id(identifier)
    assert resolved is not None
    return resolved


def test_create_and_read_issue(sqlite_backend: SQLiteBackend) -> None:
    """Test issues round through the issue lookup interface."""
    issue = sqlite_backend.get_issue_summary(issue_id(sqlite_backend, "PROJ-1"))
    assert issue is not None
    assert issue.identifier == "PROJ-1"
    assert issue.title == "Design schema"
    assert issue.status == "in_progress"
    assert issue.estimate == 3
    assert issue.project_id == "proj"
    assert sqlite_backend.get_issue_summary("missing") is None


def test_create_issue_validates_status(sqlite_backend: SQLiteBackend) -> None:
    """Test unknown statuses and priorities are rejected."""
    with pytest.raises(ValueError, match="Unknown status"):
        sqlite_backend.create_issue("PROJ-9", "Bad", "proj", status="open")
    with pytest.raises(ValueError, match="Unknown priority"):
        sqlite_backend.create_issue("PROJ-9", "Bad", "proj", priority="p0")


def test_list_active_issues_by_project(sqlite_backend: SQLiteBackend) -> None:
    """Test terminal issues are left out of active listings."""
    sqlite_backend.update_issue_status(issue_id(sqlite_backend, "PROJ-2"), "done")

    active = sqlite_backend.list_active_issues_by_project("proj")
    assert [i.identifier for i in active] == ["PROJ-1", "PROJ-3"]
    assert len(sqlite_backend.list_active_issues_by_project()) == 3
    assert len(sqlite_backend.list_issues("proj")) == 3


def test_update_missing_issue(sqlite_backend: SQLiteBackend) -> None:
    """Test updating or deleting an unknown issue raises NotFoundError."""
    with pytest.raises(NotFoundError):
        sqlite_backend.update_issue_status("missing", "done")
    with pytest.raises(NotFoundError):
        sqlite_backend.delete_issue("missing")


def test_edge_queries(sqlite_backend: SQLiteBackend) -> None:
    """Test edges are stored and queried in creation order."""
    p1, p2, p3 = (issue_id(sqlite_backend, f"PROJ-{n}") for n in (1, 2, 3))
    engine = DependencyEngine(edges=sqlite_backend, issues=sqlite_backend)
    first = engine.add_dependency(p1, p2, "blocks")
    second = engine.add_dependency(p1, p3, "relates")

    assert [e.id for e in sqlite_backend.find_by_source(p1)] == [first, second]
    assert [e.id for e in sqlite_backend.find_by_target(p2)] == [first]
    assert [e.id for e in sqlite_backend.find_by_type("relates")] == [second]
    stored = sqlite_backend.find_by_source(p1)[0]
    assert stored.created_at.tzinfo is not None


def test_constraints_back_up_the_engine(sqlite_backend: SQLiteBackend) -> None:
    """Test duplicate and self edges written directly are refused by the table constraints."""
    p1, p2 = issue_id(sqlite_backend, "PROJ-1"), issue_id(sqlite_backend, "PROJ-2")
    sqlite_backend.insert(DependencyEdge(id="e1", source_issue_id=p1, target_issue_id=p2, dependency_type="blocks"))

    with pytest.raises(DuplicateConflict):
        sqlite_backend.insert(
            DependencyEdge(id="e2", source_issue_id=p1, target_issue_id=p2, dependency_type="blocks")
        )
    with pytest.raises(SelfReferenceError):
        sqlite_backend.insert(
            DependencyEdge(id="e3", source_issue_id=p1, target_issue_id=p1, dependency_type="relates")
        )
    assert len(sqlite_backend.find_by_type("blocks")) == 1


def test_delete_by_id(sqlite_backend: SQLiteBackend) -> None:
    """Test deleting edges by ID."""
    p1, p2 = issue_id(sqlite_backend, "PROJ-1"), issue_id(sqlite_backend, "PROJ-2")
    sqlite_backend.insert(DependencyEdge(id="e1", source_issue_id=p1, target_issue_id=p2, dependency_type="blocks"))
    assert sqlite_backend.delete_by_id("e1") is True
    assert sqlite_backend.delete_by_id("e1") is False


def test_deleting_issue_cascades_to_edges(sqlite_backend: SQLiteBackend) -> None:
    """Test removing an issue removes the edges that reference it."""
    p1, p2 = issue_id(sqlite_backend, "PROJ-1"), issue_id(sqlite_backend, "PROJ-2")
    engine = DependencyEngine(edges=sqlite_backend, issues=sqlite_backend)
    engine.add_dependency(p1, p2, "blocks")

    sqlite_backend.delete_issue(p2)

    assert sqlite_backend.find_by_source(p1) == []
    assert engine.get_dependencies(p1).blocks == []


def test_engine_over_sqlite(sqlite_backend: SQLiteBackend) -> None:
    """Test the full engine workflow against SQLite."""
    p1, p2, p3 = (issue_id(sqlite_backend, f"PROJ-{n}") for n in (1, 2, 3))
    ops = issue_id(sqlite_backend, "OPS-1")
    engine = DependencyEngine(edges=sqlite_backend, issues=sqlite_backend)

    engine.add_dependency(p1, p2, "blocks")
    engine.add_dependency(p2, p3, "blocks")
    engine.add_dependency(ops, p1, "blocks")
    with pytest.raises(CycleConflict):
        engine.add_dependency(p3, ops, "blocks")

    assert engine.is_blocked(p2)
    assert [entry.issue.identifier for entry in engine.get_blocked_issues("proj")] == ["PROJ-2", "PROJ-3", "PROJ-1"]
    assert [i.identifier for i in engine.get_actionable_issues()] == ["OPS-1"]

    result = engine.get_critical_path("proj")
    assert result.path == ["PROJ-1", "PROJ-2", "PROJ-3"]
    assert result.total_estimate == 5

    sqlite_backend.update_issue_status(ops, "done")
    assert [i.identifier for i in engine.get_actionable_issues("proj")] == ["PROJ-1"]


def test_database_file_is_created(tmp_path: Path) -> None:
    """Test a file-backed database persists across instances."""
    db_path = tmp_path / "nested" / "issues.db"
    backend = SQLiteBackend(db_path)
    backend.create_issue("PROJ-1", "Persisted", "proj")
    backend.close()

    reopened = SQLiteBackend(db_path)
    assert [i.identifier for i in reopened.list_issues()] == ["PROJ-1"]
    reopened.close()


def test_resolve_prefers_exact_id(sqlite_backend: SQLiteBackend) -> None:
    """Test an issue ID wins over another issue whose identifier has the same text."""
    p1 = issue_id(sqlite_backend, "PROJ-1")
    shadow = sqlite_backend.create_issue(p1, "Identifier equal to an ID", "proj")

    assert sqlite_backend.resolve_issue_id(p1) == p1
    assert sqlite_backend.resolve_issue_id("PROJ-1") == p1
    assert sqlite_backend.resolve_issue_id(shadow.id) == shadow.id
    assert sqlite_backend.resolve_issue_id("PROJ-404") is None


def test_update_status_returns_fresh_issue(sqlite_backend: SQLiteBackend) -> None:
    """Test a status change returns the issue as stored."""
    updated = sqlite_backend.update_issue_status(issue_id(sqlite_backend, "PROJ-3"), "in_review")
    assert updated.identifier == "PROJ-3"
    assert updated.status == "in_review"


def test_backend_closes_as_context_manager(tmp_path: Path) -> None:
    """Test leaving a with block closes the connection."""
    with SQLiteBackend(tmp_path / "issues.db") as backend:
        backend.create_issue("PROJ-1", "Scoped", "proj")

    with pytest.raises(sqlite3.ProgrammingError):
        backend.list_issues()
