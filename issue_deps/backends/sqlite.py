"""SQLite backend implementation."""

import sqlite3
import uuid
from datetime import datetime
from pathlib import Path

import structlog

from issue_deps.backend import EdgeStore, IssueLookup
from issue_deps.errors import DuplicateConflict, NotFoundError, SelfReferenceError
from issue_deps.models import ISSUE_PRIORITIES, ISSUE_STATUSES, DependencyEdge, IssueSummary

logger = structlog.get_logger()

SCHEMA = """
CREATE TABLE IF NOT EXISTS issues (
    id TEXT PRIMARY KEY,
    identifier TEXT NOT NULL UNIQUE,
    title TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'backlog',
    priority TEXT NOT NULL DEFAULT 'none',
    estimate REAL,
    project_id TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS issue_dependencies (
    id TEXT PRIMARY KEY,
    source_issue_id TEXT NOT NULL REFERENCES issues(id) ON DELETE CASCADE,
    target_issue_id TEXT NOT NULL REFERENCES issues(id) ON DELETE CASCADE,
    dependency_type TEXT NOT NULL CHECK (dependency_type IN ('blocks', 'relates', 'duplicates')),
    created_at TEXT NOT NULL,
    CHECK (source_issue_id != target_issue_id),
    UNIQUE (source_issue_id, target_issue_id, dependency_type)
);
CREATE INDEX IF NOT EXISTS idx_issues_project ON issues(project_id);
CREATE INDEX IF NOT EXISTS idx_dependencies_source ON issue_dependencies(source_issue_id);
CREATE INDEX IF NOT EXISTS idx_dependencies_target ON issue_dependencies(target_issue_id);
"""

_TERMINAL_SQL = "('done', 'cancelled')"


class SQLiteBackend(EdgeStore, IssueLookup):
    """SQLite-based store of issues and dependency edges."""

    def __init__(self, db_path: str | Path) -> None:
        """Initialize SQLite backend.

        Args:
            db_path: Path to the database file, or ':memory:'
        """
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        logger.debug("Initializing SQLite backend", db_path=self.db_path)
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.executescript(SCHEMA)
        self._conn.commit()
        logger.info("SQLite backend initialized", db_path=self.db_path)

    def close(self) -> None:
        logger.debug("Closing SQLite backend", db_path=self.db_path)
        self._conn.close()

    def __enter__(self) -> "SQLiteBackend":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _row_to_issue(self, row: sqlite3.Row) -> IssueSummary:
        return IssueSummary(
            id=row["id"],
            identifier=row["identifier"],
            title=row["title"],
            status=row["status"],
            priority=row["priority"],
            estimate=row["estimate"],
            project_id=row["project_id"],
        )

    def _row_to_edge(self, row: sqlite3.Row) -> DependencyEdge:
        return DependencyEdge(
            id=row["id"],
            source_issue_id=row["source_issue_id"],
            target_issue_id=row["target_issue_id"],
            dependency_type=row["dependency_type"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _select_edges(self, where: str, value: str) -> list[DependencyEdge]:
        rows = self._conn.execute(
            f"SELECT * FROM issue_dependencies WHERE {where} = ? ORDER BY rowid", (value,)
        ).fetchall()
        logger.debug("Selected edges", where=where, value=value, count=len(rows))
        return [self._row_to_edge(row) for row in rows]

    # --- Edge store ---

    def insert(self, edge: DependencyEdge) -> None:
        logger.debug("Inserting edge", edge_id=edge.id)
        try:
            self._conn.execute(
                "INSERT INTO issue_dependencies (id, source_issue_id, target_issue_id, dependency_type, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    edge.id,
                    edge.source_issue_id,
                    edge.target_issue_id,
                    edge.dependency_type,
                    edge.created_at.isoformat(),
                ),
            )
            self._conn.commit()
        except sqlite3.IntegrityError as e:
            self._conn.rollback()
            message = str(e)
            logger.error("Edge insert violated a constraint", edge_id=edge.id, error=message)
            if "UNIQUE" in message and "issue_dependencies.id" not in message:
                raise DuplicateConflict(edge.source_issue_id, edge.target_issue_id, edge.dependency_type) from e
            if "CHECK" in message and edge.source_issue_id == edge.target_issue_id:
                raise SelfReferenceError(edge.source_issue_id) from e
            raise

    def delete_by_id(self, edge_id: str) -> bool:
        cursor = self._conn.execute("DELETE FROM issue_dependencies WHERE id = ?", (edge_id,))
        self._conn.commit()
        return cursor.rowcount > 0

    def find_by_source(self, issue_id: str) -> list[DependencyEdge]:
        return self._select_edges("source_issue_id", issue_id)

    def find_by_target(self, issue_id: str) -> list[DependencyEdge]:
        return self._select_edges("target_issue_id", issue_id)

    def find_by_type(self, dependency_type: str) -> list[DependencyEdge]:
        return self._select_edges("dependency_type", dependency_type)

    # --- Issue lookup ---

    def get_issue_summary(self, issue_id: str) -> IssueSummary | None:
        row = self._conn.execute("SELECT * FROM issues WHERE id = ?", (issue_id,)).fetchone()
        return self._row_to_issue(row) if row else None

    def list_active_issues_by_project(self, project_id: str | None = None) -> list[IssueSummary]:
        sql = f"SELECT * FROM issues WHERE status NOT IN {_TERMINAL_SQL}"
        params: tuple[str, ...] = ()
        if project_id is not None:
            sql += " AND project_id = ?"
            params = (project_id,)
        rows = self._conn.execute(sql + " ORDER BY rowid", params).fetchall()
        return [self._row_to_issue(row) for row in rows]

    # --- Issue seeding ---

    def create_issue(
        self,
        identifier: str,
        title: str,
        project_id: str,
        status: str = "backlog",
        priority: str = "none",
        estimate: float | None = None,
    ) -> IssueSummary:
        """Create an issue row."""
        if status not in ISSUE_STATUSES:
            raise ValueError(f"Unknown status: '{status}'. Supported statuses: {', '.join(ISSUE_STATUSES)}")
        if priority not in ISSUE_PRIORITIES:
            raise ValueError(f"Unknown priority: '{priority}'. Supported priorities: {', '.join(ISSUE_PRIORITIES)}")

        issue = IssueSummary(
            id=uuid.uuid4().hex[:16],
            identifier=identifier,
            title=title,
            status=status,
            priority=priority,
            estimate=estimate,
            project_id=project_id,
        )
        logger.info("Creating issue", identifier=identifier, project_id=project_id)
        self._conn.execute(
            "INSERT INTO issues (id, identifier, title, status, priority, estimate, project_id) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (issue.id, issue.identifier, issue.title, issue.status, issue.priority, issue.estimate, issue.project_id),
        )
        self._conn.commit()
        return issue

    def update_issue_status(self, issue_id: str, status: str) -> IssueSummary:
        """Change the status of an issue."""
        if status not in ISSUE_STATUSES:
            raise ValueError(f"Unknown status: '{status}'. Supported statuses: {', '.join(ISSUE_STATUSES)}")
        logger.info("Updating issue status", issue_id=issue_id, status=status)
        cursor = self._conn.execute("UPDATE issues SET status = ? WHERE id = ?", (status, issue_id))
        self._conn.commit()
        issue = self.get_issue_summary(issue_id) if cursor.rowcount else None
        if issue is None:
            raise NotFoundError("issue", issue_id)
        return issue

    def delete_issue(self, issue_id: str) -> None:
        """Delete an issue and, through the foreign keys, its edges."""
        logger.info("Deleting issue", issue_id=issue_id)
        cursor = self._conn.execute("DELETE FROM issues WHERE id = ?", (issue_id,))
        self._conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError("issue", issue_id)

    def list_issues(self, project_id: str | None = None) -> list[IssueSummary]:
        """List all issues, including terminal ones."""
        if project_id is None:
            rows = self._conn.execute("SELECT * FROM issues ORDER BY rowid").fetchall()
        else:
            rows = self._conn.execute(
                "SELECT * FROM issues WHERE project_id = ? ORDER BY rowid", (project_id,)
            ).fetchall()
        return [self._row_to_issue(row) for row in rows]

    def resolve_issue_id(self, ref: str) -> str | None:
        """Resolve an issue ID or human-readable identifier to an issue ID."""
        row = self._conn.execute("SELECT id FROM issues WHERE id = ?", (ref,)).fetchone()
        if row is None:
            row = self._conn.execute("SELECT id FROM issues WHERE identifier = ?", (ref,)).fetchone()
        return row["id"] if row else None
