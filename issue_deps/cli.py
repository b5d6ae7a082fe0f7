"""CLI for issue-deps."""

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Annotated, Literal

import structlog
from cyclopts import App, Parameter

from issue_deps.backends import SQLiteBackend
from issue_deps.config import DEFAULT_BACKEND, get_config
from issue_deps.config_commands import config_app
from issue_deps.engine import DependencyEngine
from issue_deps.errors import DependencyError
from issue_deps.issue_commands import issue_app
from issue_deps.models import DependencyWithIssue

logger = structlog.get_logger()

app = App(
    name="deps",
    help="issue-deps - Track blocking, related and duplicate issues",
)

app.command(issue_app)
app.command(config_app)


def configure_logging(log_level: str) -> None:
    """Configure structlog with the specified log level."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(min_level=log_level.lower()))


def get_backend() -> SQLiteBackend:
    """Get the configured backend."""
    config = get_config()
    backend_type = config.get("backend", DEFAULT_BACKEND)

    if backend_type == "sqlite":
        return SQLiteBackend(config.db_path())
    raise ValueError(f"Unknown backend: {backend_type}")


@contextmanager
def open_engine() -> Iterator[tuple[SQLiteBackend, DependencyEngine]]:
    """Open the configured backend for one command and close it afterwards."""
    with get_backend() as backend:
        yield backend, DependencyEngine(edges=backend, issues=backend)


def resolve(backend: SQLiteBackend, ref: str) -> str:
    """Accept either an issue ID or its identifier (e.g. PROJ-12)."""
    return backend.resolve_issue_id(ref) or ref


@contextmanager
def reported_errors() -> Iterator[None]:
    """Turn rejected operations into an error message and exit status 1."""
    try:
        yield
    except DependencyError as e:
        logger.debug("Command rejected", error=str(e), error_type=type(e).__name__)
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1) from e


def _print_section(title: str, items: list[DependencyWithIssue]) -> None:
    if not items:
        return
    print(f"{title}:")
    for item in items:
        issue = item.issue
        print(f"  - {issue.identifier} {issue.title} ({issue.status}) [edge {item.id}]")
    print()


@app.command
def add(
    source: str,
    target: str,
    type: Literal["blocks", "relates", "duplicates"] = "blocks",
) -> None:
    """Add a dependency from SOURCE to TARGET.

    Args:
        source: Issue that blocks, relates to or duplicates the target
        target: Issue on the other end of the dependency
        type: Dependency type
    """
    with open_engine() as (backend, engine), reported_errors():
        edge_id = engine.add_dependency(resolve(backend, source), resolve(backend, target), type)
    print(f"Added dependency {edge_id}: {source} --[{type}]--> {target}")


@app.command
def remove(edge_id: str) -> None:
    """Remove a dependency by edge ID."""
    with open_engine() as (_, engine):
        engine.remove_dependency(edge_id)
    print(f"Removed dependency {edge_id}")


@app.command
def show(issue: str) -> None:
    """Show the dependencies of an issue."""
    with open_engine() as (backend, engine):
        deps = engine.get_dependencies(resolve(backend, issue))

    sections = [
        ("Blocks", deps.blocks),
        ("Blocked By", deps.blocked_by),
        ("Relates To", deps.relates_to),
        ("Duplicates", deps.duplicates),
    ]
    if not any(items for _, items in sections):
        print(f"No dependencies found for issue {issue}")
        return

    print(f"Dependencies of {issue}:\n")
    for title, items in sections:
        _print_section(title, items)


@app.command
def is_blocked(issue: str) -> None:
    """Tell whether an issue has an active blocker."""
    with open_engine() as (backend, engine):
        blocked = engine.is_blocked(resolve(backend, issue))
    print(f"{issue} is {'blocked' if blocked else 'not blocked'}")


@app.command
def blocked(project: str | None = None) -> None:
    """List issues that have active blockers."""
    with open_engine() as (_, engine):
        entries = engine.get_blocked_issues(project)

    print(f"Found {len(entries)} blocked issue(s):\n")
    for entry in entries:
        blockers = ", ".join(f"{b.identifier} ({b.status})" for b in entry.blocked_by)
        print(f"● {entry.issue.identifier}: {entry.issue.title} <- {blockers}")


@app.command
def actionable(project: str | None = None, status: str | None = None) -> None:
    """List open issues that nothing active is blocking."""
    with open_engine() as (_, engine):
        issues = engine.get_actionable_issues(project, status)

    print(f"Found {len(issues)} actionable issue(s):\n")
    for issue in issues:
        print(f"○ {issue.identifier}: {issue.title} [{issue.status}, {issue.priority}]")


@app.command
def critical_path(project: str) -> None:
    """Show the longest chain of blocking dependencies in a project."""
    with open_engine() as (_, engine):
        result = engine.get_critical_path(project)

    if not result.path:
        print(f"No active issues in project {project}")
        return

    print(" -> ".join(result.path))
    print(f"\nLength: {len(result.path)} issue(s), total estimate: {result.total_estimate:g}")


@app.meta.default
def main(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    log_level: Literal["debug", "info", "warning", "error", "critical"] = "critical",
) -> None:
    """Main entry point with global options."""
    configure_logging(log_level)
    app(tokens)


def run() -> None:
    app.meta()


if __name__ == "__main__":
    run()
