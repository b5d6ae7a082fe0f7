"""Issue commands for seeding the local issue database."""

from typing import Literal

from cyclopts import App

issue_app = App(name="issue", help="Create and update issues in the local database")

Status = Literal["backlog", "todo", "in_progress", "in_review", "done", "cancelled"]
Priority = Literal["urgent", "high", "medium", "low", "none"]


@issue_app.command
def create(
    identifier: str,
    title: str,
    *,
    project: str,
    status: Status = "backlog",
    priority: Priority = "none",
    estimate: float | None = None,
) -> None:
    """Create an issue.

    Args:
        identifier: Human-readable identifier, e.g. PROJ-12
        title: Issue title
        project: Project the issue belongs to
        status: Initial status
        priority: Priority
        estimate: Effort estimate
    """
    from issue_deps.cli import get_backend

    with get_backend() as backend:
        issue = backend.create_issue(identifier, title, project, status=status, priority=priority, estimate=estimate)
    print(f"Created issue {issue.identifier} ({issue.id}): {issue.title}")


@issue_app.command(name="list")
def list_issues(project: str | None = None) -> None:
    """List issues, including finished ones."""
    from issue_deps.cli import get_backend

    with get_backend() as backend:
        issues = backend.list_issues(project)

    print(f"Found {len(issues)} issue(s):\n")
    for issue in issues:
        marker = "●" if issue.is_active else "○"
        print(f"{marker} {issue.identifier}: {issue.title} [{issue.status}]")


@issue_app.command
def status(issue: str, new_status: Status) -> None:
    """Change the status of an issue."""
    from issue_deps.cli import get_backend, reported_errors, resolve

    with get_backend() as backend, reported_errors():
        updated = backend.update_issue_status(resolve(backend, issue), new_status)
    print(f"{updated.identifier} is now {updated.status}")


@issue_app.command
def delete(issue: str) -> None:
    """Delete an issue together with its dependencies."""
    from issue_deps.cli import get_backend, reported_errors, resolve

    with get_backend() as backend, reported_errors():
        backend.delete_issue(resolve(backend, issue))
    print(f"Deleted issue {issue}")
