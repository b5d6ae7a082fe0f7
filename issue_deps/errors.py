"""Errors raised by the dependency engine and its stores."""


class DependencyError(ValueError):
    """Base class for rejected dependency operations."""


class SelfReferenceError(DependencyError):
    """An issue cannot depend on itself."""

    def __init__(self, issue_id: str) -> None:
        self.issue_id = issue_id
        super().__init__(f"Cannot create dependency from issue {issue_id} to itself")


class DuplicateConflict(DependencyError):
    """An edge with the same source, target and type already exists."""

    def __init__(self, source_id: str, target_id: str, dependency_type: str) -> None:
        self.source_id = source_id
        self.target_id = target_id
        self.dependency_type = dependency_type
        super().__init__(f"Dependency already exists: {source_id} --[{dependency_type}]--> {target_id}")


class CycleConflict(DependencyError):
    """Adding a blocks edge would create a circular dependency."""

    def __init__(self, source_id: str, target_id: str) -> None:
        self.source_id = source_id
        self.target_id = target_id
        super().__init__(f"Cannot make {source_id} block {target_id}: would create a circular dependency")


class NotFoundError(DependencyError):
    """A referenced issue or edge does not exist."""

    def __init__(self, kind: str, object_id: str) -> None:
        self.kind = kind
        self.object_id = object_id
        super().__init__(f"{kind.capitalize()} not found: {object_id}")
