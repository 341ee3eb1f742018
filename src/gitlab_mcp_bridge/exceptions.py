"""GitLab bridge exceptions."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager

import httpx


class GitLabError(Exception):
    """Base exception for GitLab bridge operations."""


class GitLabApiError(GitLabError):
    """Raised when the GitLab API returns a non-success response."""

    def __init__(self, status_code: int, status_text: str, body: str = "") -> None:
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        super().__init__(f"GitLab API Error {status_code} {status_text}: {body}")


class GitLabAuthError(GitLabApiError):
    """Raised on 401/403 authentication failures."""

    def __init__(self, status_code: int, body: str = "") -> None:
        status_text = "Unauthorized" if status_code == 401 else "Forbidden"
        super().__init__(status_code, status_text, body)


class GitLabNotFoundError(GitLabApiError):
    """Raised on 404 responses."""

    def __init__(self, body: str = "") -> None:
        super().__init__(404, "Not Found", body)


class GitLabWriteDisabledError(GitLabError):
    """Raised when a write operation is attempted in read-only mode."""

    def __init__(self) -> None:
        super().__init__("Write operations are disabled (GITLAB_READ_ONLY=true)")


class GitLabOperationError(GitLabError):
    """An upstream failure annotated with the operation that triggered it."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation}: {cause}")


class GitLabCompositeError(GitLabError):
    """Several concurrent sub-operations failed; all of them are reported."""

    def __init__(self, errors: Iterable[BaseException]) -> None:
        self.errors = list(errors)
        super().__init__("\n".join(str(e) for e in self.errors))


class InvalidArgumentError(GitLabError, ValueError):
    """Tool arguments violate the declared argument descriptor."""

    def __init__(self, *problems: str) -> None:
        self.problems = list(problems)
        super().__init__("\n".join(self.problems))


class InvalidTypeError(GitLabError, TypeError):
    """A value did not have the shape its consumer expects."""


class DescriptorError(GitLabError):
    """An argument descriptor cannot be turned into a tool schema."""

    def __init__(self, name: str, problems: list[str]) -> None:
        self.name = name
        self.problems = problems
        super().__init__(f"invalid argument descriptor {name}:\n" + "\n".join(problems))


class PolicyRefusal(GitLabError):
    """A user-visible refusal returned to the caller as a tool error result."""


@contextmanager
def operation(name: str) -> Iterator[None]:
    """Re-raise upstream failures inside the block with *name* as context."""
    try:
        yield
    except (GitLabApiError, GitLabOperationError, httpx.HTTPError) as e:
        raise GitLabOperationError(name, e) from e
