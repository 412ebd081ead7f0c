"""Error taxonomy shared by every provider adapter.

Hierarchy:
    GitIssuesError
    ├── InvalidArgumentError
    │   └── MissingArgumentError
    ├── MissingCredentialsError
    ├── ProviderApiError
    │   ├── AuthenticationError
    │   ├── IssueNotFoundError
    │   └── RepositoryNotFoundError
    ├── ResponseParseError
    ├── NotSupportedError
    └── UnsupportedProviderError

Network-level failures are not wrapped: ``httpx.TransportError`` (re-exported
here as ``TransportError``) reaches the caller as raised by the client.
"""

from httpx import TransportError

__all__ = [
    "AuthenticationError",
    "GitIssuesError",
    "InvalidArgumentError",
    "IssueNotFoundError",
    "MissingArgumentError",
    "MissingCredentialsError",
    "NotSupportedError",
    "ProviderApiError",
    "RepositoryNotFoundError",
    "ResponseParseError",
    "TransportError",
    "UnsupportedProviderError",
]


class GitIssuesError(Exception):
    """Base class for all gitissues errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidArgumentError(GitIssuesError, ValueError):
    """Caller input is unusable: empty title, no update fields, wrong provider tag."""


class MissingArgumentError(InvalidArgumentError):
    """A required argument was None."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Argument '{name}' is required.")


class MissingCredentialsError(GitIssuesError):
    """Configuration lacks the credentials a provider needs."""

    def __init__(self, message: str, keys: tuple[str, ...] = ()) -> None:
        self.keys = keys
        super().__init__(message)


class ProviderApiError(GitIssuesError):
    """The provider answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        body: str,
        operation: str,
        url: str,
    ) -> None:
        self.status_code = status_code
        self.body = body
        self.operation = operation
        self.url = url
        super().__init__(message)


class AuthenticationError(ProviderApiError):
    """401/403 from the provider."""


class IssueNotFoundError(ProviderApiError):
    """404 while addressing a specific issue."""


class RepositoryNotFoundError(ProviderApiError):
    """404 while addressing a repository."""


class ResponseParseError(GitIssuesError):
    """A 2xx body was not valid JSON or did not match the expected schema."""


class NotSupportedError(GitIssuesError, NotImplementedError):
    """The operation is not available for this provider."""


class UnsupportedProviderError(GitIssuesError):
    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"Unsupported provider: '{provider}'. Supported providers are 'github', 'bitbucket'.")
