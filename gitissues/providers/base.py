"""Abstract base class for issue providers."""

from abc import ABC, abstractmethod
from typing import Any, ClassVar
from urllib.parse import quote

import httpx

from gitissues.errors import InvalidArgumentError, MissingArgumentError
from gitissues.models import (
    CreateIssueRequest,
    IssueDetailsResponse,
    ProviderType,
    RepositoryInfo,
    UpdateIssueRequest,
)
from gitissues.settings import ConfigSource

USER_AGENT = "gitissues/0.1.0"


def _segment(value: str) -> str:
    return quote(value, safe="")


class IssueProvider(ABC):
    provider: ClassVar[ProviderType]
    base_url: ClassVar[str]

    def __init__(self, config: ConfigSource, client: httpx.AsyncClient | None = None) -> None:
        if config is None:
            raise MissingArgumentError("config")
        self._config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(headers={"User-Agent": USER_AGENT})

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "IssueProvider":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    @abstractmethod
    async def create_issue(self, repo: RepositoryInfo, request: CreateIssueRequest) -> IssueDetailsResponse: ...

    @abstractmethod
    async def update_issue(
        self,
        repo: RepositoryInfo,
        issue_id: str,
        request: UpdateIssueRequest,
    ) -> IssueDetailsResponse: ...

    @abstractmethod
    async def close_issue(self, repo: RepositoryInfo, issue_id: str) -> IssueDetailsResponse: ...

    # ------------------------------------------------------------------
    # Validation shared by every provider; runs before any network call.
    # ------------------------------------------------------------------

    def _check_repo(self, repo: RepositoryInfo | None) -> RepositoryInfo:
        if repo is None:
            raise MissingArgumentError("repo")
        if repo.provider is not self.provider:
            raise InvalidArgumentError(f"RepositoryInfo must specify {self.provider.label} provider.")
        return repo

    def _check_create(self, repo: RepositoryInfo | None, request: CreateIssueRequest | None) -> None:
        if request is None:
            raise MissingArgumentError("request")
        if not request.title.strip():
            raise InvalidArgumentError("Issue title cannot be empty.")
        self._check_repo(repo)

    def _check_issue_id(self, issue_id: str | None) -> str:
        if issue_id is None:
            raise MissingArgumentError("issue_id")
        if not str(issue_id).strip():
            raise InvalidArgumentError("Issue id cannot be empty.")
        return str(issue_id).strip()

    def _check_update(
        self,
        repo: RepositoryInfo | None,
        issue_id: str | None,
        request: UpdateIssueRequest | None,
    ) -> str:
        issue_id = self._check_issue_id(issue_id)
        if request is None:
            raise MissingArgumentError("request")
        if not request.has_changes:
            raise InvalidArgumentError("At least title or description must be provided for update.")
        self._check_repo(repo)
        return issue_id

    # ------------------------------------------------------------------

    def _path(self, *segments: str) -> str:
        return "/".join(_segment(s) for s in segments)

    async def _send(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        payload: dict[str, Any],
    ) -> httpx.Response:
        # Single attempt; transport errors and cancellation propagate as raised.
        return await self._client.request(method, f"{self.base_url}{path}", headers=headers, json=payload)
