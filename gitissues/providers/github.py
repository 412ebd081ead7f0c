"""GitHub REST API v3 provider."""

from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from gitissues.errors import (
    AuthenticationError,
    IssueNotFoundError,
    MissingCredentialsError,
    ProviderApiError,
    ResponseParseError,
)
from gitissues.models import (
    CreateIssueRequest,
    IssueDetailsResponse,
    ProviderType,
    RepositoryInfo,
    UpdateIssueRequest,
)
from gitissues.providers.base import IssueProvider
from gitissues.settings import GITHUB_STRICT_SCHEMA_KEY, GITHUB_TOKEN_KEY

BASE_URL = "https://api.github.com/"

log = structlog.get_logger(__name__)

_FALSEY = {"false", "0", "no", "off"}


class _GitHubIssue(BaseModel):
    """Fields we read from an issue response; anything else is schema drift."""

    model_config = ConfigDict(extra="forbid")

    id: int | None = None
    node_id: str | None = None
    number: int | None = None
    title: str | None = None
    body: str | None = None
    state: str | None = None
    html_url: str | None = None


class _LenientGitHubIssue(_GitHubIssue):
    model_config = ConfigDict(extra="ignore")


class GitHubProvider(IssueProvider):
    provider = ProviderType.GITHUB
    base_url = BASE_URL

    def _headers(self) -> dict[str, str]:
        token = self._config.get(GITHUB_TOKEN_KEY)
        if not token or not token.strip():
            raise MissingCredentialsError(
                f"GitHub API token is missing. Configure it using key: '{GITHUB_TOKEN_KEY}'.",
                keys=(GITHUB_TOKEN_KEY,),
            )
        return {
            "Authorization": f"Bearer {token.strip()}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _strict_schema(self) -> bool:
        value = self._config.get(GITHUB_STRICT_SCHEMA_KEY)
        return value is None or value.strip().lower() not in _FALSEY

    def _issue_path(self, repo: RepositoryInfo, issue_id: str | None = None) -> str:
        segments = ["repos", repo.owner, repo.repository_name, "issues"]
        if issue_id is not None:
            segments.append(issue_id)
        return self._path(*segments)

    async def _call(
        self,
        operation: str,
        method: str,
        repo: RepositoryInfo,
        payload: dict[str, Any],
        issue_id: str | None = None,
    ) -> IssueDetailsResponse:
        headers = self._headers()
        path = self._issue_path(repo, issue_id)
        log.debug(operation, provider="github", repo=repo.full_name, issue_id=issue_id)
        response = await self._send(method, path, headers, payload)
        if not response.is_success:
            raise self._api_error(operation, response, repo, issue_id)
        return self._issue_from_response(response, repo)

    def _api_error(
        self,
        operation: str,
        response: httpx.Response,
        repo: RepositoryInfo,
        issue_id: str | None,
    ) -> ProviderApiError:
        status = response.status_code
        body = response.text
        url = str(response.request.url)
        log.warning("provider_api_error", provider="github", operation=operation, status_code=status)
        context = {"status_code": status, "body": body, "operation": operation, "url": url}
        if status == 401:
            return AuthenticationError(
                f"GitHub API returned 401. Check the token configured under '{GITHUB_TOKEN_KEY}'. Response: {body}",
                **context,
            )
        if status == 404 and issue_id is not None:
            return IssueNotFoundError(
                f"GitHub issue '{issue_id}' not found in repository '{repo.full_name}'. "
                f"Status code: {status}. Response: {body}",
                **context,
            )
        return ProviderApiError(
            f"GitHub API request failed with status code {status}. URL: {url}. Response: {body}",
            **context,
        )

    def _issue_from_response(self, response: httpx.Response, repo: RepositoryInfo) -> IssueDetailsResponse:
        schema = _GitHubIssue if self._strict_schema() else _LenientGitHubIssue
        try:
            node = schema.model_validate_json(response.content)
        except ValidationError as exc:
            raise ResponseParseError(f"Could not parse GitHub issue response: {exc}") from exc

        issue_id = node.node_id or (str(node.id) if node.id is not None else None)
        if not issue_id:
            raise ResponseParseError("GitHub issue response has neither 'node_id' nor 'id'.")
        return IssueDetailsResponse(
            id=issue_id,
            display_id=str(node.number) if node.number is not None else None,
            title=node.title or "",
            description=node.body,
            state=node.state or "",
            url=node.html_url,
            provider=ProviderType.GITHUB,
            repository_name=repo.repository_name,
            owner=repo.owner,
        )

    @staticmethod
    def _update_payload(request: UpdateIssueRequest) -> dict[str, Any]:
        """Only keys the caller set; absence means "leave unchanged"."""
        payload: dict[str, Any] = {}
        if request.title is not None:
            payload["title"] = request.title
        if request.description is not None:
            payload["body"] = request.description
        return payload

    async def create_issue(self, repo: RepositoryInfo, request: CreateIssueRequest) -> IssueDetailsResponse:
        self._check_create(repo, request)
        payload = {"title": request.title, "body": request.description}
        return await self._call("create_issue", "POST", repo, payload)

    async def update_issue(
        self,
        repo: RepositoryInfo,
        issue_id: str,
        request: UpdateIssueRequest,
    ) -> IssueDetailsResponse:
        issue_id = self._check_update(repo, issue_id, request)
        return await self._call("update_issue", "PATCH", repo, self._update_payload(request), issue_id)

    async def close_issue(self, repo: RepositoryInfo, issue_id: str) -> IssueDetailsResponse:
        issue_id = self._check_issue_id(issue_id)
        self._check_repo(repo)
        return await self._call("close_issue", "PATCH", repo, {"state": "closed"}, issue_id)
