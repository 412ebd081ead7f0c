"""Bitbucket Cloud REST API 2.0 provider."""

import base64
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from gitissues.errors import (
    AuthenticationError,
    IssueNotFoundError,
    MissingCredentialsError,
    NotSupportedError,
    ProviderApiError,
    RepositoryNotFoundError,
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
from gitissues.settings import BITBUCKET_APP_PASSWORD_KEY, BITBUCKET_USERNAME_KEY

BASE_URL = "https://api.bitbucket.org/2.0/"

log = structlog.get_logger(__name__)


class _BitbucketModel(BaseModel):
    """Field names match case-insensitively (`Id` and `id` both bind to `id`)."""

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _lowercase_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key.lower() if isinstance(key, str) else key: value for key, value in data.items()}
        return data


class _Content(_BitbucketModel):
    raw: str | None = None
    markup: str | None = None
    html: str | None = None


class _Link(_BitbucketModel):
    href: str | None = None


class _Links(_BitbucketModel):
    html: _Link | None = None


class _BitbucketIssue(_BitbucketModel):
    # Bitbucket responses carry many more fields (reporter, kind, priority...).
    id: int
    title: str | None = None
    content: _Content | None = None
    state: str | None = None
    links: _Links | None = None


class BitbucketProvider(IssueProvider):
    provider = ProviderType.BITBUCKET
    base_url = BASE_URL

    def _headers(self) -> dict[str, str]:
        username = self._config.get(BITBUCKET_USERNAME_KEY)
        app_password = self._config.get(BITBUCKET_APP_PASSWORD_KEY)
        if not username or not username.strip() or not app_password or not app_password.strip():
            raise MissingCredentialsError(
                "Bitbucket username or App Password is missing. Configure them using keys: "
                f"'{BITBUCKET_USERNAME_KEY}', '{BITBUCKET_APP_PASSWORD_KEY}'.",
                keys=(BITBUCKET_USERNAME_KEY, BITBUCKET_APP_PASSWORD_KEY),
            )
        credentials = base64.b64encode(f"{username}:{app_password}".encode()).decode("ascii")
        return {
            "Authorization": f"Basic {credentials}",
            "Accept": "application/json",
        }

    def _issue_path(self, repo: RepositoryInfo, issue_id: str | None = None) -> str:
        segments = ["repositories", repo.owner, repo.repository_name, "issues"]
        if issue_id is not None:
            segments.append(issue_id)
        return self._path(*segments)

    def _issue_from_response(self, response: httpx.Response, repo: RepositoryInfo) -> IssueDetailsResponse:
        try:
            node = _BitbucketIssue.model_validate_json(response.content)
        except ValidationError as exc:
            raise ResponseParseError(f"Could not parse Bitbucket issue response: {exc}") from exc

        # Bitbucket has no separate global id; the sequential id serves both roles.
        issue_id = str(node.id)
        return IssueDetailsResponse(
            id=issue_id,
            display_id=issue_id,
            title=node.title or "",
            description=node.content.raw if node.content else None,
            state=node.state or "",
            url=node.links.html.href if node.links and node.links.html else None,
            provider=ProviderType.BITBUCKET,
            repository_name=repo.repository_name,
            owner=repo.owner,
        )

    @staticmethod
    def _create_payload(request: CreateIssueRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {"title": request.title}
        if request.description is not None:
            payload["content"] = {"raw": request.description}
        return payload

    @staticmethod
    def _update_payload(request: UpdateIssueRequest) -> dict[str, Any]:
        """Only keys the caller set; absence means "leave unchanged"."""
        payload: dict[str, Any] = {}
        if request.title is not None:
            payload["title"] = request.title
        if request.description is not None:
            payload["content"] = {"raw": request.description}
        return payload

    def _error_context(self, operation: str, response: httpx.Response) -> dict[str, Any]:
        log.warning(
            "provider_api_error",
            provider="bitbucket",
            operation=operation,
            status_code=response.status_code,
        )
        return {
            "status_code": response.status_code,
            "body": response.text,
            "operation": operation,
            "url": str(response.request.url),
        }

    async def create_issue(self, repo: RepositoryInfo, request: CreateIssueRequest) -> IssueDetailsResponse:
        self._check_create(repo, request)
        headers = self._headers()
        path = self._issue_path(repo)
        log.debug("create_issue", provider="bitbucket", repo=repo.full_name)

        response = await self._send("POST", path, headers, self._create_payload(request))
        if response.is_success:
            return self._issue_from_response(response, repo)

        context = self._error_context("create_issue", response)
        status, body = response.status_code, response.text
        if status == 401:
            raise AuthenticationError(
                "Bitbucket API authentication failed. Check username/App Password. "
                f"Status code: {status}. Response: {body}",
                **context,
            )
        if status == 404:
            raise RepositoryNotFoundError(
                f"Bitbucket repository '{repo.full_name}' not found. Status code: {status}. Response: {body}",
                **context,
            )
        raise ProviderApiError(
            f"Bitbucket API request failed with status code {status}. URL: {context['url']}. Response: {body}",
            **context,
        )

    async def update_issue(
        self,
        repo: RepositoryInfo,
        issue_id: str,
        request: UpdateIssueRequest,
    ) -> IssueDetailsResponse:
        issue_id = self._check_update(repo, issue_id, request)
        headers = self._headers()
        path = self._issue_path(repo, issue_id)
        log.debug("update_issue", provider="bitbucket", repo=repo.full_name, issue_id=issue_id)

        response = await self._send("PUT", path, headers, self._update_payload(request))
        if response.is_success:
            return self._issue_from_response(response, repo)

        context = self._error_context("update_issue", response)
        status, body = response.status_code, response.text
        if status == 404:
            raise IssueNotFoundError(
                f"Bitbucket issue '{issue_id}' or repository '{repo.full_name}' not found. "
                f"Status code: {status}. Response: {body}",
                **context,
            )
        if status in (401, 403):
            raise AuthenticationError(
                "Bitbucket API authentication/authorization failed when updating issue. "
                f"Status code: {status}. Response: {body}",
                **context,
            )
        raise ProviderApiError(
            f"Bitbucket API request failed with status code {status} while updating issue '{issue_id}'. "
            f"URL: {context['url']}. Response: {body}",
            **context,
        )

    async def close_issue(self, repo: RepositoryInfo, issue_id: str) -> IssueDetailsResponse:
        raise NotSupportedError("Closing issues is not supported for Bitbucket.")
