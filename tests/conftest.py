"""Shared test fixtures."""

import pytest
import structlog

from gitissues.models import IssueDetailsResponse, ProviderType, RepositoryInfo


@pytest.fixture(autouse=True)
def reset_structlog():
    """The CLI configures structlog against the runner's stderr; undo that between tests."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def github_repo() -> RepositoryInfo:
    return RepositoryInfo(provider=ProviderType.GITHUB, owner="test-owner", repository_name="test-repo")


@pytest.fixture
def bitbucket_repo() -> RepositoryInfo:
    return RepositoryInfo(provider=ProviderType.BITBUCKET, owner="test-workspace", repository_name="test-slug")


@pytest.fixture
def github_config() -> dict[str, str]:
    return {"GitProviders:GitHub:Token": "fake-token-123"}


@pytest.fixture
def bitbucket_config() -> dict[str, str]:
    return {
        "GitProviders:Bitbucket:Username": "test@example.com",
        "GitProviders:Bitbucket:AppPassword": "fake-app-password",
    }


@pytest.fixture
def github_issue_details() -> IssueDetailsResponse:
    return IssueDetailsResponse(
        id="NODE_ID_123",
        display_id="101",
        title="Test Issue",
        description="Test Desc",
        state="open",
        url="https://github.com/test-owner/test-repo/issues/101",
        provider=ProviderType.GITHUB,
        repository_name="test-repo",
        owner="test-owner",
    )
