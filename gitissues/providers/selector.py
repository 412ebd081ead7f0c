"""Resolve a provider token ("github", "bitbucket") to its adapter."""

from typing import Any

import httpx

from gitissues.models import ProviderType
from gitissues.providers.base import IssueProvider
from gitissues.providers.bitbucket import BitbucketProvider
from gitissues.providers.github import GitHubProvider
from gitissues.settings import ConfigSource


def resolve_provider_type(provider_identifier: str) -> ProviderType:
    return ProviderType.parse(provider_identifier)


class ProviderSelector:
    """Closed dispatch over the two supported providers.

    Both adapters are built once, up front; ``resolve`` is a pure lookup.
    """

    def __init__(
        self,
        config: ConfigSource,
        *,
        github_client: httpx.AsyncClient | None = None,
        bitbucket_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._github = GitHubProvider(config, client=github_client)
        self._bitbucket = BitbucketProvider(config, client=bitbucket_client)

    def resolve(self, provider_identifier: str) -> IssueProvider:
        match resolve_provider_type(provider_identifier):
            case ProviderType.GITHUB:
                return self._github
            case ProviderType.BITBUCKET:
                return self._bitbucket

    async def aclose(self) -> None:
        await self._github.aclose()
        await self._bitbucket.aclose()

    async def __aenter__(self) -> "ProviderSelector":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
