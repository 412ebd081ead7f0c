"""Shared pydantic models: the contract between providers and their callers."""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from gitissues.errors import UnsupportedProviderError


class ProviderType(str, Enum):
    GITHUB = "github"
    BITBUCKET = "bitbucket"

    @classmethod
    def parse(cls, token: str) -> "ProviderType":
        """Resolve a case-insensitive provider token ("GitHub", "bitbucket", ...)."""
        normalized = (token or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise UnsupportedProviderError(token)

    @property
    def label(self) -> str:
        return "GitHub" if self is ProviderType.GITHUB else "Bitbucket"


class RepositoryInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: ProviderType
    owner: str  # GitHub user/org or Bitbucket workspace
    repository_name: str  # GitHub repo name or Bitbucket repo slug

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repository_name}"


class CreateIssueRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: str | None = None


class UpdateIssueRequest(BaseModel):
    """Partial update; None means "leave unchanged"."""

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    description: str | None = None

    @property
    def has_changes(self) -> bool:
        return self.title is not None or self.description is not None


class IssueDetailsResponse(BaseModel):
    """Returned by every provider operation, built fresh from the provider's response."""

    model_config = ConfigDict(frozen=True)

    id: str  # provider-global ID (GitHub node_id, Bitbucket issue id)
    display_id: str | None = None  # human-facing number
    title: str
    description: str | None = None
    state: str
    url: str | None = None
    provider: ProviderType
    repository_name: str
    owner: str
