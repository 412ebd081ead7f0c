"""gitissues CLI: create, update and close issues on GitHub and Bitbucket."""

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Annotated

import httpx
import structlog
import tomlkit
import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.markup import escape
from rich.table import Table
from tomlkit.exceptions import TOMLKitError

from gitissues.errors import GitIssuesError
from gitissues.logging_config import configure_logging
from gitissues.models import (
    CreateIssueRequest,
    IssueDetailsResponse,
    RepositoryInfo,
    UpdateIssueRequest,
)
from gitissues.providers.base import IssueProvider
from gitissues.providers.selector import ProviderSelector, resolve_provider_type
from gitissues.settings import CONFIG_PATH, GitProvidersSettings, get_settings

app = typer.Typer(help="gitissues: one interface for GitHub and Bitbucket issues", no_args_is_help=True)

log = structlog.get_logger(__name__)

ProviderArg = Annotated[str, typer.Argument(help="Provider: github or bitbucket")]
OwnerArg = Annotated[str, typer.Argument(help="GitHub user/org or Bitbucket workspace")]
RepoArg = Annotated[str, typer.Argument(help="Repository name (GitHub) or slug (Bitbucket)")]
IssueIdArg = Annotated[str, typer.Argument(help="Issue number")]
JsonOpt = Annotated[bool, typer.Option("--json", help="Print the issue as JSON")]

Operation = Callable[[IssueProvider, RepositoryInfo], Awaitable[IssueDetailsResponse]]


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@app.callback()
def main(
    log_level: Annotated[
        LogLevel, typer.Option("--log-level", case_sensitive=False, help="Minimum log level")
    ] = LogLevel.WARNING,
) -> None:
    configure_logging(log_level.value)


# ---------------------------------------------------------------------------
# Provider wiring
# ---------------------------------------------------------------------------


def load_settings() -> GitProvidersSettings:
    """Build settings, turning a bad config file or env value into a readable exit."""
    try:
        return get_settings()
    except (ValidationError, TOMLKitError) as exc:
        rprint(f"[red]Invalid configuration (environment, .env or {CONFIG_PATH}):[/red]")
        rprint(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc


def get_selector() -> ProviderSelector:
    return ProviderSelector(load_settings())


def _run(provider: str, owner: str, repo: str, operation: Operation) -> IssueDetailsResponse:
    """Resolve the provider, run one operation and close the HTTP clients."""

    async def _go() -> IssueDetailsResponse:
        repo_info = RepositoryInfo(
            provider=resolve_provider_type(provider),
            owner=owner,
            repository_name=repo,
        )
        async with get_selector() as selector:
            return await operation(selector.resolve(provider), repo_info)

    try:
        return asyncio.run(_go())
    except GitIssuesError as exc:
        rprint(f"[red]{escape(exc.message)}[/red]")
        raise typer.Exit(1) from exc
    except httpx.TransportError as exc:
        log.error("transport_error", error=str(exc))
        rprint(f"[red]Network error talking to {escape(provider)}: {escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc


def _show(issue: IssueDetailsResponse, as_json: bool) -> None:
    if as_json:
        typer.echo(issue.model_dump_json(indent=2))
        return

    heading = f"#{issue.display_id}" if issue.display_id else issue.id
    table = Table(title=f"{issue.owner}/{issue.repository_name} {heading}: {issue.title}")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Provider", issue.provider.label)
    table.add_row("ID", issue.id)
    table.add_row("State", issue.state or "—")
    table.add_row("URL", issue.url or "—")
    table.add_row("Description", issue.description or "_No description provided._")

    rprint(table)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("create")
def create(
    provider: ProviderArg,
    owner: OwnerArg,
    repo: RepoArg,
    title: Annotated[str, typer.Argument(help="Issue title")],
    description: Annotated[str | None, typer.Option("--description", "-d", help="Issue description")] = None,
    as_json: JsonOpt = False,
) -> None:
    """Create a new issue."""
    request = CreateIssueRequest(title=title, description=description)
    issue = _run(provider, owner, repo, lambda p, r: p.create_issue(r, request))
    _show(issue, as_json)


@app.command("update")
def update(
    provider: ProviderArg,
    owner: OwnerArg,
    repo: RepoArg,
    issue_id: IssueIdArg,
    title: Annotated[str | None, typer.Option("--title", "-t", help="New title")] = None,
    description: Annotated[str | None, typer.Option("--description", "-d", help="New description")] = None,
    as_json: JsonOpt = False,
) -> None:
    """Update the title and/or description of an issue."""
    request = UpdateIssueRequest(title=title, description=description)
    issue = _run(provider, owner, repo, lambda p, r: p.update_issue(r, issue_id, request))
    _show(issue, as_json)


@app.command("close")
def close(
    provider: ProviderArg,
    owner: OwnerArg,
    repo: RepoArg,
    issue_id: IssueIdArg,
    as_json: JsonOpt = False,
) -> None:
    """Close an issue."""
    issue = _run(provider, owner, repo, lambda p, r: p.close_issue(r, issue_id))
    _show(issue, as_json)


@app.command("config-show")
def config_show() -> None:
    """Show resolved configuration (masks credentials)."""
    settings = load_settings()

    def mask(val: str | None) -> str:
        if val is None:
            return "[dim](not set)[/dim]"
        if len(val) <= 5:
            return "***"
        return f"...{val[-5:]}"

    table = Table(title="gitissues Configuration")
    table.add_column("Key", style="bold")
    table.add_column("Value")

    github_token = settings.github.token
    app_password = settings.bitbucket.app_password
    table.add_row("GitProviders:GitHub:Token", mask(github_token.get_secret_value() if github_token else None))
    table.add_row("GitProviders:GitHub:StrictSchema", str(settings.github.strict_schema).lower())
    table.add_row("GitProviders:Bitbucket:Username", settings.bitbucket.username or "[dim](not set)[/dim]")
    table.add_row(
        "GitProviders:Bitbucket:AppPassword",
        mask(app_password.get_secret_value() if app_password else None),
    )

    rprint(table)


@app.command("init")
def init_cmd() -> None:
    """Interactive setup: store provider credentials in the config file."""
    rprint("[bold]gitissues Setup[/bold]")
    rprint("")

    provider = typer.prompt("Provider? [github/bitbucket]", default="github").strip().lower()
    if provider not in ("github", "bitbucket"):
        rprint("[red]Invalid provider. Choose 'github' or 'bitbucket'.[/red]")
        raise typer.Exit(1)

    section: dict = {}
    if provider == "github":
        rprint("Create a token at: https://github.com/settings/tokens")
        rprint("Required scope: repo  (public_repo for public repos only)")
        section["token"] = typer.prompt("Paste token", hide_input=True).strip()
    else:
        rprint("Create an App Password at: https://bitbucket.org/account/settings/app-passwords/")
        rprint("Required permission: Issues (write)")
        section["username"] = typer.prompt("Bitbucket username").strip()
        section["app_password"] = typer.prompt("Paste App Password", hide_input=True).strip()

    if not all(section.values()):
        rprint("[red]Credentials cannot be empty.[/red]")
        raise typer.Exit(1)

    # Round-trip preserves any existing comments and the other provider's table.
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    try:
        doc = tomlkit.load(CONFIG_PATH.open()) if CONFIG_PATH.exists() else tomlkit.document()
    except TOMLKitError as exc:
        rprint(f"[red]Could not parse {CONFIG_PATH}: {escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc
    if provider in doc:
        for key, value in section.items():
            doc[provider][key] = value
    else:
        doc[provider] = section

    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    rprint(f"[green]✓[/green] {provider} credentials written to {CONFIG_PATH}")
