"""CLI commands for editing workflow_dispatch choice inputs."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

import typer

from .config import ConfigError, Settings, load_settings
from .engine.dispatcher import extract_options, mutate_document
from .inputs import InputValidationError, UpdateInputs, validate_inputs
from .notices import NoticeLevel
from .tools.git_store import GitWorkflowStore
from .tools.github_store import GitHubWorkflowStore
from .tools.stores import DocumentStore, StoreError
from .tools.vcs import GitError, GitRepository
from .updater import UpdateResult, update_workflow_choices

APP_HELP = "Add, delete or update the options of workflow_dispatch choice inputs."

app = typer.Typer(help=APP_HELP)


class _EchoNoticeSink:
    """Print notices the way the rest of the CLI reports progress."""

    def notify(self, level: NoticeLevel, message: str) -> None:
        if level == NoticeLevel.WARNING:
            typer.echo(f"Warning: {message}")
        else:
            typer.echo(message)


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _load_settings(config: Optional[str]) -> Settings:
    try:
        return load_settings(config)
    except ConfigError as error:
        typer.echo(str(error))
        raise typer.Exit(code=1) from error


def _validate(**raw: object) -> UpdateInputs:
    try:
        return validate_inputs(**raw)
    except InputValidationError as error:
        typer.echo(f"Invalid inputs: {error}")
        raise typer.Exit(code=1) from error


def _parse_repository(slug: str) -> Tuple[str, str]:
    owner, separator, name = slug.strip().partition("/")
    if not separator or not owner or not name or "/" in name:
        raise typer.BadParameter(f"Expected OWNER/REPO, got '{slug}'")
    return owner, name


def _read_document(path: Path) -> str:
    if not path.is_file():
        typer.echo(f"Workflow file not found: {path}")
        raise typer.Exit(code=1)
    with path.open("r", encoding="utf-8", newline="") as handle:
        return handle.read()


def _build_store(
    inputs: UpdateInputs,
    settings: Settings,
    *,
    repo_root: Optional[str],
    repository: Optional[Tuple[str, str]],
    token: Optional[str],
) -> DocumentStore:
    """Select the GitHub store when a repository slug is given, else local git."""
    if repository is not None:
        owner, name = repository
        return GitHubWorkflowStore(
            owner,
            name,
            token=token or os.getenv(settings.github.token_env),
            branch=inputs.branch,
            api_url=settings.github.api_url,
            timeout=settings.github.timeout,
        )
    repo = GitRepository.discover(repo_root)
    return GitWorkflowStore(repo, branch=inputs.branch)


def _write_outputs(result: UpdateResult) -> None:
    """Echo run outputs and append them to ``$GITHUB_OUTPUT`` when available."""
    lines: List[str] = [
        f"updated-workflows={','.join(result.updated_workflows)}",
        f"changes-made={'true' if result.changes_made else 'false'}",
    ]
    for line in lines:
        typer.echo(line)

    output_path = os.getenv("GITHUB_OUTPUT")
    if output_path:
        with Path(output_path).open("a", encoding="utf-8") as handle:
            handle.write("\n".join(lines) + "\n")


@app.command()
def update(
    action: str = typer.Option(..., "--action", "-a", help="One of add, delete or update."),
    input_name: str = typer.Option(..., "--input-name", "-i", help="Name of the workflow_dispatch input."),
    workflows: str = typer.Option(..., "--workflows", "-w", help="Comma separated workflow file names."),
    choice_value: str = typer.Option(..., "--choice-value", "-v", help="Choice to add, delete or rename."),
    new_choice_value: Optional[str] = typer.Option(
        None,
        "--new-choice-value",
        help="Replacement value (required for update).",
    ),
    commit_message: Optional[str] = typer.Option(None, "--commit-message", "-m", help="Commit message to use."),
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="Branch to read from and commit to."),
    repo_root: Optional[str] = typer.Option(
        None,
        "--repo-root",
        help="Local git repository to update (defaults to the current directory).",
    ),
    github: Optional[str] = typer.Option(
        None,
        "--github",
        help="Update OWNER/REPO through the GitHub API instead of a local checkout.",
    ),
    token: Optional[str] = typer.Option(None, "--token", help="GitHub token (defaults to the configured env var)."),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to the configuration file."),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    """Apply a choice edit to each workflow and commit the ones that changed."""
    _configure_logging(verbose)
    settings = _load_settings(config)
    repository = _parse_repository(github) if github else None
    inputs = _validate(
        action=action,
        input_name=input_name,
        workflows=workflows,
        choice_value=choice_value,
        new_choice_value=new_choice_value,
        commit_message=commit_message or settings.defaults.commit_message,
        branch=branch or settings.defaults.branch,
    )

    typer.echo(f"Action: {inputs.action.value}")
    typer.echo(f"Input name: {inputs.input_name}")
    typer.echo(f"Workflows: {', '.join(inputs.workflows)}")
    typer.echo(f"Choice value: {inputs.choice_value}")
    if inputs.new_choice_value:
        typer.echo(f"New choice value: {inputs.new_choice_value}")

    try:
        store = _build_store(inputs, settings, repo_root=repo_root, repository=repository, token=token)
        result = update_workflow_choices(
            store,
            inputs,
            workflows_dir=settings.defaults.workflows_dir,
            notices=_EchoNoticeSink(),
        )
    except (GitError, StoreError, ValueError) as error:
        typer.echo(f"Error: {error}")
        raise typer.Exit(code=1) from error

    _write_outputs(result)
    if result.changes_made:
        typer.echo(f"Successfully updated {len(result.updated_workflows)} workflow(s)")
    else:
        typer.echo("No changes were necessary")


@app.command()
def edit(
    path: Path = typer.Argument(..., help="Workflow file to edit in place."),
    action: str = typer.Option(..., "--action", "-a", help="One of add, delete or update."),
    input_name: str = typer.Option(..., "--input-name", "-i", help="Name of the workflow_dispatch input."),
    choice_value: str = typer.Option(..., "--choice-value", "-v", help="Choice to add, delete or rename."),
    new_choice_value: Optional[str] = typer.Option(
        None,
        "--new-choice-value",
        help="Replacement value (required for update).",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the result instead of writing it."),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    """Apply a choice edit to a local workflow file without committing."""
    _configure_logging(verbose)
    inputs = _validate(
        action=action,
        input_name=input_name,
        workflows=[path.name],
        choice_value=choice_value,
        new_choice_value=new_choice_value,
    )
    text = _read_document(path)
    result = mutate_document(text, inputs.to_request(), notices=_EchoNoticeSink())

    if dry_run:
        typer.echo(result.text, nl=False)
        return
    if not result.changed:
        typer.echo(f"No changes needed for {path}")
        return
    with path.open("w", encoding="utf-8", newline="") as handle:
        handle.write(result.text)
    typer.echo(f"Updated {path} ({result.strategy.value} edit)")


@app.command()
def options(
    path: Path = typer.Argument(..., help="Workflow file to inspect."),
    input_name: str = typer.Option(..., "--input-name", "-i", help="Name of the workflow_dispatch input."),
) -> None:
    """Print the options of a choice input, one per line."""
    values = extract_options(_read_document(path), input_name)
    if not values:
        typer.echo(f'No options found for input "{input_name}"')
        raise typer.Exit(code=1)
    for value in values:
        typer.echo(value)


if __name__ == "__main__":
    app()
