"""Command line entry point for listing stacks and merging them."""

from typing import Callable, NoReturn, Optional, Sequence, TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from stackline.core.exceptions import StacklineError, StaleStackError
from stackline.core.schema.merge import MergeEvent, MergeMethod, RunState
from stackline.core.schema.pr import RepoRef
from stackline.core.schema.stack import Stack
from stackline.core.service import StackService
from stackline.setup import open_service

app = typer.Typer(
    name="stackline",
    help="Inspect and merge stacks of dependent pull requests.",
    no_args_is_help=True,
)
console = Console(soft_wrap=True)

T = TypeVar("T")

REPO_HELP = "Repository as owner/name (defaults to the only configured one)"


@app.command("stacks")
def list_stacks(repo: Optional[str] = typer.Option(None, "--repo", "-r", help=REPO_HELP)) -> None:
    """List the stacks inferred from open pull requests."""
    with open_service() as service:
        repositories = (
            [_parse_repo(repo)] if repo else list(service.repositories)
        )
        if not repositories:
            _fail("No repositories configured. Set STACKLINE_REPOSITORIES or pass --repo.")
        table = Table(title="Stacks")
        table.add_column("ID")
        table.add_column("Name")
        table.add_column("PRs")
        for repository in repositories:
            for stack in _guard(lambda: service.build_stacks(repository)):
                name = f"{stack.name} (fork)" if stack.forked else stack.name
                table.add_row(stack.id, escape(name), _numbers(stack.numbers))
        console.print(table)


@app.command("show")
def show_stack(
    stack_id: str = typer.Argument(..., help="Stack identifier"),
    repo: Optional[str] = typer.Option(None, "--repo", "-r", help=REPO_HELP),
) -> None:
    """Show the pull requests of one stack, root first."""
    with open_service() as service:
        stack = _load_stack(service, repo, stack_id)
        console.print(
            f"[bold]{escape(stack.name)}[/bold]  {escape(stack.description)}"
        )
        for position, request in enumerate(stack.requests):
            flags = []
            if request.draft:
                flags.append("draft")
            if request.mergeability.value != "mergeable":
                flags.append(request.mergeability.value)
            suffix = f" [{', '.join(flags)}]" if flags else ""
            console.print(
                escape(
                    f"  {position}. #{request.number} {request.title} "
                    f"({request.head.name} -> {request.base.name}){suffix}"
                )
            )


@app.command("readiness")
def show_readiness(
    stack_id: str = typer.Argument(..., help="Stack identifier"),
    pr_number: int = typer.Argument(..., help="Pull request to merge up to"),
    repo: Optional[str] = typer.Option(None, "--repo", "-r", help=REPO_HELP),
) -> None:
    """Report whether the stack can be merged up to a pull request."""
    with open_service() as service:
        stack = _load_stack(service, repo, stack_id)
        blocker = _guard(lambda: service.evaluate_readiness(stack, pr_number))
        console.print(escape(f"{blocker.reason.value}: {blocker.message}"))
        if blocker.unverified:
            console.print(
                f"[yellow]No CI data for {_numbers(blocker.unverified)}[/yellow]"
            )
        if not blocker.is_ready:
            raise typer.Exit(1)


@app.command("merge")
def merge_stack(
    stack_id: str = typer.Argument(..., help="Stack identifier"),
    pr_number: int = typer.Argument(..., help="Pull request to merge up to"),
    repo: Optional[str] = typer.Option(None, "--repo", "-r", help=REPO_HELP),
    method: Optional[MergeMethod] = typer.Option(
        None, "--method", "-m", help="Merge method passed to GitHub"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Merge every unmerged pull request from the root up to PR_NUMBER."""
    with open_service() as service:
        stack = _load_stack(service, repo, stack_id)
        blocker = _guard(lambda: service.evaluate_readiness(stack, pr_number))
        if not blocker.is_ready:
            _fail(f"{blocker.reason.value}: {blocker.message}")

        branch_word = "branch" if blocker.merge_count == 1 else "branches"
        if not yes and not typer.confirm(
            f"This will merge {blocker.merge_count} {branch_word} sequentially. Continue?"
        ):
            raise typer.Exit(1)

        final = None
        try:
            for event in service.run_merge(stack, pr_number, method):
                final = event
                console.print(_format_event(event))
        except StacklineError as error:
            _fail(error.message)

        if final is None or final.state is not RunState.SUCCEEDED:
            completed = final.completed if final else 0
            total = final.total if final else blocker.merge_count
            _fail(f"Merged {completed} of {total}; reconcile the rest manually.")
        console.print("Stack merged; its identifier is no longer valid.")


def main() -> None:
    app()


def _load_stack(service: StackService, repo: Optional[str], stack_id: str) -> Stack:
    repository = _resolve_repo(service, repo)
    try:
        return service.get_stack(repository, stack_id)
    except StaleStackError as error:
        _fail(f"{error.message}. Go back to the stack list.")
    except StacklineError as error:
        _fail(error.message)


def _resolve_repo(service: StackService, repo: Optional[str]) -> RepoRef:
    if repo:
        return _parse_repo(repo)
    repositories = list(service.repositories)
    if len(repositories) != 1:
        _fail("Pass --repo: there is not exactly one configured repository.")
    return repositories[0]


def _parse_repo(value: str) -> RepoRef:
    try:
        return RepoRef.parse(value)
    except ValueError as error:
        raise typer.BadParameter(str(error)) from error


def _guard(call: Callable[[], T]) -> T:
    try:
        return call()
    except StacklineError as error:
        _fail(error.message)


def _format_event(event: MergeEvent) -> str:
    line = escape(f"[{event.step}/{event.total}] {event.message}")
    if not event.is_terminal:
        return line
    colour = "green" if event.state is RunState.SUCCEEDED else "red"
    return f"[{colour}]{line}[/{colour}]"


def _numbers(numbers: Sequence[int]) -> str:
    return ", ".join(f"#{number}" for number in numbers)


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(1)
