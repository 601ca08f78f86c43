"""Main CLI entry point for the github-cms command.

This module provides the Typer application that serves as the entry point
for the github-cms command-line tool: browsing the repository tree, reading
files, creating files and folders, editing frontmatter and body text, and
recursive rename and delete.
"""

import json
import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import typer

from src.api.content_api import ContentAPI, FileContent, error_payload, node_to_dict
from src.cli.config import DEFAULT_CONFIG_PATH, ConfigLoader
from src.cli.errors import (
    ConfigNotFoundError,
    FilesystemError,
    InvalidArgumentError,
)
from src.cli.models import ExitCode, RepositoryConfig
from src.cli.output import OutputHandler
from src.content_store.auth import Authenticator
from src.content_store.base import ContentStore
from src.content_store.errors import (
    ConflictError,
    ContentSyncError,
    InvalidCredentialsError,
    InvalidPathError,
    NotFoundError,
    TransientError,
    UnsupportedOperationError,
)
from src.content_store.github_store import GitHubContentStore
from src.content_store.memory_store import MemoryContentStore
from src.document.errors import DocumentError
from src.document.frontmatter_codec import FrontmatterCodec
from src.document.models import Frontmatter, FrontmatterValue
from src.editor.editing_session import EditingSession
from src.editor.errors import SessionError
from src.mutations.errors import PartialFailureError
from src.mutations.mutation_engine import MutationEngine
from src.mutations.models import PendingMutation

VERSION = "0.1.0"

app = typer.Typer(
    name="github-cms",
    help="""Edit the markdown content of a GitHub repository.

QUICK START:
  github-cms tree                                  # Show the content tree
  github-cms cat posts/hello.md                    # Print a file and its hash
  github-cms create posts/new.md --content "..."   # Create a file
  github-cms create drafts --folder                # Create an empty folder
  github-cms edit posts/hello.md --field title=Hi  # Edit frontmatter and save
  github-cms rename posts archive                  # Rename a file or folder
  github-cms rm drafts                             # Delete a file or folder

Repository settings are read from .github-cms/config.yaml (or GITHUB_OWNER /
GITHUB_REPO); the token from GITHUB_TOKEN.""",
    add_completion=False,
    rich_markup_mode=None,  # Disable Rich markup to avoid compatibility issues
    no_args_is_help=False,
)

# Module logger
logger = logging.getLogger(__name__)


@dataclass
class CLIState:
    """Global options shared by every command."""
    config_path: str = DEFAULT_CONFIG_PATH
    verbosity: int = 0
    no_color: bool = False
    memory: bool = False


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:  # verbosity >= 2
        level = logging.DEBUG

    # Configure app-specific logger (not root) to avoid affecting libraries
    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)

    # Remove handlers from a previous invocation in the same process
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        # Timestamped filename in local time
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"github-cms_{timestamp}.log"

        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _exit_code_for(error: Exception) -> ExitCode:
    """Map an error to the process exit code."""
    if isinstance(error, PartialFailureError):
        return ExitCode.PARTIAL_FAILURE
    if isinstance(error, ConflictError):
        return ExitCode.CONFLICT
    if isinstance(error, InvalidCredentialsError):
        return ExitCode.AUTH_ERROR
    if isinstance(error, TransientError):
        return ExitCode.NETWORK_ERROR
    if isinstance(error, NotFoundError):
        return ExitCode.NOT_FOUND
    if isinstance(error, (
        InvalidPathError,
        UnsupportedOperationError,
        DocumentError,
        SessionError,
        InvalidArgumentError,
    )):
        return ExitCode.INVALID_INPUT
    return ExitCode.GENERAL_ERROR


@contextmanager
def _handle_errors(output: OutputHandler) -> Iterator[None]:
    """Report errors raised by a command and exit with the matching code."""
    try:
        yield
    except typer.Exit:
        raise
    except ContentSyncError as e:
        logger.error(f"{e.kind}: {e}")
        output.print_error(error_payload(e))
        raise typer.Exit(_exit_code_for(e))
    except Exception as e:
        logger.exception("Unexpected error")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def _load_config(state: CLIState) -> RepositoryConfig:
    """Load repository settings; memory mode works without a config file."""
    try:
        return ConfigLoader.load(state.config_path)
    except ConfigNotFoundError:
        if state.memory:
            return RepositoryConfig(owner="memory", repo="memory")
        raise


def _create_store(config: RepositoryConfig, memory: bool = False) -> ContentStore:
    """Build the content store for the configured repository."""
    if memory:
        logger.info("Using in-memory content store; nothing is sent to GitHub")
        return MemoryContentStore()

    logger.info(
        f"Using GitHub repository {config.owner}/{config.repo}"
        f"{' @ ' + config.branch if config.branch else ''}"
    )
    return GitHubContentStore(
        Authenticator(api_url=config.api_url),
        config.owner,
        config.repo,
        branch=config.branch,
        timeout=config.timeout,
    )


def _build_api(state: CLIState) -> ContentAPI:
    config = _load_config(state)
    store = _create_store(config, state.memory)
    engine = MutationEngine(
        store,
        placeholder_name=config.placeholder_name,
        max_workers=config.max_workers,
    )
    return ContentAPI(store, engine, root_path=config.root_path)


def _output(ctx: typer.Context) -> OutputHandler:
    state: CLIState = ctx.obj
    return OutputHandler(verbosity=state.verbosity, no_color=state.no_color)


def _parse_assignment(argument: str) -> Tuple[str, FrontmatterValue]:
    """Parse ``KEY=VALUE`` into a frontmatter entry.

    The value follows the frontmatter rule: ``[a, b]`` is a list, anything
    else a plain string.
    """
    key, separator, value = argument.partition("=")
    key = key.strip()
    if not separator or not key:
        raise InvalidArgumentError(argument, "expected KEY=VALUE")
    return key, FrontmatterCodec.parse_value(value)


def _parse_assignments(arguments: Optional[List[str]]) -> Frontmatter:
    fields: Frontmatter = {}
    for argument in arguments or []:
        key, value = _parse_assignment(argument)
        fields[key] = value
    return fields


def _read_local_file(file_path: str) -> bytes:
    try:
        return Path(file_path).read_bytes()
    except FileNotFoundError:
        raise FilesystemError(file_path, 'read', 'File not found')
    except OSError as e:
        raise FilesystemError(file_path, 'read', str(e))


@contextmanager
def _progress(output: OutputHandler, description: str) -> Iterator:
    """Yield an on_progress callback that drives a Rich progress bar."""
    with output.progress_bar(0, description) as progress:
        task_id = progress.add_task(description, total=None)

        def on_progress(pending: PendingMutation, task) -> None:
            progress.update(task_id, total=len(pending.tasks), completed=pending.completed_count)

        yield on_progress


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"github-cms version {VERSION}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config: str = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        help="Path to the configuration file",
        metavar="FILE",
    ),
    memory: bool = typer.Option(
        False,
        "--memory",
        help="Use an empty in-memory store instead of GitHub (nothing is persisted)",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Edit the markdown content of a GitHub repository."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    _configure_logging(verbosity, logdir)
    ctx.obj = CLIState(
        config_path=config,
        verbosity=verbosity,
        no_color=no_color,
        memory=memory,
    )


@app.command("tree")
def tree_command(
    ctx: typer.Context,
    path: Optional[str] = typer.Argument(None, help="Directory or file to show (default: content root)"),
    as_json: bool = typer.Option(False, "--json", help="Print the tree as JSON"),
) -> None:
    """Show the content tree, or a file's content."""
    output = _output(ctx)
    with _handle_errors(output):
        api = _build_api(ctx.obj)
        with output.spinner("Listing tree..."):
            result = api.tree(path)

        if isinstance(result, FileContent):
            if as_json:
                typer.echo(json.dumps(result.to_dict(), indent=2))
            else:
                output.print(result.text)
            return

        if as_json:
            typer.echo(json.dumps(node_to_dict(result), indent=2))
        else:
            output.print_tree(result)


@app.command("cat")
def cat_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File to print"),
    frontmatter: bool = typer.Option(
        False,
        "--frontmatter",
        help="Print only the parsed frontmatter fields",
    ),
) -> None:
    """Print a file and the hash needed to modify it."""
    output = _output(ctx)
    with _handle_errors(output):
        api = _build_api(ctx.obj)
        content = api.read(path)

        if frontmatter:
            if not FrontmatterCodec.has_frontmatter(content.text):
                output.warning(f"{content.path} has no frontmatter block")
            document = FrontmatterCodec.parse(content.text)
            for key, value in document.frontmatter.items():
                output.print(f"{key}: {FrontmatterCodec.format_value(key, value)}")
        else:
            output.print(content.text)

        typer.echo(f"hash: {content.hash}", err=True)


@app.command("create")
def create_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of the file or folder to create"),
    content: Optional[str] = typer.Option(None, "--content", help="File content"),
    file: Optional[str] = typer.Option(
        None,
        "--file",
        help="Upload a local file as the content (sent as-is)",
        metavar="FILE",
    ),
    folder: bool = typer.Option(False, "--folder", help="Create an empty folder"),
    create_only: bool = typer.Option(
        False,
        "--create-only",
        help="Fail instead of overwriting an existing file",
    ),
) -> None:
    """Create a file (overwriting an existing one) or an empty folder."""
    output = _output(ctx)
    with _handle_errors(output):
        if content is not None and file is not None:
            raise InvalidArgumentError("--file", "cannot be combined with --content")
        if folder and (content is not None or file is not None):
            raise InvalidArgumentError("--folder", "folders have no content")

        data = _read_local_file(file) if file is not None else (content or "")

        api = _build_api(ctx.obj)
        result = api.create(path, data, as_folder=folder, create_only=create_only)
        output.success(f"{result['message']}: {result['path']}")
        output.info(f"  hash: {result['hash']}")


@app.command("set-frontmatter")
def set_frontmatter_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Document to update"),
    fields: Optional[List[str]] = typer.Argument(
        None,
        help="KEY=VALUE pairs forming the new frontmatter ([a, b] for lists)",
    ),
) -> None:
    """Replace a document's frontmatter, keeping its body."""
    output = _output(ctx)
    with _handle_errors(output):
        mapping = _parse_assignments(fields)
        api = _build_api(ctx.obj)
        result = api.update_frontmatter(path, mapping)
        output.success(f"{result['message']}: {result['path']}")
        output.info(f"  hash: {result['hash']}")


@app.command("edit")
def edit_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Document to edit"),
    field: Optional[List[str]] = typer.Option(
        None,
        "--field",
        help="Set a frontmatter field (KEY=VALUE, repeatable)",
    ),
    remove_field: Optional[List[str]] = typer.Option(
        None,
        "--remove-field",
        help="Remove a frontmatter field (repeatable)",
    ),
    body_file: Optional[str] = typer.Option(
        None,
        "--body-file",
        help="Replace the body with the content of a markdown file",
        metavar="FILE",
    ),
    html_file: Optional[str] = typer.Option(
        None,
        "--html-file",
        help="Replace the body with an HTML file converted to markdown",
        metavar="FILE",
    ),
    standard_fields: bool = typer.Option(
        False,
        "--standard-fields",
        help="Add the standard header fields (title, description, date, tags, type, category, image)",
    ),
) -> None:
    """Open a document, apply edits and save them with the read hash."""
    output = _output(ctx)
    with _handle_errors(output):
        if body_file is not None and html_file is not None:
            raise InvalidArgumentError("--html-file", "cannot be combined with --body-file")
        assignments = [_parse_assignment(argument) for argument in field or []]

        api = _build_api(ctx.obj)
        session = EditingSession(api.engine, api.store)
        session.open(api.resolve_path(path))

        if standard_fields:
            session.apply_standard_fields()
        for key, value in assignments:
            session.set_field(key, value)
        for key in remove_field or []:
            session.remove_field(key)
        if body_file is not None:
            session.set_body(_read_local_file(body_file).decode("utf-8"))
        if html_file is not None:
            session.set_body_from_html(_read_local_file(html_file).decode("utf-8"))

        if not session.dirty:
            output.warning(f"No changes to save for {session.path}")
            session.close()
            return

        new_hash = session.save()
        output.success(f"Saved {session.path}")
        output.info(f"  hash: {new_hash}")
        session.close()


@app.command("rename")
def rename_command(
    ctx: typer.Context,
    old_path: str = typer.Argument(..., help="File or folder to rename"),
    new_name: str = typer.Argument(..., help="New name (last path segment only)"),
) -> None:
    """Rename a file or a folder with everything below it."""
    output = _output(ctx)
    with _handle_errors(output):
        api = _build_api(ctx.obj)
        try:
            with _progress(output, "Moving") as on_progress:
                result = api.rename(old_path, new_name, on_progress)
        except PartialFailureError as e:
            if e.result is not None:
                output.print_move_summary(e.result)
            raise
        output.print_move_summary(result)


@app.command("rm")
def rm_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File or folder to delete"),
) -> None:
    """Delete a file or a folder with everything below it."""
    output = _output(ctx)
    with _handle_errors(output):
        api = _build_api(ctx.obj)
        try:
            with _progress(output, "Deleting") as on_progress:
                result = api.remove(path, on_progress)
        except PartialFailureError as e:
            if e.result is not None:
                output.print_deletion_summary(e.result)
            raise
        output.print_deletion_summary(result)


def main() -> None:
    """Main entry point for the CLI application.

    This function is called when the module is executed directly or
    when the console script is invoked.
    """
    app()


# Allow running as: python -m src.cli.main
if __name__ == "__main__":
    main()
