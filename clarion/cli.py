# clarion/cli.py

import asyncio
from typing import List, Optional

import typer
from loguru import logger
from pydantic import ValidationError

from .services.logging import setup_logging
from .config.loader import get_config, save_config
from .config.schema import AppConfig
from .api.client import ClarionClient
from .core.app_context import AppContext
from .core.filters import GLOB_GUIDE, UnknownPresetError, apply_exclude_preset
from .core.models import FilterSpec, PreviewNode, EXCLUDED
from .core.preview_session import PreviewSession
from .core.token_counter import ContextTokenTracker
from .core.tree import find_node, render_tree
from . import __version__

# --- Typer App ---
app = typer.Typer(help="Clarion CLI - inspect and preview the codebase context agents receive.")

def version_callback(value: bool):
    if value:
        print(f"Clarion CLI Version: {__version__}")
        raise typer.Exit()

@app.callback()
def main_options(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Clarion backend URL (overrides config / CLARION_API_URL)."),
    version: Optional[bool] = typer.Option(None, "--version", callback=version_callback, is_eager=True, help="Show version and exit."),
):
    """ Main callback to set up logging """
    log_level = "DEBUG" if verbose else "WARNING"
    setup_logging(level=log_level, verbose=verbose)
    ctx.ensure_object(dict)
    ctx.obj["VERBOSE"] = verbose
    ctx.obj["API_URL"] = api_url


def _client(ctx: typer.Context) -> ClarionClient:
    return ClarionClient(base_url=(ctx.obj or {}).get("API_URL"))


def _preview_label(node: PreviewNode) -> str:
    if node.is_folder:
        return node.name + "/"
    if node.status == EXCLUDED:
        return f"{node.name}  (excluded)"
    return node.name


async def _open_workspace(client: ClarionClient, root: str, agent_id: Optional[str], select: List[str]) -> AppContext:
    """Opens `root`, applies manual selections and activates the agent, as the app would."""
    workspace = AppContext(client)
    await workspace.open_project(root)
    if not workspace.file_tree:
        logger.error(f"No files loaded for {root}. Is the backend running at {client.base_url}?")
        raise typer.Exit(code=1)

    for path in select:
        node = find_node(workspace.file_tree, path)
        if node is None:
            logger.warning(f"Ignoring --select '{path}': not in the project tree.")
            continue
        workspace.toggle_file_for_context(node)

    if agent_id:
        agent = await client.get_agent(agent_id)
        if agent is None:
            logger.error(f"Agent '{agent_id}' not found.")
            raise typer.Exit(code=1)
        await workspace.set_active_agent(agent)
    return workspace


@app.command()
def tree(
    ctx: typer.Context,
    root: str = typer.Option(..., "--root", "-r", help="Project root as seen by the backend."),
):
    """Prints the project tree served by the backend."""
    async def run():
        async with _client(ctx) as client:
            return await client.load_directory_tree(root)

    nodes = asyncio.run(run())
    if not nodes:
        logger.error(f"No files loaded for {root}.")
        raise typer.Exit(code=1)
    typer.echo(root)
    for line in render_tree(nodes):
        typer.echo(line)


@app.command()
def preview(
    ctx: typer.Context,
    root: str = typer.Option(..., "--root", "-r", help="Project root as seen by the backend."),
    include: Optional[List[str]] = typer.Option(None, "--include", "-i", help="Include glob (repeatable). Empty means everything not excluded."),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-e", help="Exclude glob (repeatable). Excludes win over includes."),
    preset: Optional[List[str]] = typer.Option(None, "--preset", "-p", help="Add a named exclude preset (see `clarion presets`)."),
):
    """Shows which files a candidate filter would put in an agent's context."""
    config = get_config()
    spec = FilterSpec.of(include, exclude)
    try:
        for name in preset or []:
            spec = apply_exclude_preset(spec, name, config.exclude_presets)
    except UnknownPresetError as e:
        logger.error(str(e.args[0]))
        raise typer.Exit(code=1)

    async def run():
        async with _client(ctx) as client:
            nodes = await client.load_directory_tree(root)
            if not nodes:
                logger.error(f"No files loaded for {root}.")
                raise typer.Exit(code=1)
            session = PreviewSession(client, debounce_ms=config.preview_debounce_ms, file_tree=nodes)
            session.update_globs(spec.include_globs, spec.exclude_globs)
            await session.flush()
            return session

    session = asyncio.run(run())
    typer.echo(f"Context Preview ({session.status_label})")
    if not session.result.nodes:
        typer.echo("No files match the current filters.")
        return
    for line in render_tree(session.result.nodes, label=_preview_label):
        typer.echo(line)


@app.command()
def context(
    ctx: typer.Context,
    root: str = typer.Option(..., "--root", "-r", help="Project root as seen by the backend."),
    agent: Optional[str] = typer.Option(None, "--agent", "-a", help="Agent persona ID whose filters apply."),
    select: Optional[List[str]] = typer.Option(None, "--select", "-s", help="Manually select a file or folder (repeatable)."),
):
    """Prints the codebase context set an agent run would receive."""
    async def run():
        async with _client(ctx) as client:
            return await _open_workspace(client, root, agent, select or [])

    workspace = asyncio.run(run())
    paths = sorted(workspace.context_paths)
    source = "agent filters" if workspace.has_filters else "manual selection"
    typer.echo(f"Codebase Context ({len(paths)} files, from {source})")
    for path in paths:
        typer.echo(f"  {path}")
    if not paths:
        typer.echo("No files are currently in the context.")


@app.command()
def tokens(
    ctx: typer.Context,
    root: str = typer.Option(..., "--root", "-r", help="Project root as seen by the backend."),
    agent: Optional[str] = typer.Option(None, "--agent", "-a", help="Agent persona ID whose filters apply."),
    select: Optional[List[str]] = typer.Option(None, "--select", "-s", help="Manually select a file or folder (repeatable)."),
):
    """Estimates the token size of the codebase context."""
    config = get_config()

    async def run():
        async with _client(ctx) as client:
            workspace = await _open_workspace(client, root, agent, select or [])
            tracker = ContextTokenTracker(client, root=root, encoding_name=config.token_encoding)
            tracker.refresh(workspace.context_paths)
            count = await tracker.wait()
            return len(workspace.context_paths), count

    file_count, count = asyncio.run(run())
    typer.echo(f"{count} tokens across {file_count} files")


@app.command()
def presets():
    """Lists the exclude presets and the glob syntax the backend understands."""
    config = get_config()
    for name, globs in config.exclude_presets.items():
        typer.echo(f"{name}: {', '.join(globs)}")
    typer.echo("")
    typer.echo(GLOB_GUIDE)


# Scalar settings that `clarion config --set` may change
SETTABLE_KEYS = ("api_url", "request_timeout", "preview_debounce_ms", "token_encoding")

@app.command("config")
def config_command(
    set_values: Optional[List[str]] = typer.Option(None, "--set", help="Persist a setting as KEY=VALUE (repeatable), e.g. api_url=http://host:2077."),
):
    """Shows the effective configuration; --set writes changes to the user config file."""
    config = get_config()
    if set_values:
        updates = {}
        for item in set_values:
            key, sep, value = item.partition("=")
            key = key.strip()
            if not sep or key not in SETTABLE_KEYS:
                logger.error(f"Invalid --set '{item}'. Use KEY=VALUE with KEY one of: {', '.join(SETTABLE_KEYS)}")
                raise typer.Exit(code=1)
            updates[key] = value.strip()
        try:
            config = AppConfig.model_validate({**config.model_dump(), **updates})
        except ValidationError as e:
            logger.error(f"Invalid configuration value: {e}")
            raise typer.Exit(code=1)
        save_config(config)
    typer.echo(config.model_dump_json(indent=4))


if __name__ == "__main__":
    app()
