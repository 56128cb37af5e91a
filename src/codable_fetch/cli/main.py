"""
Typer application for fetching typed JSON resources and generating models.

Commands:

- fetch: retrieve a URL or local file and decode it into a known shape.
- posts: load posts through the view model and list their titles.
- generate: emit pydantic model source from a JSON sample.
- verify: check that the JSONPlaceholder API is reachable.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from ..adapters.api import JSONPlaceholderAdapter, JSONPlaceholderClient
from ..codegen import generate_models_from_json
from ..config import FetchSettings, load_settings
from ..core.logging import configure_logging
from ..fetch import DecodeError, Failure, FetchSession, data_task_publisher, run_data_task
from ..fetch.decoding import type_adapter
from ..models import Post, User
from ..services import PostsViewModel, posts_fetcher

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Fetch JSON resources into typed models.\n\n"
        "Commands:\n"
        "- fetch: decode a URL or local file into a known shape.\n"
        "- posts: load posts and list their titles.\n"
        "- generate: emit pydantic models from a JSON sample.\n"
        "- verify: check the JSONPlaceholder API."
    ),
)

SHAPES: Dict[str, Any] = {
    "json": Any,
    "user": User,
    "users": list[User],
    "post": Post,
    "posts": list[Post],
}


def _resolve_shape(name: str) -> Any:
    try:
        return SHAPES[name.lower()]
    except KeyError as exc:
        raise typer.BadParameter(f"Unknown shape '{name}'. Choose from: {', '.join(SHAPES)}.") from exc


def _require_settings(ctx: typer.Context) -> FetchSettings:
    obj = ctx.ensure_object(dict)
    settings = obj.get("settings")
    if settings is None:
        settings = load_settings().fetch
        obj["settings"] = settings
    return settings


def _build_session(settings: FetchSettings) -> FetchSession:
    return FetchSession(settings=settings)


def _render(shape: Any, value: Any) -> str:
    return type_adapter(shape).dump_json(value, indent=2, by_alias=True).decode("utf-8")


def _fail(error: BaseException) -> None:
    kind = getattr(error, "kind", type(error).__name__)
    typer.echo(f"Fetch failed [{kind}]: {error}", err=True)
    raise typer.Exit(code=1)


@app.callback(invoke_without_command=False)
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Settings TOML file overriding discovery.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level, e.g. DEBUG or INFO."),
) -> None:
    """Load settings and configure logging for child commands."""

    if log_level:
        configure_logging(log_level, force=True)
    try:
        bundle = load_settings(path=config)
    except (OSError, ValueError) as exc:
        typer.echo(f"Failed to load settings: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    ctx.ensure_object(dict)["settings"] = bundle.fetch


@app.command("fetch")
def fetch_command(
    ctx: typer.Context,
    location: str = typer.Argument(..., help="URL, file:// URL or local path of a JSON document."),
    shape: str = typer.Option("json", "--shape", "-s", help=f"Target shape: {', '.join(SHAPES)}."),
    pipeline: bool = typer.Option(False, "--pipeline", help="Use the pipeline variant instead of a data task."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Cancel the fetch after this many seconds."),
) -> None:
    """Fetch LOCATION and print the decoded value as JSON."""

    shape_type = _resolve_shape(shape)
    settings = _require_settings(ctx)
    with _build_session(settings) as session:
        if pipeline:
            publisher = data_task_publisher(
                location,
                shape_type,
                transport=session.transport,
                success_codes=settings.success_status,
                executor=session.executor,
            )
            result = publisher.result(timeout)
        else:
            result = run_data_task(location, shape_type, session=session, success_codes=settings.success_status, timeout=timeout)
    if isinstance(result, Failure):
        _fail(result.error)
    typer.echo(_render(shape_type, result.value))


@app.command("posts")
def posts_command(
    ctx: typer.Context,
    source: Optional[str] = typer.Argument(None, help="Posts URL or local JSON file. Defaults to the configured API."),
    user_id: Optional[int] = typer.Option(None, "--user-id", "-u", help="Only list posts by this user."),
    timeout: float = typer.Option(30.0, "--timeout", help="Seconds to wait for the load."),
) -> None:
    """List post titles loaded through the posts view model."""

    settings = _require_settings(ctx)
    location = source or f"{settings.base_url}/posts"
    with _build_session(settings) as session:
        view_model = PostsViewModel(fetcher=posts_fetcher(location, session=session))
        loaded = threading.Event()
        view_model.subscribe(lambda _: loaded.set())
        view_model.load()
        if not loaded.wait(timeout):
            typer.echo(f"Timed out after {timeout:g}s loading posts.", err=True)
            raise typer.Exit(code=1)
    if view_model.error is not None:
        _fail(view_model.error)
    posts = view_model.posts_by_user(user_id) if user_id is not None else view_model.posts
    for post in posts:
        typer.echo(f"{post.id:>4}  {post.title}")
    typer.echo(f"{len(posts)} post(s).")


@app.command("generate")
def generate_command(
    sample: Path = typer.Argument(..., help="JSON sample file.", exists=True, dir_okay=False, readable=True),
    root: str = typer.Option("Root", "--root", "-r", help="Class name of the top-level model."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the generated module here instead of stdout."),
) -> None:
    """Generate pydantic models from a JSON SAMPLE."""

    try:
        source = generate_models_from_json(sample.read_bytes(), root_name=root)
    except (DecodeError, ValueError) as exc:
        typer.echo(f"Cannot generate models: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    if output is None:
        typer.echo(source, nl=False)
        return
    output.write_text(source, encoding="utf-8")
    typer.echo(f"Models written to {output}")


@app.command("verify")
def verify_command(ctx: typer.Context) -> None:
    """Verify that the JSONPlaceholder API returns decodable users."""

    settings = _require_settings(ctx)
    with _build_session(settings) as session:
        adapter = JSONPlaceholderAdapter(client=JSONPlaceholderClient(base_url=settings.base_url, session=session, timeout=settings.timeout * 2))
        result = adapter.verify()
    typer.echo(result.message)
    if result.details:
        for key, value in result.details.items():
            typer.echo(f"  {key}: {value}")
    if not result.success:
        raise typer.Exit(code=1)


if __name__ == "__main__":  # pragma: no cover
    app()
