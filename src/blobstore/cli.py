import contextlib
import logging
import shutil
from collections.abc import Iterator
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from blobstore.errors import BlobStoreError
from blobstore.settings import AppSettings
from blobstore.storage.blob_store import BlobStore
from blobstore.storage.index_file import format_line

app = typer.Typer()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v")] = False,
) -> None:
    """Content-addressable blob store CLI."""
    settings = AppSettings()
    _configure_logging("DEBUG" if verbose else settings.app_log_level)
    ctx.obj = settings


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@contextlib.contextmanager
def _reporting_errors() -> Iterator[None]:
    try:
        yield
    except BlobStoreError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _open_store(ctx: typer.Context) -> BlobStore:
    settings: AppSettings = ctx.obj
    return settings.open_store()


@app.command("put")
def put(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument()],
    path: Annotated[str, typer.Argument(help="File to store, or - for stdin.")],
) -> None:
    if not key or "\n" in key:
        raise typer.BadParameter("must be non-empty and fit on one line", param_hint="KEY")
    if path != "-" and not Path(path).is_file():
        raise typer.BadParameter(f"{path} is not a file", param_hint="PATH")

    with _reporting_errors():
        store = _open_store(ctx)
        if path == "-":
            digest = store.put(key, typer.get_binary_stream("stdin"))
        else:
            with Path(path).open("rb") as source:
                digest = store.put(key, source)
    typer.echo(format_line(key, digest), nl=False)


@app.command("get")
def get(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument()],
    output: Annotated[Path | None, typer.Option("--output", "-o")] = None,
) -> None:
    with _reporting_errors():
        stream = _open_store(ctx).get(key)
    if stream is None:
        typer.echo(f"error: no blob stored under {key!r}", err=True)
        raise typer.Exit(code=1)

    try:
        with stream:
            if output is None:
                sink = typer.get_binary_stream("stdout")
                shutil.copyfileobj(stream, sink)
                sink.flush()
            else:
                with output.open("wb") as sink:
                    shutil.copyfileobj(stream, sink)
    except (OSError, EOFError) as exc:
        typer.echo(f"error: could not read blob for {key!r}: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command("remove")
def remove(ctx: typer.Context, key: Annotated[str, typer.Argument()]) -> None:
    with _reporting_errors():
        _open_store(ctx).remove(key)


@app.command("list")
def list_keys(ctx: typer.Context) -> None:
    with _reporting_errors():
        index = _open_store(ctx).list_index()
    for key in sorted(index):
        typer.echo(format_line(key, index[key]), nl=False)


if __name__ == "__main__":
    app()
