import asyncio
import logging
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, TypeVar

import typer

from rmsync.config import SyncSettings
from rmsync.native import (
    CloudClient,
    RemoteFolder,
    SyncError,
    TokenManager,
    YamlCredentialStore,
)

T = TypeVar("T")

app = typer.Typer()


def _run(coro: Coroutine[Any, Any, T]) -> T:
    try:
        return asyncio.run(coro)
    except SyncError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


def _cloud(ctx: typer.Context) -> CloudClient:
    return ctx.obj["cloud"]


@app.callback()
def main(
    ctx: typer.Context,
    credentials: Path = typer.Option(None, help="Credential file"),
    user: str = typer.Option("default", help="User id the credential belongs to"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)
    ctx.ensure_object(dict)
    tokens = TokenManager(YamlCredentialStore(credentials), SyncSettings())
    ctx.obj["cloud"] = CloudClient(tokens, user)


@app.command()
def connect(ctx: typer.Context, code: str):
    """Pair this client using a one-time code."""
    cloud = _cloud(ctx)
    _run(cloud.tokens.connect(cloud.user_id, code))
    print("Connected")


@app.command()
def disconnect(ctx: typer.Context):
    cloud = _cloud(ctx)
    cloud.tokens.disconnect(cloud.user_id)
    print("Disconnected")


@app.command()
def status(ctx: typer.Context):
    cloud = _cloud(ctx)
    if not cloud.is_connected():
        print("Not connected")
        raise typer.Exit(code=1)
    ok = _run(cloud.test_connection())
    print("Connected" if ok else "Connected, but the cloud is unreachable")


@app.command()
def ls(ctx: typer.Context, path: str = typer.Argument("/")):
    """List the documents in a folder."""
    for doc in _run(_cloud(ctx).get_documents(path)):
        print(f"[f]\t{doc.name}\t{doc.id}")


def _print_folders(folders: list[RemoteFolder], depth: int = 0) -> None:
    for folder in folders:
        print(f"{'  ' * depth}{folder.name}/ ({folder.document_count})")
        _print_folders(folder.children, depth + 1)


@app.command()
def folders(ctx: typer.Context):
    """Show the folder tree."""
    _print_folders(_run(_cloud(ctx).get_folders()))


@app.command()
def mkdir(ctx: typer.Context, path: str):
    print(_run(_cloud(ctx).create_folder(path)))


@app.command()
def put(
    ctx: typer.Context,
    file: Path,
    folder: str = typer.Argument("/"),
    name: str = typer.Option(None, help="Display name (defaults to the file name)"),
):
    """Upload a PDF into a folder."""
    if not file.exists():
        typer.echo(f"Error: No file found at '{file}'", err=True)
        raise typer.Exit(code=1)

    doc_id = _run(_cloud(ctx).upload_pdf(file.read_bytes(), name or file.stem, folder))
    print(doc_id)


@app.command()
def get(ctx: typer.Context, document_id: str, output: Path):
    """Download a document to a local file."""
    content = _run(_cloud(ctx).download_document(document_id))
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(content)
    print(f"Saved {len(content)} bytes to {output}")


if __name__ == "__main__":
    app()
