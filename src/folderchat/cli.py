"""Command line interface for FolderChat."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from folderchat.config import AppConfig
from folderchat.errors import FolderChatError, IndexUnavailable
from folderchat.ingestion.connectors import DriveConnector, LocalFolderConnector, SourceConnector
from folderchat.models import ChatTurn
from folderchat.services import build_services
from folderchat.web.app import app as web_app


console = Console()
app = typer.Typer(help="FolderChat - chat with a folder of documents")

EXIT_WORDS = {"exit", "quit", ":q"}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _make_connector(drive: bool, token: Optional[str]) -> SourceConnector:
    if drive:
        if not token:
            raise typer.BadParameter("--token is required with --drive")
        return DriveConnector(token)
    return LocalFolderConnector()


def _print_citations(citations) -> None:
    if not citations:
        return
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#")
    table.add_column("Source")
    table.add_column("Relevance")
    for citation in citations:
        table.add_row(
            str(citation.number),
            citation.file_name,
            f"{citation.relevance_score * 100:.1f}%",
        )
    console.print(table)


@app.command()
def chat(
    folder: str = typer.Argument(..., help="Local directory, or a Drive folder id with --drive."),
    drive: bool = typer.Option(False, "--drive", help="Treat FOLDER as a Google Drive folder id"),
    token: Optional[str] = typer.Option(
        None, "--token", envvar="GOOGLE_ACCESS_TOKEN", help="OAuth access token for Drive"
    ),
    model: str = typer.Option(AppConfig().model_name, help="Sentence-transformer model name"),
    llm_model: str = typer.Option(AppConfig().llm_model, help="Chat completion model"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index a folder, then answer questions about it."""
    _setup_logging(verbose)
    folder_id = folder if drive else str(Path(folder).expanduser().resolve())
    connector = _make_connector(drive, token)

    config = AppConfig.from_env()
    config.model_name = model
    config.llm_model = llm_model
    config.file_delay = 0.0
    config.between_files_delay = 0.0
    services = build_services(config)

    console.print(f"Processing [bold]{folder}[/bold]...")
    try:
        result = services.processor(connector).process(folder_id)
    except FolderChatError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    for event in services.bus.get(folder_id):
        console.print(event.message, highlight=False)
    console.print(
        f"Processed {result.documents_processed}/{result.total_files} files "
        f"from [bold]{result.folder_name}[/bold]."
    )

    history: List[ChatTurn] = []
    while True:
        question = typer.prompt("Question", default="", show_default=False).strip()
        if not question or question.lower() in EXIT_WORDS:
            break
        try:
            answer = services.citations.answer(folder_id, question, history)
        except IndexUnavailable:
            console.print("[yellow]Index not found. Please process the folder again.[/yellow]")
            break
        console.print(answer.response)
        _print_citations(answer.citations)
        history.append(ChatTurn(role="user", content=question))
        history.append(ChatTurn(role="assistant", content=answer.response))


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
) -> None:
    """Start the HTTP API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    console.print(f"Starting FolderChat API on http://{host}:{port}")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
