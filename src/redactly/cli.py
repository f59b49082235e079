"""Command-line interface for Redactly.

Provides:
- `run`: Extract, detect and redact a PDF or DOCX file, printing the result.
- `api`: Launch the FastAPI review service.
"""

import asyncio
from pathlib import Path
from typing import Optional

import orjson
import typer
from rich import print
from rich.table import Table

from .errors import RedactlyError
from .pipeline import RedactionOptions, RedactionSession, RunConfig
from .settings import get_settings

app = typer.Typer(add_completion=False, help="Redactly document redaction")


@app.command()
def run(
    input: str = typer.Option(..., "--input", "-i", help="Input document (PDF/DOCX)"),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Write redacted text here instead of stdout"
    ),
    details: Optional[str] = typer.Option(
        None, help="Write document metadata and candidates as JSON"
    ),
    sensitivity: int = typer.Option(50, min=0, max=100, help="Sensitivity level 0-100"),
    pii: bool = typer.Option(True, "--pii/--no-pii", help="Redact personal data"),
    financial: bool = typer.Option(
        True, "--financial/--no-financial", help="Redact monetary amounts"
    ),
    dates: bool = typer.Option(True, "--dates/--no-dates", help="Redact dates"),
    secondary: Optional[str] = typer.Option(
        None, help="Secondary detector: none | spacy | llm (default from env)"
    ),
):
    """Redact sensitive spans from a document.

    Parameters
    ----------
    input:
        PDF or DOCX file to process.
    output:
        Optional path for the redacted text.
    details:
        Optional JSON path for metadata and candidate list.
    sensitivity:
        Higher values lower the confidence bar for redaction.
    """
    cfg = RunConfig.from_settings(get_settings())
    if secondary:
        cfg.secondary_detector = secondary.strip().lower()
    options = RedactionOptions(
        sensitivity_level=sensitivity,
        redact_pii=pii,
        redact_financial=financial,
        redact_dates=dates,
    )
    session = RedactionSession(cfg)

    async def _go():
        await session.process_path(input)
        return await session.apply_options(options)

    try:
        result = asyncio.run(_go())
    except (RedactlyError, FileNotFoundError) as exc:
        print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)

    document = session.document
    table = Table(title="Redaction candidates")
    for col in ("id", "type", "text", "confidence", "review"):
        table.add_column(col)
    for cand in result.candidates:
        table.add_row(
            cand.id,
            cand.type,
            cand.text,
            f"{cand.confidence:.2f}",
            "yes" if cand.needs_review else "",
        )
    print(table)

    if output:
        Path(output).write_text(result.redacted_text, encoding="utf-8")
        print(f"[green]Redacted text:[/green] {output}")
    else:
        typer.echo(result.redacted_text)
    if details and document is not None:
        payload = {
            "metadata": document.metadata.model_dump(mode="json"),
            "candidates": [c.model_dump(mode="json") for c in result.candidates],
            "options": options.model_dump(mode="json"),
        }
        Path(details).write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
        print(f"[green]Details:[/green] {details}")


@app.command()
def api(
    host: Optional[str] = typer.Option(None, help="Host to bind (default from env)"),
    port: Optional[int] = typer.Option(None, help="Port to bind (default from env)"),
    reload: bool = typer.Option(False, help="Auto-reload on code changes"),
):
    """Launch the review API server."""
    from .api import run as run_api

    run_api(host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
