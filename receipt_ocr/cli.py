"""
Command-line interface for the receipt OCR worker.

Usage examples:
    python -m receipt_ocr.cli scan receipts/invoice.png --output output/job.json
    python -m receipt_ocr.cli scan https://example.com/receipt.jpg --user-id u-42
    python -m receipt_ocr.cli parse-qr "01GTKT0/001|AA/23E|0000123|25/12/2023|..."
    python -m receipt_ocr.cli parse-text --input output/recognized.txt
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from .config import configure_logging, get_settings
from .events import InMemoryEventPublisher
from .pipeline import build_pipeline
from .qr import parse_invoice_qr
from .schema import JobStatus
from .store import InMemoryJobStore
from .text_parser import parse_expense_text

app = typer.Typer(help="Receipt image to expense extraction CLI.")


def _ensure_parent_directory(path: Path) -> None:
    """
    Ensure the parent directory for a file path exists.
    """
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)


@app.command()
def scan(
    file_url: str = typer.Argument(..., help="Image URL, file:// URL or local path."),
    user_id: str = typer.Option("cli", "--user-id", help="Owner recorded on the job."),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        help="Path to write the final job record as JSON.",
    ),
) -> None:
    """
    Run one extraction job synchronously and print its outcome.
    """
    store = InMemoryJobStore()
    publisher = InMemoryEventPublisher()
    pipeline = build_pipeline(store=store, publisher=publisher)

    job = store.create(user_id, file_url)
    job = pipeline.run(job.id)

    record = job.model_dump(mode="json", by_alias=True)
    if output:
        output_path = Path(output)
        _ensure_parent_directory(output_path)
        with output_path.open("w", encoding="utf-8") as f:
            json.dump(record, f, indent=2, ensure_ascii=False)

    typer.echo(f"Job {job.id}: {job.status.value}")
    if job.status == JobStatus.FAILED:
        typer.echo(f"Error: {job.error_message}", err=True)
        raise typer.Exit(code=2)

    expense = job.result_json["expenseData"]
    typer.echo(f"Source: {expense['source']}")
    typer.echo(f"Amount: {expense['amount']}")
    typer.echo(f"Description: {expense['description']}")
    typer.echo(f"Spent at: {expense['spentAt']}")
    typer.echo(f"Category: {expense['category'] or 'None'}")


@app.command("parse-qr")
def parse_qr(
    payload: str = typer.Argument(..., help="Raw pipe-delimited e-invoice QR payload."),
) -> None:
    """
    Parse a Vietnamese e-invoice QR payload and print it as JSON.
    """
    invoice = parse_invoice_qr(payload)
    if invoice is None:
        typer.echo("Payload does not match the e-invoice QR format", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(invoice.model_dump(by_alias=True), indent=2, ensure_ascii=False))


@app.command("parse-text")
def parse_text(
    input: str = typer.Option(..., "--input", help="Text file with recognized receipt text."),
    confidence: float = typer.Option(
        100.0,
        "--confidence",
        help="Recognition confidence (0-100) to record on the expense.",
    ),
) -> None:
    """
    Extract an expense record from already-recognized receipt text.
    """
    input_path = Path(input)
    if not input_path.exists():
        typer.echo(f"Input text not found: {input_path}", err=True)
        raise typer.Exit(code=1)

    expense = parse_expense_text(input_path.read_text(encoding="utf-8"), confidence)
    typer.echo(json.dumps(expense.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))


def main() -> None:
    """
    Entrypoint used when executing as a module.
    """
    configure_logging(get_settings().LOG_LEVEL)
    app()


if __name__ == "__main__":
    main()
