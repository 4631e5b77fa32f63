"""CLI entry points for cardscan.

Usage:
    cardscan scan card.jpg --json
    cardscan scan group-photo.png --multi
    cardscan parse-text card.txt
    cardscan status
"""

import asyncio
import json
import sys
from pathlib import Path

import click

from . import __version__
from .errors import InvalidImageError
from .extraction.pipeline import ExtractionPipeline
from .logging import setup_logging
from .models import FieldSet


def _print_fields(fields: FieldSet, indent: str = "  ") -> None:
    for name, value in fields.to_dict().items():
        if value:
            click.echo(f"{indent}{name}: {value}")


@click.group()
@click.version_option(version=__version__, prog_name="cardscan")
def main():
    """cardscan - business card contact extraction.

    Command-line tools for running the extraction cascade on card images
    and text.
    """
    setup_logging()


@main.command("scan")
@click.argument("image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--multi", is_flag=True, help="Image may contain several cards")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scan(image: Path, multi: bool, as_json: bool) -> None:
    """Extract contact information from a card image."""

    async def _scan():
        pipeline = ExtractionPipeline()
        try:
            if multi:
                return await pipeline.extract_multi(image.read_bytes())
            return await pipeline.extract_single(image.read_bytes())
        finally:
            await pipeline.aclose()

    try:
        result = asyncio.run(_scan())
    except InvalidImageError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    click.echo(f"Method: {result.method}")
    if multi:
        click.echo(f"Contacts: {len(result.contacts)}")
        for index, contact in enumerate(result.contacts, start=1):
            click.echo(f"  Contact {index}:")
            _print_fields(contact, indent="    ")
    else:
        _print_fields(result.fields)


@main.command("parse-text")
@click.argument("source", type=click.File("r"), default="-")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def parse_text(source, as_json: bool) -> None:
    """Extract contact information from card text (rules only)."""
    fields = ExtractionPipeline().extract_from_text(source.read())

    if as_json:
        click.echo(json.dumps(fields.model_dump(mode="json"), indent=2))
    else:
        _print_fields(fields)


@main.command("status")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def status(as_json: bool) -> None:
    """Show availability of the vision, text model and OCR collaborators."""
    result = asyncio.run(ExtractionPipeline().status())

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    click.echo(
        f"Vision:     {result.vision_provider}/{result.vision_model} "
        f"({'configured' if result.vision_configured else 'not configured'})"
    )
    click.echo(
        f"Text model: {result.text_provider}/{result.text_model} "
        f"({'available' if result.text_model_available else 'unavailable'})"
    )
    if result.text_models_installed:
        click.echo(f"  Installed: {', '.join(result.text_models_installed)}")
    click.echo(
        f"OCR:        {'tesseract ' + result.ocr_version if result.ocr_available else 'unavailable'}"
    )


if __name__ == "__main__":
    main()
