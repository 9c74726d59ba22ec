"""Command-line interface for NoticeShield.

Verdicts are printed to stdout as JSON; logs go to stderr. Scan commands exit
with status 1 when the verdict is unsafe and 2 when the input cannot be
scanned.
"""

from __future__ import annotations

import json
import mimetypes
import sys
from pathlib import Path

import click

from noticeshield.config import get_settings
from noticeshield.logging import setup_logging
from noticeshield.security.catalog import compile_catalog, load_catalog_file
from noticeshield.security.engine import ThreatEngine
from noticeshield.security.models import CatalogError, ContextTag, InvalidInputError, Verdict

EXIT_UNSAFE = 1
EXIT_INVALID_INPUT = 2


def _emit(verdict: Verdict) -> None:
    click.echo(json.dumps(verdict.to_dict(), indent=2))
    if not verdict.safe:
        sys.exit(EXIT_UNSAFE)


def _build_engine() -> ThreatEngine:
    try:
        return ThreatEngine.from_settings()
    except CatalogError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_INVALID_INPUT)


def _read_text(text: str) -> str:
    return sys.stdin.read() if text == "-" else text


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log at the configured level")
def main(verbose: bool) -> None:
    """NoticeShield: scan uploads and user input for injection and malware signals."""
    settings = get_settings()
    if not verbose:
        settings = settings.model_copy(update={"log_level": "WARNING"})
    setup_logging(settings)


@main.command("scan-file")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--category", "-c", required=True, help="Upload category (images, documents, ...)")
@click.option("--media-type", "-t", default=None, help="Declared media type (guessed if omitted)")
@click.option("--name", default=None, help="Declared file name (defaults to the file's name)")
@click.option("--declared-size", type=int, default=None, help="Declared size in bytes")
def scan_file(
    path: Path,
    category: str,
    media_type: str | None,
    name: str | None,
    declared_size: int | None,
) -> None:
    """Scan a file as if it had just been uploaded."""
    data = path.read_bytes()
    if media_type is None:
        media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    engine = _build_engine()
    try:
        verdict = engine.scan_binary(
            data,
            declared_name=name or path.name,
            declared_media_type=media_type,
            declared_size=len(data) if declared_size is None else declared_size,
            category=category,
        )
    except InvalidInputError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_INVALID_INPUT)
    _emit(verdict)


@main.command("scan-text")
@click.argument("text")
@click.option(
    "--context",
    "-x",
    type=click.Choice([tag.value for tag in ContextTag]),
    default=ContextTag.GENERIC.value,
    show_default=True,
    help="Where the text will be used",
)
def scan_text(text: str, context: str) -> None:
    """Scan TEXT (or stdin when TEXT is '-') for injection patterns."""
    engine = _build_engine()
    try:
        verdict = engine.scan_text(_read_text(text), context)
    except InvalidInputError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_INVALID_INPUT)
    _emit(verdict)


@main.command()
@click.argument("text")
@click.option("--rich", is_flag=True, help="Keep the configured rich-text tags")
@click.option("--keep-schemes", is_flag=True, help="Do not strip javascript:/vbscript: prefixes")
def sanitize(text: str, rich: bool, keep_schemes: bool) -> None:
    """Print a defanged version of TEXT (or stdin when TEXT is '-')."""
    engine = _build_engine()
    content = _read_text(text)
    if rich:
        click.echo(engine.render_rich_text(content))
    else:
        click.echo(engine.sanitize(content, engine.sanitize_policy(strip_schemes=not keep_schemes)))


@main.group()
def catalog() -> None:
    """Inspect and validate rule catalogs."""


@catalog.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate(path: Path) -> None:
    """Check that a JSON catalog loads and every pattern compiles."""
    try:
        compiled = compile_catalog(load_catalog_file(path), source=str(path))
    except CatalogError as e:
        click.echo(f"Invalid: {e}", err=True)
        sys.exit(1)
    click.echo(f"OK: version {compiled.version}, {compiled.rule_count} rules")


@catalog.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write to a file instead of stdout",
)
def export(output: Path | None) -> None:
    """Export the built-in catalog as JSON."""
    from noticeshield.security.default_rules import default_catalog

    payload = default_catalog().model_dump_json(indent=2)
    if output is None:
        click.echo(payload)
        return
    output.write_text(payload + "\n", encoding="utf-8")
    click.echo(f"Wrote {output}")


if __name__ == "__main__":
    main()
