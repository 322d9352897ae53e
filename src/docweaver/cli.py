"""CLI helper to expand the documentation tags of a document manifest."""

from __future__ import annotations

import argparse
import logging
from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from .config import ProcessingSettings
from .errors import DocweaverError, TagProcessorError
from .manifest import DocumentManifestReader, DocumentManifestWriter
from .pipeline import DocPipeline, PipelineResult
from .registry import DEFAULT_PROCESSOR_REGISTRY, ProcessorNotFoundError, ProcessorRegistry

console = Console(stderr=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docweaver",
        description="Expand @include, @set/@get, @sample and other tags in documentation comments.",
    )
    parser.add_argument("manifest", help="JSONL manifest with one document record per line")
    parser.add_argument(
        "--output",
        default=None,
        help="Where to write the processed manifest (default: print a summary only)",
    )
    parser.add_argument(
        "--processors",
        default=None,
        help="Comma separated processor names, in order (default: DOCWEAVER_PROCESSORS or the built-in order)",
    )
    parser.add_argument(
        "--registry",
        default=None,
        help="Optional JSON file with additional processors ({name, target, description} entries)",
    )
    parser.add_argument("--process-limit", type=int, default=None, help="Maximum number of passes per processor")
    parser.add_argument("--max-workers", type=int, default=None, help="Worker threads for parallel passes")
    parser.add_argument(
        "--no-log-not-found",
        action="store_true",
        help="Do not warn about @get keys that never get a value.",
    )
    parser.add_argument("--no-presort", action="store_true", help="Do not pre-sort documents by include dependencies.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> ProcessingSettings:
    return ProcessingSettings.from_env(
        processors=args.processors,
        process_limit=args.process_limit,
        max_workers=args.max_workers,
        log_not_found=False if args.no_log_not_found else None,
        presort_includes=False if args.no_presort else None,
    )


def render_result(result: PipelineResult) -> None:
    table = Table(title="Processed documentation")
    table.add_column("Path", style="cyan")
    table.add_column("Modified", justify="center")
    table.add_column("Tags left")
    for document in result.documents:
        table.add_row(
            escape(document.path),
            "[green]yes[/green]" if document.modified else "[dim]no[/dim]",
            escape(", ".join(sorted(document.tags))) or "-",
        )
    console.print(table)
    for warning in result.warnings:
        console.print(f"[yellow]warning:[/yellow] {escape(warning)}", highlight=False)


def render_error(error: DocweaverError) -> None:
    console.print(f"[red]error:[/red] {error.__class__.__name__}", highlight=False)
    if isinstance(error, TagProcessorError):
        doc_location, tag_location = error.locations()
        console.print(f"Doc processor [bold]{escape(error.processor_name)}[/bold] failed processing doc", highlight=False)
        console.print(f"Doc location: {escape(doc_location)}", highlight=False)
        console.print(f"Exception location: {escape(tag_location)}", highlight=False)
        if error.cause is not None:
            console.print(f"Reason: {escape(str(error.cause))}", highlight=False)
        start, end = error.span
        text = Text(error.current_content)
        text.stylize("bold white on red", start, end)
        console.print(text)
        return
    console.print(escape(str(error)), highlight=False)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = settings_from_args(args)
    except ValueError as exc:
        raise SystemExit(f"Invalid settings: {exc}") from exc

    registry = DEFAULT_PROCESSOR_REGISTRY
    if args.registry:
        registry = registry.merged(ProcessorRegistry.from_json(args.registry))

    try:
        pipeline = DocPipeline(registry=registry, settings=settings)
    except ProcessorNotFoundError as exc:
        raise SystemExit(str(exc)) from exc

    documents = DocumentManifestReader(args.manifest).read()
    try:
        result = pipeline.run(documents)
    except DocweaverError as exc:
        render_error(exc)
        return 1

    render_result(result)
    if args.output:
        DocumentManifestWriter(args.output).write(result.documents)
        console.print(f"Processed manifest written to {escape(args.output)}", highlight=False)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
