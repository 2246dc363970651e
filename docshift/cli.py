#!/usr/bin/env python3
"""
Command line interface for docshift.

Converts documents between formats through the docshift intermediate
representation, and lists the available formats and transforms.

Examples:
    docshift convert report.docx -o report.txt
    docshift convert data.csv --to json --pretty
    cat notes.ans | docshift convert - --from ansi --to text
    docshift formats

To add new input formats: See docshift/readers/__init__.py
To add new output formats: See docshift/writers/__init__.py
To add new transforms: See docshift/transforms/base.py
"""

import argparse
import logging
import mimetypes
import sys
from pathlib import Path
from typing import List, Optional

from docshift import pipeline
from docshift.core.errors import DocshiftError, ReadIoError, WriteIoError
from docshift.core.fidelity import FidelityWarning
from docshift.core.options import EmitOptions, ParseOptions
from docshift.formats import STDIO, FormatCatalog
from docshift.transforms.base import TransformRegistry
from docshift.writers.base import OutputWriter

LOGGER = logging.getLogger(__name__)


def format_warning(warning: FidelityWarning) -> str:
    """Render a warning the way it is shown to the operator."""
    return f"warning [{warning.severity}] {warning.kind.label}: {warning.message}"


def report_warnings(warnings: List[FidelityWarning]) -> None:
    for warning in warnings:
        print(format_warning(warning), file=sys.stderr)


def read_input(source: str) -> bytes:
    if source == STDIO:
        return pipeline.read_stream(sys.stdin.buffer)
    try:
        return Path(source).read_bytes()
    except OSError as e:
        raise ReadIoError(e) from e


def write_output(target: Optional[str], data: bytes) -> None:
    if target is None or target == STDIO:
        try:
            sys.stdout.buffer.write(data)
            sys.stdout.buffer.flush()
        except OSError as e:
            raise WriteIoError(e) from e
        return
    path = Path(target)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        raise WriteIoError(e) from e


def extract_media(writer: OutputWriter, doc, out_dir: Path) -> List[Path]:
    """
    Write the document's exportable resources to a directory.

    Each resource becomes `<id><ext>`, with the extension guessed from its
    MIME type ('.bin' when unknown).
    """
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WriteIoError(e) from e

    written = []
    for resource_id, mime_type, data in writer.exportable_resources(doc):
        ext = mimetypes.guess_extension(mime_type) or ".bin"
        path = out_dir / f"{resource_id}{ext}"
        try:
            path.write_bytes(data)
        except OSError as e:
            raise WriteIoError(e) from e
        LOGGER.debug("extracted resource %s to %s", resource_id, path)
        written.append(path)
    return written


def run_convert(args) -> int:
    from_format = FormatCatalog.resolve(args.from_format, args.input)
    to_format = FormatCatalog.resolve(args.to_format, args.output, for_writing=True)
    LOGGER.debug("converting %s (%s) to %s (%s)", args.input, from_format, args.output or STDIO, to_format)

    reader = pipeline.get_reader(from_format)
    writer = pipeline.get_writer(to_format)
    transforms = pipeline.build_pipeline(args.transforms or [])

    parse_options = ParseOptions(
        preserve_source_info=args.preserve_source,
        embed_resources=not args.no_embed,
    )
    emit_options = EmitOptions(
        pretty=args.pretty,
        use_source_info=args.use_source_info,
    )

    parsed = reader.parse(read_input(args.input), parse_options)
    doc = transforms.transform(parsed.value)
    emitted = writer.emit(doc, emit_options)

    write_output(args.output, emitted.value)

    if args.extract_media:
        written = extract_media(writer, doc, Path(args.extract_media))
        if args.output not in (None, STDIO):
            print(f"✓ Extracted {len(written)} resource(s) to {args.extract_media}", file=sys.stderr)

    report_warnings(parsed.warnings + emitted.warnings)
    return 0


def run_formats(args) -> int:
    formats = FormatCatalog.all()
    name_width = max([len("FORMAT")] + [len(info.name) for info in formats])
    print(f"{'FORMAT':<{name_width}}  READ  WRITE  EXTENSIONS")
    for info in formats:
        read_flag = "yes" if info.can_read else "no"
        write_flag = "yes" if info.can_write else "no"
        exts = ", ".join(info.extensions) if info.extensions else "(none)"
        print(f"{info.name:<{name_width}}  {read_flag:<4}  {write_flag:<5}  {exts}")
    return 0


def run_transforms(args) -> int:
    for info in sorted(TransformRegistry.list_transforms(), key=lambda t: t["name"]):
        print(f"  {info['name']}: {info['description']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docshift",
        description="Convert documents between formats, reporting what was lost.",
        epilog="""
Formats are chosen by --from/--to or by file extension. Use '-' for
stdin/stdout (then the format must be given explicitly).

To add new formats, see the docshift.readers and docshift.writers packages.
        """,
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug logging on stderr"
    )
    subparsers = parser.add_subparsers(dest="command")

    convert = subparsers.add_parser("convert", help="Convert a document")
    convert.add_argument("input", help="Input file, or '-' for stdin")
    convert.add_argument("-o", "--output", help="Output file (default: stdout)")
    convert.add_argument("--from", dest="from_format", help="Input format (default: from extension)")
    convert.add_argument("--to", dest="to_format", help="Output format (default: from output extension)")
    convert.add_argument(
        "-t",
        "--transform",
        dest="transforms",
        action="append",
        metavar="NAME[:ARG]",
        help="Apply a transform; may be repeated (e.g. shift-headings:1)",
    )
    convert.add_argument(
        "--extract-media",
        metavar="DIR",
        help="Write embedded resources to DIR as <id><ext>",
    )
    convert.add_argument("--pretty", action="store_true", help="Pretty-print output where supported")
    convert.add_argument(
        "--preserve-source",
        action="store_true",
        help="Keep format-specific details (e.g. page geometry) from the input",
    )
    convert.add_argument(
        "--use-source-info",
        action="store_true",
        help="Let the writer restore those details when the formats match",
    )
    convert.add_argument(
        "--no-embed",
        action="store_true",
        help="Reference images instead of embedding them",
    )
    convert.add_argument(
        "-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help=argparse.SUPPRESS
    )
    convert.set_defaults(handler=run_convert)

    formats = subparsers.add_parser("formats", help="List supported formats")
    formats.set_defaults(handler=run_formats)

    transforms = subparsers.add_parser("transforms", help="List available transforms")
    transforms.set_defaults(handler=run_transforms)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not getattr(args, "handler", None):
        parser.print_help()
        return 1

    try:
        return args.handler(args)
    except DocshiftError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
