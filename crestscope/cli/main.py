"""CrestScope CLI - spectrograms and crest factor for a folder of audio."""
from __future__ import annotations
import argparse
import json
import sys
from pathlib import Path

from crestscope.version import __version__
from crestscope.config.settings import (
    CSV_SCHEMAS,
    DEFAULT_WIDTH_PX,
    DEFAULT_ZOOM_OFFSET,
    DEFAULT_ZOOM_SECONDS,
    AnalysisSettings,
    build_settings,
    load_settings_file,
    parse_formats,
)
from crestscope.deps.packages import ensure_tools
from crestscope.errors import DependencyInstallError, NoPackageManagerError
from crestscope.pipeline import run_batch
from crestscope.reporting.results_csv import ResultWriter, get_schema
from crestscope.reporting.run_summary import build_run_summary, render_run_summary


EXIT_OK = 0
EXIT_BAD_ARGS = 2
EXIT_DEPENDENCY_ERROR = 3
EXIT_INTERNAL_ERROR = 5

EPILOG = """\
Outputs:
    - PNG spectrograms (stacked full + zoom views)
    - crest_factor_flac.csv and crest_factor_wav.csv with metrics
"""


def _settings_from_args(args) -> AnalysisSettings:
    config = load_settings_file(args.config) if getattr(args, "config", None) else None
    return build_settings(
        config=config,
        source_dir=Path(args.directory),
        output_dir=Path(args.output_dir) if args.output_dir else None,
        width=args.width,
        zoom_seconds=args.zoom,
        zoom_offset=args.offset,
        formats=args.formats,
        csv_schema=args.csv_schema,
        allow_install=args.allow_install,
    )


def _prepare_dirs(settings: AnalysisSettings) -> str | None:
    """Validate the source directory and create the output one; return an error message."""
    if not settings.source_dir.is_dir():
        return f"'{settings.source_dir}' is not a directory"
    try:
        settings.out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return f"could not create output directory '{settings.out_dir}': {e}"
    return None


def cmd_run(args) -> int:
    """Analyze every configured format in the source directory."""
    try:
        settings = _settings_from_args(args)
    except FileNotFoundError as e:
        print(f"Error: Config not found - {e}", file=sys.stderr)
        return EXIT_BAD_ARGS
    except json.JSONDecodeError as e:
        print(f"Error: Invalid config JSON - {e}", file=sys.stderr)
        return EXIT_BAD_ARGS
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BAD_ARGS

    problem = _prepare_dirs(settings)
    if problem:
        print(f"Error: {problem}", file=sys.stderr)
        return EXIT_BAD_ARGS

    try:
        ensure_tools(allow_install=settings.allow_install)
    except NoPackageManagerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_DEPENDENCY_ERROR
    except DependencyInstallError as e:
        print(f"Error: dependency install failed - {e}", file=sys.stderr)
        return EXIT_DEPENDENCY_ERROR

    try:
        writer = ResultWriter(settings.out_dir, get_schema(settings.csv_schema))
        outcomes = run_batch(settings, writer)
        summary = build_run_summary(outcomes, writer.written_files(settings.formats))
        print(render_run_summary(summary))
        if args.summary_json:
            out_path = settings.out_dir / Path(args.summary_json).name
            out_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
            print(f"Summary written to: {out_path}", file=sys.stderr)
        return EXIT_OK
    except Exception as e:
        print(f"Internal error: {e}", file=sys.stderr)
        return EXIT_INTERNAL_ERROR


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {text!r}") from None
    if value <= 0:
        raise argparse.ArgumentTypeError("must be > 0")
    return value


def _float_at_least(minimum: float, *, strict: bool):
    def parse(text: str) -> float:
        try:
            value = float(text)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid number: {text!r}") from None
        if value < minimum or (strict and value == minimum):
            raise argparse.ArgumentTypeError(
                f"must be {'>' if strict else '>='} {minimum:g}"
            )
        return value
    return parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crestscope",
        description=(
            "Generate spectrograms and calculate crest factor "
            "(peak-to-RMS ratio) for audio files."
        ),
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version",
        version=f"crestscope {__version__}"
    )
    parser.add_argument(
        "-w", dest="width", metavar="WIDTH", type=_positive_int, default=None,
        help=f"Set spectrogram width in pixels (default: {DEFAULT_WIDTH_PX})"
    )
    parser.add_argument(
        "-z", dest="zoom", metavar="SECONDS",
        type=_float_at_least(0.0, strict=True), default=None,
        help=f"Set zoom window duration (default: {DEFAULT_ZOOM_SECONDS:g})"
    )
    parser.add_argument(
        "-o", dest="offset", metavar="OFFSET",
        type=_float_at_least(0.0, strict=False), default=None,
        help=f"Set zoom window start offset (default: {DEFAULT_ZOOM_OFFSET:g})"
    )
    parser.add_argument(
        "--config",
        help="JSON file with default tunables (command-line options win)"
    )
    parser.add_argument(
        "--formats", type=parse_formats, default=None,
        help="Comma-separated formats to process, in order (default: flac,wav)"
    )
    parser.add_argument(
        "--csv-schema", choices=list(CSV_SCHEMAS), default=None,
        help="CSV column layout; 'dnr' keeps the legacy DNR column names (default: crest_factor)"
    )
    parser.add_argument(
        "--no-install", dest="allow_install", action="store_const", const=False, default=None,
        help="Fail instead of installing missing tools with the system package manager"
    )
    parser.add_argument(
        "--summary-json",
        help="Write a JSON run summary with this filename into the output directory"
    )
    parser.add_argument(
        "directory", nargs="?", default=".",
        help="Directory containing audio files (default: current directory)"
    )
    parser.add_argument(
        "output_dir", nargs="?", default=None,
        help="Directory for images and CSVs (default: DIRECTORY); created if missing"
    )
    parser.set_defaults(func=cmd_run)
    return parser


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
