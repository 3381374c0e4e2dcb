#!/usr/bin/env python3
"""
BND Archive Tool - Entry Point

Extracts BND asset archives into a folder tree and repacks them from an
edited copy of that tree, keeping header, names and TOC layout intact.
"""

import argparse
import sys
import json
from pathlib import Path

from bnd.archive import BNDArchive
from bnd.config import Config
from bnd.errors import BNDError
from bnd.extractor import extract_file
from bnd.repacker import repack_file
from utils.i18n import translator as t
from utils.file_utils import format_size


def fail(message: str):
    print(f"{t.get('error')}: {message}", file=sys.stderr)
    sys.exit(1)


def run_extract_cli(args, config: Config):
    """Handles the 'extract' command."""
    if not args.archive.is_file():
        fail(t.get('archive_not_found', args.archive))

    print(t.get('extract_mode', args.archive.name), file=sys.stderr)
    report = extract_file(args.archive, args.output, config)

    print(t.get('extracted_summary', len(report.written), format_size(report.total_bytes), report.output_root))
    if report.unresolved:
        print(t.get('unresolved_summary', len(report.unresolved)), file=sys.stderr)
    print(t.get('extract_done'), file=sys.stderr)


def run_repack_cli(args, config: Config):
    """Handles the 'repack' command."""
    if not args.archive.is_file():
        fail(t.get('archive_not_found', args.archive))
    if not args.input_dir.is_dir():
        fail(t.get('folder_not_found', args.input_dir))

    print(t.get('repack_mode', args.archive.name, args.input_dir), file=sys.stderr)
    report = repack_file(args.archive, args.input_dir, args.output, config)

    print(t.get('repacked_summary', len(report.replaced), len(report.preserved), format_size(report.final_size)))
    print(t.get('saved_to', report.output_path))
    print(t.get('repack_done'), file=sys.stderr)


def run_info_cli(args, config: Config):
    """Handles the 'info' command."""
    if not args.archive.is_file():
        fail(t.get('archive_not_found', args.archive))

    archive = BNDArchive.load_from_file(args.archive)
    if args.output == 'json':
        print(json.dumps(archive.to_dict(), indent=2, ensure_ascii=False))
    else:
        for line in archive.describe():
            print(line)


COMMANDS = {
    'extract': run_extract_cli,
    'repack': run_repack_cli,
    'info': run_info_cli,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=f"{t.get('app_title')}: extract and repack BND archives.",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog="""
Examples:
  python main.py extract data.bnd
    (Extracts into ./data/)

  python main.py repack data.bnd ./data
    (Writes data_new.bnd next to data.bnd)

  python main.py info data.bnd --output json
    (Dumps header and TOC entries as JSON)
"""
    )
    parser.add_argument('--lang', choices=['en', 'de'], help='Set language for CLI output')
    parser.add_argument('--config', type=Path, help='Use this JSON config file instead of ~/.bnd_tool_config.json')
    parser.add_argument('--no-progress', action='store_true', help='Disable progress bars')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # --- Extract Command ---
    extract_parser = subparsers.add_parser('extract', help='Extract all files of an archive')
    extract_parser.add_argument('archive', type=Path, help='The .bnd archive to extract')
    extract_parser.add_argument('-o', '--output', type=Path, help='Output folder (default: ./<archive name>)')

    # --- Repack Command ---
    repack_parser = subparsers.add_parser('repack', help='Rebuild an archive from a folder of replacement files')
    repack_parser.add_argument('archive', type=Path, help='The original .bnd archive')
    repack_parser.add_argument('input_dir', type=Path, help='Folder holding the files to pack')
    repack_parser.add_argument('-o', '--output', type=Path, help='Output archive (default: <archive>_new.bnd)')

    # --- Info Command ---
    info_parser = subparsers.add_parser('info', help='Print header and TOC entries')
    info_parser.add_argument('archive', type=Path, help='The .bnd archive to inspect')
    info_parser.add_argument('--output', choices=['text', 'json'], default='text', help='Output format')

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help(sys.stderr)
        sys.exit(1)

    config = Config(args.config)
    t.set_language(args.lang or config.get('language', 'en'))
    if args.no_progress:
        config.set('show_progress', False)

    try:
        COMMANDS[args.command](args, config)
    except KeyboardInterrupt:
        fail(t.get('interrupted'))
    except (BNDError, OSError, ValueError) as e:
        fail(t.get('operation_failed', e))


if __name__ == "__main__":
    main()
