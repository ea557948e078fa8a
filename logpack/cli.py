"""
LogPack CLI - inspect archives produced by the capture middleware.

Usage:
    python -m logpack show <archive>            - Print metadata and list entries
    python -m logpack cat <archive> <entry>     - Print one entry
    python -m logpack extract <archive> <dir>   - Unpack every entry into a directory
"""

from __future__ import annotations

import argparse
import sys
import zipfile
from pathlib import Path, PurePosixPath
from typing import Optional

from logpack.capture.archive import METADATA_ENTRY


# ANSI color codes
class Colors:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'
    RED = '\033[91m'


def safe_member_path(name: str) -> Optional[PurePosixPath]:
    """Relative path an entry may be extracted to, None if it would escape."""
    parts = [p for p in PurePosixPath(name.replace('\\', '/')).parts if p not in ('/', '')]
    if not parts or '..' in parts:
        return None
    return PurePosixPath(*parts)


def _open(path: str) -> Optional[zipfile.ZipFile]:
    try:
        return zipfile.ZipFile(path)
    except FileNotFoundError:
        print(f"{Colors.RED}Archive not found: {path}{Colors.RESET}", file=sys.stderr)
    except zipfile.BadZipFile:
        print(f"{Colors.RED}Not a LogPack archive: {path}{Colors.RESET}", file=sys.stderr)
    return None


def cmd_show(args: argparse.Namespace) -> int:
    archive = _open(args.archive)
    if archive is None:
        return 1
    with archive:
        print(f"{Colors.BOLD}{Path(args.archive).name}{Colors.RESET}")
        if METADATA_ENTRY in archive.namelist():
            for line in archive.read(METADATA_ENTRY).decode('utf-8').splitlines():
                if line.strip():
                    print(f"  {line}")
        print()
        for info in archive.infolist():
            print(f"  {info.filename:<40} {Colors.DIM}{info.file_size:>10} bytes{Colors.RESET}")
    return 0


def cmd_cat(args: argparse.Namespace) -> int:
    archive = _open(args.archive)
    if archive is None:
        return 1
    with archive:
        try:
            content = archive.read(args.entry)
        except KeyError:
            print(f"{Colors.RED}No entry {args.entry!r} in {args.archive}{Colors.RESET}", file=sys.stderr)
            return 1
    sys.stdout.write(content.decode('utf-8', errors='replace'))
    return 0


def cmd_extract(args: argparse.Namespace) -> int:
    archive = _open(args.archive)
    if archive is None:
        return 1
    target = Path(args.directory)
    with archive:
        for info in archive.infolist():
            member = safe_member_path(info.filename)
            if member is None:
                print(f"Skipping unsafe entry {info.filename!r}", file=sys.stderr)
                continue
            destination = target.joinpath(*member.parts)
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(archive.read(info))
            print(f"  {destination}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='logpack', description='Inspect LogPack archives')
    subparsers = parser.add_subparsers(dest='command', required=True)

    show = subparsers.add_parser('show', help='Print metadata and list entries')
    show.add_argument('archive')
    show.set_defaults(func=cmd_show)

    cat = subparsers.add_parser('cat', help='Print one entry')
    cat.add_argument('archive')
    cat.add_argument('entry')
    cat.set_defaults(func=cmd_cat)

    extract = subparsers.add_parser('extract', help='Unpack an archive')
    extract.add_argument('archive')
    extract.add_argument('directory')
    extract.set_defaults(func=cmd_extract)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
