#
# Copyright (C) 2025-26 zippeek contributors
#

import argparse
import logging
import os
import sys
from typing import List, Optional

from zippeek import __version__
from zippeek.archive import RemoteZipFile
from zippeek.compression import get_compression_name
from zippeek.errors import ZipPeekError
from zippeek.transport import DEFAULT_TIMEOUT, RangeTransport
from zippeek.utils import filter_names, format_size, safe_path_parts


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='zippeek',
        description="List and extract single files from a remote ZIP archive without downloading all of it",
    )
    parser.add_argument('url', help="HTTP/HTTPS URL of the ZIP archive")
    parser.add_argument('--timeout', type=float, default=DEFAULT_TIMEOUT, help="timeout of each range request in seconds")
    parser.add_argument('--no-verify', action='store_true', help="skip CRC32 verification of extracted files")
    parser.add_argument('-v', '--verbose', action='store_true', help="log every range request")
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest='command')

    list_parser = subparsers.add_parser('list', help="show the files in the archive (default)")
    list_parser.add_argument('-f', '--filter', help="regex (or plain substring) the file names must match")

    extract_parser = subparsers.add_parser('extract', help="extract files into a directory")
    extract_parser.add_argument('names', nargs='+', metavar='NAME', help="entry names as shown by 'list'")
    extract_parser.add_argument('-o', '--output-dir', default=os.getcwd(), help="destination directory")

    cat_parser = subparsers.add_parser('cat', help="print a text file from the archive")
    cat_parser.add_argument('name', metavar='NAME')
    cat_parser.add_argument('--encoding', default='utf-8')

    # must follow add_subparsers
    parser.set_defaults(command='list', filter=None)

    return parser


def list_files(archive: RemoteZipFile, filter_pattern: Optional[str] = None):
    entries = [entry for entry in archive.entries if not entry.is_dir]
    if filter_pattern:
        matched = set(filter_names([entry.name for entry in entries], filter_pattern))
        entries = [entry for entry in entries if entry.name in matched]
        if not entries:
            print(f"\nNo files match filter: '{filter_pattern}'")
            return

    print(f"\nNo.  {'Filename':<50} {'Size':<15} {'Compressed':<15} Compression")
    print("-" * 100)
    for number, entry in enumerate(entries, 1):
        filename = entry.name
        if len(filename) > 50:
            filename = filename[:47] + "..."
        print(f"{number:<4} {filename:<50} {format_size(entry.uncompressed_size):<15} "
              f"{format_size(entry.compressed_size):<15} {get_compression_name(entry.compression_method)}")


def extract_files(archive: RemoteZipFile, names: List[str], output_dir: str) -> List[str]:
    written = []
    for name in names:
        parts = safe_path_parts(name)
        if not parts:
            raise ZipPeekError(f"Cannot build an output path for entry: {name!r}")
        data = archive.extract_file(name)
        output_path = os.path.join(output_dir, *parts)
        os.makedirs(os.path.dirname(output_path), exist_ok=True)
        with open(output_path, 'wb') as f:
            f.write(data)
        print(f"Extracted: {name} -> {output_path} ({format_size(len(data))})")
        written.append(output_path)
    return written


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(levelname)s %(name)s: %(message)s')

    if not (args.url.startswith("http://") or args.url.startswith("https://")):
        print("Please provide a valid HTTP/HTTPS URL.")
        return 1

    transport = RangeTransport(timeout=args.timeout)
    with RemoteZipFile(args.url, transport=transport, verify_crc=not args.no_verify) as archive:
        try:
            archive.open()
            if args.command == 'extract':
                extract_files(archive, args.names, args.output_dir)
            elif args.command == 'cat':
                sys.stdout.write(archive.extract_text_file(args.name, args.encoding))
            else:
                list_files(archive, args.filter)
        except (ZipPeekError, LookupError, UnicodeDecodeError, OSError) as e:
            print(f"Error: {e}")
            return 1
        finally:
            transport.close()
    return 0
