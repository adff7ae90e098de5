"""
prism - project a protobuf message to JSON from the command line.

    protoc --include_imports --descriptor_set_out=bigtable.pb google/bigtable/v2/bigtable.proto
    echo 'row_key: "r1"' | python -m prism_projector \
        --descriptor-set bigtable.pb --type google.bigtable.v2.MutateRowRequest

The message is read in protobuf text format (stdin unless --input is given);
the projected document is written to stdout.
"""
from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory, text_format
from google.protobuf.message import DecodeError, Message

from prism_projector import serde
from prism_projector.errors import ProjectionError
from prism_projector.settings import BYTES_ENCODINGS, default_settings
from prism_shared.logging_setup import setup_logging

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PROJECTION = 1
EXIT_INPUT = 2


def load_pool(path: Path) -> descriptor_pool.DescriptorPool:
    """Build a private pool from a serialized FileDescriptorSet (dependencies first)."""
    fds = descriptor_pb2.FileDescriptorSet.FromString(path.read_bytes())
    pool = descriptor_pool.DescriptorPool()
    for file_proto in fds.file:
        pool.Add(file_proto)
    log.debug("loaded %d file(s) from %s", len(fds.file), path)
    return pool


def parse_message(pool: descriptor_pool.DescriptorPool, type_name: str, text: str) -> Message:
    descriptor = pool.FindMessageTypeByName(type_name)
    message = message_factory.GetMessageClass(descriptor)()
    text_format.Parse(text, message, descriptor_pool=pool)
    return message


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="prism", description="Project a protobuf message to JSON.")
    p.add_argument("--descriptor-set", required=True, type=Path,
                   help="serialized FileDescriptorSet (protoc --include_imports --descriptor_set_out)")
    p.add_argument("--type", required=True, dest="type_name",
                   help="fully-qualified message type, e.g. google.bigtable.v2.ReadRowsRequest")
    p.add_argument("--input", type=Path, default=None,
                   help="text-format message file (default: stdin)")
    p.add_argument("--indent", type=int, default=None)
    p.add_argument("--bytes", dest="bytes_encoding", choices=BYTES_ENCODINGS, default=None)
    p.add_argument("--max-depth", type=int, default=None,
                   help="nesting limit; 0 disables the guard")
    p.add_argument("--log-file", type=Path, default=None,
                   help="also write DEBUG logs here (default: $PRISM_LOG_FILE)")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("beta" if args.verbose else "prod", log_file=args.log_file)

    try:
        settings = default_settings()
        if args.bytes_encoding is not None:
            settings = dataclasses.replace(settings, bytes_encoding=args.bytes_encoding)
        if args.max_depth is not None:
            settings = dataclasses.replace(settings, max_depth=args.max_depth or None)
    except ProjectionError as exc:
        log.error("invalid settings: %s", exc)
        return EXIT_INPUT

    try:
        pool = load_pool(args.descriptor_set)
        text = args.input.read_text(encoding="utf-8") if args.input else sys.stdin.read()
        message = parse_message(pool, args.type_name, text)
    except (OSError, DecodeError, KeyError, TypeError, text_format.ParseError) as exc:
        log.error("cannot load message: %s", exc)
        return EXIT_INPUT

    try:
        out = serde.dumps(message, indent=args.indent, settings=settings)
    except ProjectionError as exc:
        log.error("projection failed: %s", exc)
        return EXIT_PROJECTION

    sys.stdout.write(out + "\n")
    return EXIT_OK
