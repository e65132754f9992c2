#!/usr/bin/env python3
"""Command-line interface for the FlowScript disassembler."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from flowdisasm import DEFAULT_HEADER, DisassemblyError, FlowScriptDisassembler, Program


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "program",
        type=Path,
        help="JSON document describing the loaded FlowScript program",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Write the listing here instead of <program>.flowasm ('-' for stdout)",
    )
    parser.add_argument(
        "--header",
        default=DEFAULT_HEADER,
        help="Text of the leading comment line",
    )
    parser.add_argument(
        "--strict-strings",
        action="store_true",
        help="Abort on string references outside of the string table",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def open_disassembler(args: argparse.Namespace) -> FlowScriptDisassembler:
    options = {"header": args.header, "strict_strings": args.strict_strings}
    if args.output == "-":
        return FlowScriptDisassembler.to_stream(sys.stdout, **options)
    output_path = Path(args.output) if args.output else args.program.with_suffix(".flowasm")
    return FlowScriptDisassembler.to_path(output_path, **options)


def main(argv: Optional[Sequence[str]] = None) -> int:
    start_time = time.perf_counter()
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.program.exists():
        raise SystemExit(f"missing input file: {args.program}")

    try:
        program = Program.load(args.program)
        with open_disassembler(args) as disassembler:
            disassembler.disassemble(program)
    except (DisassemblyError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.output != "-":
        total_time = time.perf_counter() - start_time
        destination = args.output or args.program.with_suffix(".flowasm")
        print(f"disassembly written to {destination} ({total_time:.2f}s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
