"""Command-line entry point."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from .api import dump_cfg, dump_ir, dump_mermaid, ir_summary
from .config import CompilerConfig
from .errors import LoweringError, ReaderError
from . import constants

DEMO_SOURCE = """\
(defn square:int [num:int]
  (return (* 1 num num)))

(defn count:int []
  (var i:int 0)
  (while (< i 10)
    (set i (+ 1 i)))
  (return i))
"""


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Lower surface forms to typed IR")
    parser.add_argument("file", nargs="?", help="Source file to compile")
    parser.add_argument(
        "--function",
        "-f",
        default="",
        help="Function for --cfg/--mermaid/--stats (default: last)",
    )
    parser.add_argument(
        "--call-convention",
        default=constants.CALL_CONVENTION,
        help=f"Calling convention for calls (default: {constants.CALL_CONVENTION})",
    )
    parser.add_argument(
        "--syscall-convention",
        default=constants.SYSCALL_CONVENTION,
        help=f"Calling convention for syscalls (default: {constants.SYSCALL_CONVENTION})",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--cfg", action="store_true", help="Print the CFG")
    mode.add_argument("--mermaid", action="store_true", help="Print a Mermaid diagram")
    mode.add_argument("--stats", action="store_true", help="Print opcode counts, slot usage and jump targets")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.file:
        try:
            with open(args.file) as f:
                source = f.read()
        except OSError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
    else:
        print("No file provided. Using built-in demo:\n", file=sys.stderr)
        source = DEMO_SOURCE

    config = CompilerConfig(
        call_convention=args.call_convention,
        syscall_convention=args.syscall_convention,
    )

    try:
        if args.cfg:
            print(dump_cfg(source, args.function, config))
        elif args.mermaid:
            print(dump_mermaid(source, args.function, config))
        elif args.stats:
            print(json.dumps(ir_summary(source, args.function, config), indent=2))
        else:
            print(dump_ir(source, config))
    except (LoweringError, ReaderError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
