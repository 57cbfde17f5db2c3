import argparse
import logging
import sys
import traceback
from pathlib import Path

from .main import Interpreter
from .store import DEFAULT_GC_THRESHOLD


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m refinterp",
        usage="python -m refinterp [options] <script.py>",
    )
    parser.add_argument("script")
    parser.add_argument(
        "--gc-threshold",
        type=int,
        default=DEFAULT_GC_THRESHOLD,
        help="allocations between automatic cycle scans (0 disables them)",
    )
    parser.add_argument(
        "--no-scalar-cache",
        action="store_true",
        help="give every small integer, boolean and None its own identity",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args_list = sys.argv[1:] if argv is None else argv
    try:
        args = parser.parse_args(args_list)
    except SystemExit as exc:
        return int(exc.code)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose > 1 else logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
        )

    script_path = Path(args.script).resolve()
    if not script_path.is_file():
        print(f"refinterp: script not found: {script_path}", file=sys.stderr)
        return 2
    if args.gc_threshold < 0:
        print("refinterp: --gc-threshold must be >= 0", file=sys.stderr)
        return 2

    source = script_path.read_text()
    interpreter = Interpreter(
        gc_threshold=args.gc_threshold,
        cache_small_scalars=not args.no_scalar_cache,
    )
    try:
        result = interpreter.run(source, filename=str(script_path))
    except SyntaxError as exc:
        traceback.print_exception(exc, file=sys.stderr)
        return 1
    if result.exception is not None:
        traceback.print_exception(result.exception, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
