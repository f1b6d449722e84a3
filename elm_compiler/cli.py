import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from elm_compiler.compile import ElmCompilerError, build_process_args, compile_to_string_sync
from elm_compiler.logging import configure_logging


def _options_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Collect the compiler options given on the command line, skipping unset ones."""
    options: Dict[str, Any] = {
        "output": args.output,
        "report": args.report,
        "docs": args.docs,
        "debug": args.debug or None,
        "optimize": args.optimize or None,
        "runtime_options": args.rts,
        "path_to_elm": args.path_to_elm,
        "cwd": args.cwd,
    }
    options = {key: value for key, value in options.items() if value is not None}
    if args.verbose:
        options["verbose"] = True
    return options


def make(args: argparse.Namespace) -> int:
    """Compile the sources and print the artifact, or write it to --output."""
    options = _options_from_args(args)
    artifact = compile_to_string_sync(args.sources, options)
    if args.output:
        target = Path(args.output)
        if args.cwd and not target.is_absolute():
            target = Path(args.cwd) / target
        target.write_text(artifact, encoding="utf-8")
        print(f"Wrote {target}", file=sys.stderr)
    else:
        sys.stdout.write(artifact)
    return 0


def show_args(args: argparse.Namespace) -> int:
    """Print the compiler command line without running it."""
    options = _options_from_args(args)
    print(" ".join(build_process_args(args.sources, options)))
    return 0


def _add_compile_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("sources", nargs="+", help="Elm source files, in order.")
    parser.add_argument(
        "--output", help="Artifact path. A .html suffix produces a standalone document."
    )
    parser.add_argument("--report", help="Diagnostic report format, e.g. json.")
    parser.add_argument("--docs", help="Write module documentation to this path.")
    parser.add_argument("--debug", action="store_true", help="Compile with the debugger.")
    parser.add_argument("--optimize", action="store_true", help="Turn on optimizations.")
    parser.add_argument("--path-to-elm", help="The elm executable. Defaults to $ELM_COMPILER_PATH.")
    parser.add_argument("--cwd", help="Directory the compiler runs in.")
    parser.add_argument(
        "--rts",
        action="append",
        help=(
            "A token for the compiler runtime, placed between +RTS and -RTS. Repeatable.\n"
            "Write tokens starting with a dash as --rts=-A128M."
        ),
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Log the invocation and compiler output."
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="elm-compiler",
        description="Drive the Elm compiler",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--log-level", default=None, help="Overrides $ELM_COMPILER_LOG_LEVEL.")
    command_subparsers = parser.add_subparsers(
        dest="command", required=True, help="Primary commands"
    )

    make_parser = command_subparsers.add_parser("make", help="Compile Elm sources.")
    _add_compile_arguments(make_parser)
    make_parser.set_defaults(func=make)

    args_parser = command_subparsers.add_parser(
        "args", help="Print the compiler command line without running it."
    )
    _add_compile_arguments(args_parser)
    args_parser.set_defaults(func=show_args)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    try:
        return args.func(args)
    except ElmCompilerError as e:
        print(f"elm-compiler: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
