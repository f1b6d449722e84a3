"""Strong-typed configuration for a single Elm compiler invocation."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import StrictBool

from .utils import BaseModelWithDocstrings, PathString


class CompilerOption(str, Enum):
    """The closed set of option names accepted by the compiler front end.

    The first group maps onto ``elm make`` flags; the second group only affects how the
    process is located and started.
    """

    HELP = "help"
    OUTPUT = "output"
    REPORT = "report"
    DEBUG = "debug"
    DOCS = "docs"
    OPTIMIZE = "optimize"
    RUNTIME_OPTIONS = "runtime_options"

    CWD = "cwd"
    PATH_TO_ELM = "path_to_elm"
    VERBOSE = "verbose"
    PROCESS_OPTS = "process_opts"


class CompilerOptions(BaseModelWithDocstrings):
    """Options for one ``elm make`` invocation.

    Every field is optional. Falsy values never produce command-line tokens.
    """

    help: Optional[StrictBool] = None
    """Ask the compiler to print its usage instead of compiling."""
    output: Optional[PathString] = None
    """Path of the artifact to write. The extension selects the artifact kind: ``.js`` for a
    script, ``.html`` for a standalone document."""
    report: Optional[str] = None
    """Report format for diagnostics (e.g. ``json``)."""
    debug: Optional[StrictBool] = None
    """Compile with the time-travelling debugger."""
    docs: Optional[PathString] = None
    """Path of a ``docs.json`` file to generate."""
    optimize: Optional[StrictBool] = None
    """Turn on optimizations."""
    runtime_options: Optional[List[str]] = None
    """Raw tokens for the compiler's own runtime, passed between ``+RTS`` and ``-RTS``."""

    cwd: Optional[PathString] = None
    """Working directory of the compiler process. Defaults to the current directory."""
    path_to_elm: Optional[PathString] = None
    """Explicit path of the compiler executable."""
    verbose: StrictBool = False
    """Log the invocation and the compiler's diagnostic output."""
    process_opts: Optional[Dict[str, Any]] = None
    """Keyword arguments passed unchanged to the process executor (``env``, ``stdout``, ...)."""
