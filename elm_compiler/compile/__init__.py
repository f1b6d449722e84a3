"""Compiler invocation subsystem.

This package turns compiler options into an ``elm make`` command line and runs it.
It includes:
- ArgumentBuilder: ``build_process_args`` and the option checks it relies on
- OptionsProcessor: ``process_options`` resolving defaults and binding the executor
- ProcessExecutor: blocking and non-blocking ways of starting the process
- ProcessInvoker: ``compile`` and ``compile_sync``
- OutputCapture: ``compile_to_string`` and ``compile_to_string_sync``

The typical workflow is:
1. Compile to a string: js = await compile_to_string("src/Main.elm", {"cwd": project})
2. Or drive the process yourself: handle = await compile("src/Main.elm", {"output": "main.js"})
"""

from .args import build_process_args, check_option_names, normalize_sources
from .capture import TempFileScope, compile_to_string, compile_to_string_sync, get_suffix
from .errors import (
    CompilationFailed,
    ElmCompilerError,
    InvalidConfiguration,
    ModuleNotFound,
    RemovedOption,
    RenamedOption,
    SpawnFailure,
    SpawnInvocationError,
    UnrecognizedOption,
    WorkerBootstrapError,
    classify_spawn_error,
)
from .executor import (
    AsyncProcessExecutor,
    CompletedRun,
    ProcessExecutor,
    ProcessHandle,
    SyncProcessExecutor,
)
from .invoker import compile, compile_sync, invoke
from .options import ProcessedOptions, process_options

__all__ = [
    "AsyncProcessExecutor",
    "CompilationFailed",
    "CompletedRun",
    "ElmCompilerError",
    "InvalidConfiguration",
    "ModuleNotFound",
    "ProcessExecutor",
    "ProcessHandle",
    "ProcessedOptions",
    "RemovedOption",
    "RenamedOption",
    "SpawnFailure",
    "SpawnInvocationError",
    "SyncProcessExecutor",
    "TempFileScope",
    "UnrecognizedOption",
    "WorkerBootstrapError",
    "build_process_args",
    "check_option_names",
    "classify_spawn_error",
    "compile",
    "compile_sync",
    "compile_to_string",
    "compile_to_string_sync",
    "get_suffix",
    "invoke",
    "normalize_sources",
    "process_options",
]
