from elm_compiler.compile import (
    AsyncProcessExecutor,
    CompilationFailed,
    CompletedRun,
    ElmCompilerError,
    InvalidConfiguration,
    ModuleNotFound,
    ProcessedOptions,
    ProcessExecutor,
    ProcessHandle,
    RemovedOption,
    RenamedOption,
    SpawnFailure,
    SpawnInvocationError,
    SyncProcessExecutor,
    TempFileScope,
    UnrecognizedOption,
    WorkerBootstrapError,
    build_process_args,
    classify_spawn_error,
    compile,
    compile_sync,
    compile_to_string,
    compile_to_string_sync,
    process_options,
)
from elm_compiler.data import CompilerOption, CompilerOptions
from elm_compiler.logging import configure_logging, ensure_console_logging, get_logger
from elm_compiler.worker import (
    ArtifactLoader,
    InboundPort,
    NodeArtifactLoader,
    OutboundPort,
    Ports,
    WorkerHandle,
    compile_worker,
)

__all__ = [
    # Compile API
    "compile",
    "compile_sync",
    "compile_to_string",
    "compile_to_string_sync",
    "build_process_args",
    "process_options",
    # Worker API
    "compile_worker",
    "WorkerHandle",
    "Ports",
    "OutboundPort",
    "InboundPort",
    "ArtifactLoader",
    "NodeArtifactLoader",
    # Options
    "CompilerOption",
    "CompilerOptions",
    "ProcessedOptions",
    # Process execution
    "ProcessExecutor",
    "SyncProcessExecutor",
    "AsyncProcessExecutor",
    "ProcessHandle",
    "CompletedRun",
    "TempFileScope",
    # Errors
    "ElmCompilerError",
    "InvalidConfiguration",
    "UnrecognizedOption",
    "RemovedOption",
    "RenamedOption",
    "SpawnInvocationError",
    "SpawnFailure",
    "CompilationFailed",
    "ModuleNotFound",
    "WorkerBootstrapError",
    "classify_spawn_error",
    # Logging
    "configure_logging",
    "ensure_console_logging",
    "get_logger",
]
