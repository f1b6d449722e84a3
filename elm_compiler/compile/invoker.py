"""Start the compiler process in blocking or non-blocking mode."""

from __future__ import annotations

from typing import Any, Awaitable, Dict, List, Mapping, Optional, Union

from elm_compiler.data import CompilerOptions
from elm_compiler.logging import ensure_console_logging, get_logger

from .args import Sources, build_process_args
from .errors import ElmCompilerError, SpawnFailure, SpawnInvocationError, classify_spawn_error
from .executor import CompletedRun, ProcessExecutor, ProcessHandle, SyncProcessExecutor
from .options import ProcessedOptions, process_options

logger = get_logger("Invoker")


def _check_executor(executor: Any, blocking: Optional[bool]) -> bool:
    if not callable(getattr(executor, "execute", None)):
        raise SpawnInvocationError(
            f"The process executor was a(n) {type(executor).__name__} instead of a "
            "ProcessExecutor with a callable execute()."
        )
    mode = getattr(executor, "blocking", None)
    if not isinstance(mode, bool):
        raise SpawnInvocationError(
            f"The process executor {type(executor).__name__} does not declare whether it "
            "is blocking."
        )
    if blocking is not None and mode != blocking:
        expected = "blocking" if blocking else "non-blocking"
        raise SpawnInvocationError(
            f"Expected a {expected} process executor, got {type(executor).__name__}."
        )
    return mode


def _spawn_failure(err: Exception, path_to_elm: str) -> SpawnFailure:
    return SpawnFailure(classify_spawn_error(err, path_to_elm), path_to_elm)


def invoke(
    processed: ProcessedOptions, *, blocking: Optional[bool] = None
) -> Union[CompletedRun, Awaitable[ProcessHandle]]:
    """Start the compiler for a processed invocation.

    The return value depends on the bound executor: a blocking executor yields a
    ``CompletedRun``; a non-blocking one yields an awaitable resolving to a ``ProcessHandle``.

    Parameters
    ----------
    processed : ProcessedOptions
        The resolved invocation.
    blocking : bool, optional
        If given, the executor must be of this mode.

    Raises
    ------
    SpawnInvocationError
        If the bound executor is unusable or of the wrong mode.
    SpawnFailure
        If the compiler cannot be started, whether the operating system or the spawn call
        rejected it. For non-blocking executors this is raised when the returned awaitable
        is awaited.
    """
    executor = processed.executor
    is_blocking = _check_executor(executor, blocking)
    args = build_process_args(processed.sources, processed.options)
    process_opts: Dict[str, Any] = dict(processed.options.process_opts or {})

    if processed.options.verbose:
        ensure_console_logging()
        logger.info(" ".join(["Running", processed.path_to_elm, *args]))

    if is_blocking:
        try:
            return executor.execute(processed.path_to_elm, args, cwd=processed.cwd, **process_opts)
        except ElmCompilerError:
            raise
        except Exception as e:
            raise _spawn_failure(e, processed.path_to_elm) from e
    return _spawn(executor, processed, args, process_opts)


async def _spawn(
    executor: ProcessExecutor,
    processed: ProcessedOptions,
    args: List[str],
    process_opts: Dict[str, Any],
) -> ProcessHandle:
    try:
        return await executor.execute(
            processed.path_to_elm, args, cwd=processed.cwd, **process_opts
        )
    except ElmCompilerError:
        raise
    except Exception as e:
        raise _spawn_failure(e, processed.path_to_elm) from e


async def compile(
    sources: Sources,
    options: Union[CompilerOptions, Mapping[str, Any], None] = None,
    *,
    executor: Optional[ProcessExecutor] = None,
) -> ProcessHandle:
    """Start the compiler without waiting for it to finish.

    Parameters
    ----------
    sources : str, os.PathLike or a sequence of them
        The Elm source files to compile.
    options : CompilerOptions or Mapping[str, Any], optional
        The compiler options.
    executor : ProcessExecutor, optional
        A non-blocking executor. Defaults to ``AsyncProcessExecutor``.

    Returns
    -------
    ProcessHandle
        The live process. The caller must await ``wait()``.

    Raises
    ------
    InvalidConfiguration
        Before anything is started, if the sources or options are malformed.
    SpawnInvocationError
        If the executor is unusable or blocking.
    SpawnFailure
        If the compiler could not be started.

    Examples
    --------
    >>> handle = await compile("src/Main.elm", {"output": "main.js"})
    >>> exit_code = await handle.wait()
    """
    processed = process_options(sources, options, executor)
    return await invoke(processed, blocking=False)


def compile_sync(
    sources: Sources,
    options: Union[CompilerOptions, Mapping[str, Any], None] = None,
    *,
    executor: Optional[ProcessExecutor] = None,
) -> CompletedRun:
    """Run the compiler and wait for it to exit.

    Parameters
    ----------
    sources : str, os.PathLike or a sequence of them
        The Elm source files to compile.
    options : CompilerOptions or Mapping[str, Any], optional
        The compiler options.
    executor : ProcessExecutor, optional
        A blocking executor. Defaults to ``SyncProcessExecutor``.

    Returns
    -------
    CompletedRun
        The exit code and the buffered output. A non-zero exit code is not an error here.
    """
    processed = process_options(
        sources, options, executor if executor is not None else SyncProcessExecutor()
    )
    return invoke(processed, blocking=True)
