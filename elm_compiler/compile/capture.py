"""Compile to a string by routing the artifact through a scoped temporary file."""

from __future__ import annotations

import os
import subprocess
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Mapping, Optional, Union

from elm_compiler.data import CompilerOptions
from elm_compiler.logging import ensure_console_logging, get_logger

from .args import Sources
from .errors import CompilationFailed
from .executor import AsyncProcessExecutor, ProcessExecutor, SyncProcessExecutor
from .invoker import invoke
from .options import ProcessedOptions, process_options

logger = get_logger("Capture")

DEFAULT_SUFFIX = ".js"
"""Artifact suffix used when no output path is configured."""


class TempFileScope:
    """Owns temporary files for the duration of one operation.

    Files are created with unique names, so unrelated invocations never share an output path.
    Every acquired file is deleted by ``release()``; used as a context manager, release happens
    on every exit path.
    """

    def __init__(self, prefix: str = "elm_compiler_") -> None:
        self._prefix = prefix
        self._paths: List[Path] = []

    def acquire(self, suffix: str) -> Path:
        """Create an empty, uniquely named temporary file.

        Parameters
        ----------
        suffix : str
            The file suffix, including the dot.

        Returns
        -------
        Path
            The path of the new file.
        """
        fd, name = tempfile.mkstemp(suffix=suffix, prefix=self._prefix)
        os.close(fd)
        path = Path(name)
        self._paths.append(path)
        return path

    @property
    def paths(self) -> List[Path]:
        return list(self._paths)

    def release(self) -> None:
        """Delete every file acquired so far. Safe to call more than once."""
        while self._paths:
            self._paths.pop().unlink(missing_ok=True)

    def __enter__(self) -> "TempFileScope":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.release()


@contextmanager
def _scope_or_private(scope: Optional[TempFileScope]) -> Iterator[TempFileScope]:
    if scope is not None:
        yield scope
        return
    with TempFileScope() as private:
        yield private


def get_suffix(output: Optional[str], default: str = DEFAULT_SUFFIX) -> str:
    """Return the extension of ``output``, or ``default`` if there is none."""
    if not output:
        return default
    return Path(output).suffix or default


def _prepare(processed: ProcessedOptions, scope: TempFileScope, **process_opts: Any):
    path = scope.acquire(get_suffix(processed.options.output))
    merged = dict(processed.options.process_opts or {})
    merged.update(process_opts)
    return path, processed.with_overrides(output=str(path), process_opts=merged)


def _finish(processed: ProcessedOptions, exit_code: Optional[int], output: str, path: Path) -> str:
    if processed.options.verbose and output:
        ensure_console_logging()
        logger.info(output)
    if exit_code != 0:
        raise CompilationFailed(output, exit_code)
    return path.read_text(encoding="utf-8")


async def compile_to_string(
    sources: Sources,
    options: Union[CompilerOptions, Mapping[str, Any], None] = None,
    *,
    executor: Optional[ProcessExecutor] = None,
    scope: Optional[TempFileScope] = None,
) -> str:
    """Compile and return the artifact text.

    Use an ``output`` path ending in ``.html`` to get a standalone document instead of a
    script; the path itself is only used for its suffix.

    Parameters
    ----------
    sources : str, os.PathLike or a sequence of them
        The Elm source files to compile.
    options : CompilerOptions or Mapping[str, Any], optional
        The compiler options. Not modified.
    executor : ProcessExecutor, optional
        A non-blocking executor. Defaults to ``AsyncProcessExecutor``.
    scope : TempFileScope, optional
        Scope owning the temporary artifact. By default a private scope is released before
        returning.

    Returns
    -------
    str
        The text of the artifact.

    Raises
    ------
    InvalidConfiguration
        If the sources or options are malformed.
    SpawnFailure
        If the compiler could not be started.
    CompilationFailed
        If the compiler exited with a non-zero status. The exception carries the interleaved
        stdout and stderr of the run.
    """
    processed = process_options(
        sources, options, executor if executor is not None else AsyncProcessExecutor()
    )
    with _scope_or_private(scope) as active:
        path, processed = _prepare(
            processed, active, stdout=subprocess.PIPE, stderr=subprocess.PIPE
        )
        handle = await invoke(processed, blocking=False)
        exit_code = await handle.wait()
        return _finish(processed, exit_code, handle.output, path)


def compile_to_string_sync(
    sources: Sources,
    options: Union[CompilerOptions, Mapping[str, Any], None] = None,
    *,
    executor: Optional[ProcessExecutor] = None,
    scope: Optional[TempFileScope] = None,
) -> str:
    """Blocking counterpart of ``compile_to_string``.

    Stderr is merged into stdout at the pipe so that the diagnostic text keeps its order.
    """
    processed = process_options(
        sources, options, executor if executor is not None else SyncProcessExecutor()
    )
    with _scope_or_private(scope) as active:
        path, processed = _prepare(
            processed, active, stdout=subprocess.PIPE, stderr=subprocess.STDOUT
        )
        run = invoke(processed, blocking=True)
        return _finish(processed, run.exit_code, run.output, path)
