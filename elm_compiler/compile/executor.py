"""Process executors: the capability used to start the compiler process.

Two implementations are provided. ``SyncProcessExecutor`` blocks until the process exits and
returns a ``CompletedRun``. ``AsyncProcessExecutor`` returns a live ``ProcessHandle`` as soon as
the process is started. Tests substitute the fakes from ``elm_compiler.testing``.
"""

from __future__ import annotations

import asyncio
import codecs
import subprocess
from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel

OutputListener = Callable[[str, str], None]
"""Callback receiving ``(stream_name, chunk)``; ``stream_name`` is "stdout" or "stderr"."""


def _decode(data: Union[bytes, str, None]) -> str:
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="replace")


class CompletedRun(BaseModel):
    """Result of a blocking compiler invocation."""

    args: List[str]
    """The full command line, executable first."""
    exit_code: int
    """Exit status of the process."""
    stdout: str = ""
    """Everything the process wrote to stdout, empty if stdout was not piped."""
    stderr: str = ""
    """Everything the process wrote to stderr, empty if stderr was not piped."""

    @property
    def output(self) -> str:
        """Stdout followed by stderr."""
        return self.stdout + self.stderr


class ProcessHandle:
    """A live compiler process started in non-blocking mode.

    Piped stdout and stderr are drained in the background as soon as the handle exists.
    Each chunk is buffered and handed to the registered listeners in arrival order.
    ``wait()`` returns only after both pipes reached EOF and every chunk was delivered, so the
    buffers are complete once the exit code is known.

    The caller owns the handle and must eventually await ``wait()``.
    """

    _CHUNK_SIZE: ClassVar[int] = 4096
    """Maximum number of bytes read from a pipe at once."""

    def __init__(self, process: Any, args: Sequence[str]) -> None:
        """Wrap a started process.

        Parameters
        ----------
        process : Any
            An ``asyncio.subprocess.Process`` or an object with the same ``stdout``,
            ``stderr``, ``pid``, ``returncode``, ``wait()``, ``terminate()`` and ``kill()``
            members.
        args : Sequence[str]
            The full command line, executable first.
        """
        self._process = process
        self.args: List[str] = list(args)
        self._listeners: List[OutputListener] = []
        self._chunks: List[Tuple[str, str]] = []
        loop = asyncio.get_running_loop()
        self._readers = [
            loop.create_task(self._pump(name, stream))
            for name, stream in (("stdout", process.stdout), ("stderr", process.stderr))
            if stream is not None
        ]

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid

    @property
    def returncode(self) -> Optional[int]:
        """Exit status, or None while the process is running."""
        return self._process.returncode

    @property
    def stdout(self) -> str:
        return "".join(chunk for name, chunk in self._chunks if name == "stdout")

    @property
    def stderr(self) -> str:
        return "".join(chunk for name, chunk in self._chunks if name == "stderr")

    @property
    def output(self) -> str:
        """Stdout and stderr interleaved in the order the chunks arrived."""
        return "".join(chunk for _, chunk in self._chunks)

    def add_listener(self, listener: OutputListener) -> None:
        """Register a callback for every future output chunk.

        Chunks that arrived before registration are not replayed; read the buffers for those.
        """
        self._listeners.append(listener)

    async def wait(self) -> int:
        """Wait for the process to exit after draining its output.

        If a listener raised, both pipes are still drained and the process is still awaited;
        the first listener error is then re-raised.

        Returns
        -------
        int
            The exit status.
        """
        results = await asyncio.gather(*self._readers, return_exceptions=True)
        code = await self._process.wait()
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return code

    def terminate(self) -> None:
        """Ask the process to stop. It then reports an abnormal exit through ``wait()``."""
        if self._process.returncode is None:
            try:
                self._process.terminate()
            except ProcessLookupError:
                pass

    def kill(self) -> None:
        if self._process.returncode is None:
            try:
                self._process.kill()
            except ProcessLookupError:
                pass

    async def _pump(self, name: str, stream: asyncio.StreamReader) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        error: Optional[Exception] = None
        while True:
            data = await stream.read(self._CHUNK_SIZE)
            text = decoder.decode(data, final=not data)
            if text:
                try:
                    self._deliver(name, text)
                except Exception as e:
                    # The pipe is drained to EOF even after a listener error.
                    error = error or e
            if not data:
                break
        if error is not None:
            raise error

    def _deliver(self, name: str, chunk: str) -> None:
        self._chunks.append((name, chunk))
        for listener in list(self._listeners):
            listener(name, chunk)


class ProcessExecutor(ABC):
    """Capability for starting the compiler process.

    ``blocking`` tells the invoker which completion channel the executor uses.
    """

    blocking: ClassVar[bool]
    """True if ``execute`` returns a finished ``CompletedRun``, False if it returns an
    awaitable resolving to a ``ProcessHandle``."""

    @staticmethod
    def _default_process_opts(process_opts: Dict[str, Any]) -> Dict[str, Any]:
        merged: Dict[str, Any] = {"stdout": subprocess.PIPE, "stderr": subprocess.PIPE}
        merged.update(process_opts)
        return merged

    @abstractmethod
    def execute(
        self, command: str, args: Sequence[str], *, cwd: Optional[str] = None, **process_opts: Any
    ) -> Any:
        """Start ``command`` with ``args``.

        Parameters
        ----------
        command : str
            The executable to start.
        args : Sequence[str]
            Arguments after the executable.
        cwd : str, optional
            Working directory of the process.
        process_opts : Any
            Extra keyword arguments for the underlying spawn call. Stdout and stderr are
            piped unless overridden here.

        Raises
        ------
        OSError
            If the operating system cannot start the process.
        """
        ...


class SyncProcessExecutor(ProcessExecutor):
    """Blocking executor backed by ``subprocess.run``."""

    blocking: ClassVar[bool] = True

    def execute(
        self, command: str, args: Sequence[str], *, cwd: Optional[str] = None, **process_opts: Any
    ) -> CompletedRun:
        argv = [command, *args]
        result = subprocess.run(argv, cwd=cwd, **self._default_process_opts(process_opts))
        return CompletedRun(
            args=argv,
            exit_code=result.returncode,
            stdout=_decode(result.stdout),
            stderr=_decode(result.stderr),
        )


class AsyncProcessExecutor(ProcessExecutor):
    """Non-blocking executor backed by ``asyncio.create_subprocess_exec``."""

    blocking: ClassVar[bool] = False

    async def execute(
        self, command: str, args: Sequence[str], *, cwd: Optional[str] = None, **process_opts: Any
    ) -> ProcessHandle:
        process = await asyncio.create_subprocess_exec(
            command, *args, cwd=cwd, **self._default_process_opts(process_opts)
        )
        return ProcessHandle(process, [command, *args])
