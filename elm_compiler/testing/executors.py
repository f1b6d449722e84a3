"""Fake process executors that stand in for the compiler binary."""

from __future__ import annotations

import asyncio
import subprocess
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from elm_compiler.compile.executor import (
    AsyncProcessExecutor,
    CompletedRun,
    ProcessHandle,
    SyncProcessExecutor,
)

Artifact = Union[str, Callable[[List[str]], str]]
"""Artifact text, or a function computing it from the argument list."""

Chunk = Tuple[str, str]
"""``(stream_name, text)`` written by the fake compiler; stream is "stdout" or "stderr"."""


class _FakeCompiler:
    """Behavior shared by both fakes: record the call and write the artifact."""

    def __init__(
        self,
        artifact: Artifact = "",
        exit_code: int = 0,
        chunks: Sequence[Chunk] = (),
        error: Optional[BaseException] = None,
    ) -> None:
        """Describe what the fake compiler does.

        Parameters
        ----------
        artifact : str or Callable[[List[str]], str]
            Written to the path following ``--output`` when ``exit_code`` is 0.
        exit_code : int
            Exit status of every run.
        chunks : Sequence[Tuple[str, str]]
            Output written by every run, in order.
        error : BaseException, optional
            Raised instead of starting the process, e.g. an ``OSError`` from a missing binary.
        """
        self.artifact = artifact
        self.exit_code = exit_code
        self.chunks = list(chunks)
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def _run(
        self, command: str, args: Sequence[str], cwd: Optional[str], process_opts: Dict[str, Any]
    ) -> List[str]:
        argv = [command, *args]
        self.calls.append(
            {"command": command, "args": list(args), "cwd": cwd, "process_opts": process_opts}
        )
        if self.error is not None:
            raise self.error
        if self.exit_code == 0 and "--output" in args:
            target = Path(args[list(args).index("--output") + 1])
            if cwd and not target.is_absolute():
                target = Path(cwd) / target
            text = self.artifact(list(args)) if callable(self.artifact) else self.artifact
            target.write_text(text, encoding="utf-8")
        return argv


class FakeSyncExecutor(_FakeCompiler, SyncProcessExecutor):
    """Blocking fake. Honors ``stderr=subprocess.STDOUT`` by merging the streams."""

    def execute(
        self, command: str, args: Sequence[str], *, cwd: Optional[str] = None, **process_opts: Any
    ) -> CompletedRun:
        argv = self._run(command, args, cwd, process_opts)
        merged = process_opts.get("stderr") == subprocess.STDOUT
        stdout = "".join(text for name, text in self.chunks if merged or name == "stdout")
        stderr = "" if merged else "".join(text for name, text in self.chunks if name == "stderr")
        return CompletedRun(args=argv, exit_code=self.exit_code, stdout=stdout, stderr=stderr)


class _FakeProcess:
    """Duck-typed ``asyncio.subprocess.Process`` replaying the configured chunks."""

    pid = 0

    def __init__(self, chunks: Sequence[Chunk], exit_code: int) -> None:
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        self.returncode: Optional[int] = None
        self._exit_code = exit_code
        self._terminated = False
        self._feeder = asyncio.get_running_loop().create_task(self._feed(list(chunks)))

    async def _feed(self, chunks: List[Chunk]) -> None:
        for name, text in chunks:
            if self._terminated:
                break
            stream = self.stdout if name == "stdout" else self.stderr
            stream.feed_data(text.encode("utf-8"))
            # Let the reader see this chunk before the next one is written.
            await asyncio.sleep(0)
        self.stdout.feed_eof()
        self.stderr.feed_eof()

    async def wait(self) -> int:
        await self._feeder
        if self.returncode is None:
            self.returncode = -15 if self._terminated else self._exit_code
        return self.returncode

    def terminate(self) -> None:
        self._terminated = True

    def kill(self) -> None:
        self._terminated = True


class FakeAsyncExecutor(_FakeCompiler, AsyncProcessExecutor):
    """Non-blocking fake returning a real ``ProcessHandle`` over a fake process."""

    async def execute(
        self, command: str, args: Sequence[str], *, cwd: Optional[str] = None, **process_opts: Any
    ) -> ProcessHandle:
        argv = self._run(command, args, cwd, process_opts)
        return ProcessHandle(_FakeProcess(self.chunks, self.exit_code), argv)
