"""Node.js implementation of the artifact loader.

The artifact is evaluated by ``bridge.js`` in a fresh ``vm`` context inside a ``node``
subprocess. Python and the bridge exchange one JSON object per line:

- ``LOAD`` -> ``READY`` with the dotted names of every exported module
- ``INIT`` -> ``PORTS`` with each port name and its direction
- ``SEND`` delivers a value to an inbound port (no answer)
- ``PORT`` carries a value published on an outbound port
- ``ERROR`` answers a failed command, or reports an uncaught exception
"""

from __future__ import annotations

import asyncio
import json
import shutil
import subprocess
from importlib import resources
from typing import Any, ClassVar, Dict, List, Optional

from elm_compiler.compile.errors import SpawnFailure, WorkerBootstrapError, classify_spawn_error
from elm_compiler.env import get_node_path
from elm_compiler.logging import get_logger

from .loader import ArtifactLoader, ModuleFactory, ModuleRegistry
from .ports import InboundPort, OutboundPort, Ports, WorkerHandle

logger = get_logger("NodeBridge")


def _bridge_source() -> str:
    return resources.files(__package__).joinpath("bridge.js").read_text(encoding="utf-8")


class NodeBridge:
    """A running ``node`` process hosting one evaluated artifact."""

    _LINE_LIMIT: ClassVar[int] = 1 << 24
    """Longest message line accepted from the host, in bytes."""

    _CLOSE_TIMEOUT: ClassVar[float] = 5.0
    """Seconds to wait for the host to exit after its stdin is closed."""

    def __init__(self, process: asyncio.subprocess.Process, node_path: str) -> None:
        self._process = process
        self._node_path = node_path
        self._pending: Optional[asyncio.Future] = None
        self._lock = asyncio.Lock()
        self._stderr: List[str] = []
        self.ports = Ports()
        loop = asyncio.get_running_loop()
        self._loop = loop
        self._tasks = [
            loop.create_task(self._read_messages()),
            loop.create_task(self._read_stderr()),
        ]

    @classmethod
    async def start(cls, node_path: str) -> "NodeBridge":
        """Start the host process.

        Raises
        ------
        SpawnFailure
            If ``node`` cannot be started.
        """
        executable = shutil.which(node_path) or node_path
        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                "-e",
                _bridge_source(),
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                limit=cls._LINE_LIMIT,
            )
        except OSError as e:
            message = classify_spawn_error(e, node_path, program="Node.js")
            raise SpawnFailure(message, node_path) from e
        return cls(process, node_path)

    async def request(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """Send a command and wait for its answer.

        Raises
        ------
        WorkerBootstrapError
            If the host answers with an error or exits.
        """
        async with self._lock:
            self._pending = self._loop.create_future()
            try:
                await self._write(message)
                reply = await self._pending
            finally:
                self._pending = None
        if reply.get("cmd") == "ERROR":
            raise WorkerBootstrapError(reply.get("message", "Unknown error in the JS host"))
        return reply

    def send_port_value(self, port: str, value: Any) -> None:
        line = json.dumps({"cmd": "SEND", "port": port, "value": value}) + "\n"
        self._process.stdin.write(line.encode("utf-8"))

    async def close(self) -> None:
        """Stop the host process and wait for it to exit."""
        if self._process.returncode is None:
            if not self._process.stdin.is_closing():
                self._process.stdin.close()
            try:
                await asyncio.wait_for(self._process.wait(), self._CLOSE_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning("JS host did not exit after %.1fs, killing it", self._CLOSE_TIMEOUT)
                self._process.kill()
                await self._process.wait()
        await asyncio.gather(*self._tasks)

    async def _write(self, message: Dict[str, Any]) -> None:
        self._process.stdin.write((json.dumps(message) + "\n").encode("utf-8"))
        await self._process.stdin.drain()

    def _bind_ports(self, directions: Dict[str, str]) -> None:
        ports: Dict[str, Any] = {}
        for name, direction in directions.items():
            if direction == "outbound":
                ports[name] = OutboundPort(name)
            else:
                ports[name] = InboundPort(name, self.send_port_value)
        self.ports = Ports(ports)

    async def _read_messages(self) -> None:
        stdout = self._process.stdout
        while True:
            line = await stdout.readline()
            if not line:
                break
            try:
                message = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("Ignoring non-protocol output from the JS host: %r", line)
                continue
            cmd = message.get("cmd")
            if cmd == "PORT":
                port = self.ports.get(message.get("port"))
                if isinstance(port, OutboundPort):
                    # Scheduled, so that a caller resumed by the PORTS answer can subscribe
                    # before the first value is delivered.
                    self._loop.call_soon(port.publish, message.get("value"))
                continue
            if cmd == "PORTS":
                self._bind_ports(message.get("ports", {}))
            if self._pending is not None and not self._pending.done():
                self._pending.set_result(message)
            elif cmd == "ERROR":
                logger.error("Uncaught error in the JS host: %s", message.get("message"))
            else:
                logger.warning("Unknown JS host message: %s", cmd)

        code = await self._process.wait()
        if self._pending is not None and not self._pending.done():
            self._pending.set_exception(
                WorkerBootstrapError(
                    f"JS host {self._node_path!r} exited with status {code}:\n"
                    + "".join(self._stderr)
                )
            )

    async def _read_stderr(self) -> None:
        async for line in self._process.stderr:
            text = line.decode("utf-8", errors="replace")
            self._stderr.append(text)
            logger.debug("node: %s", text.rstrip())


class NodeModuleFactory(ModuleFactory):
    """A module exported by an artifact evaluated in a ``NodeBridge``."""

    def __init__(self, name: str, bridge: NodeBridge) -> None:
        super().__init__(name)
        self._bridge = bridge

    async def init(self, flags: Any = None) -> WorkerHandle:
        await self._bridge.request({"cmd": "INIT", "module": self.name, "flags": flags})
        return WorkerHandle(self.name, self._bridge.ports, cleaner=self._bridge.close)


class NodeArtifactLoader(ArtifactLoader):
    """Loads script artifacts into a ``node`` subprocess.

    Each call to ``load`` starts a new host process; it is stopped by closing the returned
    registry, or the worker handle of the module instantiated from it.
    """

    def __init__(self, node_path: Optional[str] = None) -> None:
        """Initialize the loader.

        Parameters
        ----------
        node_path : str, optional
            The ``node`` executable. Defaults to the ``ELM_COMPILER_NODE_PATH`` environment
            variable, then "node".
        """
        self._node_path = node_path or get_node_path()

    async def load(self, script_text: str) -> ModuleRegistry:
        bridge = await NodeBridge.start(self._node_path)
        try:
            reply = await bridge.request({"cmd": "LOAD", "script": script_text})
        except BaseException:
            await bridge.close()
            raise
        modules = {name: NodeModuleFactory(name, bridge) for name in reply.get("modules", [])}
        logger.debug("Loaded artifact exporting %s", sorted(modules))
        return ModuleRegistry(modules, closer=bridge.close)
