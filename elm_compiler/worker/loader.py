"""Artifact loader interface: evaluate a compiled script and find modules in it."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Mapping, Optional

from elm_compiler.compile.errors import ModuleNotFound

from .ports import WorkerHandle


class ModuleFactory(ABC):
    """A module exported by a loaded artifact, ready to be instantiated."""

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    async def init(self, flags: Any = None) -> WorkerHandle:
        """Instantiate the module in worker mode.

        Parameters
        ----------
        flags : Any, optional
            Initialization data handed to the module. Must be JSON-serializable.

        Returns
        -------
        WorkerHandle
            The running module and its ports.
        """
        ...


class ModuleRegistry:
    """The modules exported by one evaluated artifact, keyed by dotted name."""

    def __init__(
        self,
        modules: Mapping[str, ModuleFactory],
        closer: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> None:
        self.modules: Dict[str, ModuleFactory] = dict(modules)
        self._closer = closer

    @property
    def namespaces(self) -> FrozenSet[str]:
        """Every dotted prefix of every exported module, the modules themselves included."""
        prefixes = set()
        for name in self.modules:
            segments = name.split(".")
            for i in range(1, len(segments) + 1):
                prefixes.add(".".join(segments[:i]))
        return frozenset(prefixes)

    async def close(self) -> None:
        """Release the host runtime the artifact was evaluated in. Idempotent."""
        if self._closer:
            try:
                await self._closer()
            finally:
                self._closer = None


def lookup(registry: ModuleRegistry, dotted_name: str) -> ModuleFactory:
    """Find a module by its dotted name.

    Parameters
    ----------
    registry : ModuleRegistry
        The modules of a loaded artifact.
    dotted_name : str
        The module name, e.g. "Workers.Counter".

    Returns
    -------
    ModuleFactory
        The factory for the module.

    Raises
    ------
    ModuleNotFound
        Naming the first path segment that does not exist.
    """
    namespaces = registry.namespaces
    segments = dotted_name.split(".")
    for i, segment in enumerate(segments):
        if ".".join(segments[: i + 1]) not in namespaces:
            raise ModuleNotFound(dotted_name, segment)
    factory = registry.modules.get(dotted_name)
    if factory is None:
        # A namespace that is not itself a module.
        raise ModuleNotFound(dotted_name, segments[-1])
    return factory


class ArtifactLoader(ABC):
    """Evaluates compiled script artifacts in an isolated host runtime."""

    @abstractmethod
    async def load(self, script_text: str) -> ModuleRegistry:
        """Evaluate a script artifact and collect the modules it exports.

        Raises
        ------
        SpawnFailure
            If the host runtime cannot be started.
        WorkerBootstrapError
            If evaluating the script fails.
        """
        ...

    def lookup(self, registry: ModuleRegistry, dotted_name: str) -> ModuleFactory:
        return lookup(registry, dotted_name)
